# atomic_deploy/utils/__init__.py
"""Utility functions for atomic-deploy"""

from .async_utils import run_async

__all__ = [
    "run_async",
]
