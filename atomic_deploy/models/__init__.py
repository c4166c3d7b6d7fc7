# atomic_deploy/models/__init__.py
"""Data models for atomic-deploy"""

from .command import Command
from .config import DeployConfig, PermissionRules, ChownRule, ChmodRule
from .release import Release, ReleaseSet
from .result import CommandResult, LifecycleResult, LifecycleState

__all__ = [
    # Command models
    "Command",
    "CommandResult",

    # Release models
    "Release",
    "ReleaseSet",

    # Config models
    "DeployConfig",
    "PermissionRules",
    "ChownRule",
    "ChmodRule",

    # Lifecycle models
    "LifecycleResult",
    "LifecycleState",
]
