# atomic_deploy/api/__init__.py
"""API layer for atomic-deploy"""

from .exceptions import (
    AtomicDeployError,
    ConfigError,
    DeployIOError,
    CommandError,
    ExecutionError,
    CommandTimeoutError,
    NonZeroExitError,
    ReleaseError,
    NoReleaseError,
    NoPreviousReleaseError,
    CollisionError,
    AlreadyRunningError,
)
from .deployer import Deployer, deploy, rollback

__all__ = [
    # Main classes
    "Deployer",

    # Convenience functions
    "deploy",
    "rollback",

    # Exceptions
    "AtomicDeployError",
    "ConfigError",
    "DeployIOError",
    "CommandError",
    "ExecutionError",
    "CommandTimeoutError",
    "NonZeroExitError",
    "ReleaseError",
    "NoReleaseError",
    "NoPreviousReleaseError",
    "CollisionError",
    "AlreadyRunningError",
]
