"""Atomic Deploy - symlink-based release management.

Creates timestamped release directories, links shared paths into them,
switches a ``current`` symlink atomically and rolls back to the previous
release when needed.
"""

from .__version__ import __version__, __version_info__, __author__, __email__, __license__

# Exceptions
from .api.exceptions import (
    AtomicDeployError,
    ConfigError,
    DeployIOError,
    ExecutionError,
    CommandTimeoutError,
    NonZeroExitError,
    NoReleaseError,
    NoPreviousReleaseError,
    CollisionError,
    AlreadyRunningError,
)

# Core API
from .api.deployer import Deployer, deploy, rollback

# Data models
from .models import Command, CommandResult, DeployConfig, Release, ReleaseSet, LifecycleResult, LifecycleState

__all__ = [
    # Version information
    "__version__",
    "__version_info__",
    "__author__",
    "__email__",
    "__license__",

    # Main classes
    "Deployer",

    # Core API functions
    "deploy",
    "rollback",

    # Data models
    "Command",
    "CommandResult",
    "DeployConfig",
    "Release",
    "ReleaseSet",
    "LifecycleResult",
    "LifecycleState",

    # Exceptions
    "AtomicDeployError",
    "ConfigError",
    "DeployIOError",
    "ExecutionError",
    "CommandTimeoutError",
    "NonZeroExitError",
    "NoReleaseError",
    "NoPreviousReleaseError",
    "CollisionError",
    "AlreadyRunningError",
]
