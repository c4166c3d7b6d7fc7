"""Core functionality for atomic-deploy"""

from .output import OutputSink, NullSink
from .command_runner import CommandRunner, CommandStream
from .release_store import ReleaseStore
from .symlink_switcher import SymlinkSwitcher
from .deployment_lock import DeploymentLock

__all__ = [
    "OutputSink",
    "NullSink",
    "CommandRunner",
    "CommandStream",
    "ReleaseStore",
    "SymlinkSwitcher",
    "DeploymentLock",
]
