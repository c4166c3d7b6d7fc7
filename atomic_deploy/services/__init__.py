"""Service layer for atomic-deploy"""

from .config_service import ConfigService
from .lifecycle import ReleaseLifecycle
from .release_source import ReleaseSource, GitReleaseSource, DirectoryReleaseSource, source_from_config

__all__ = [
    "ConfigService",
    "ReleaseLifecycle",
    "ReleaseSource",
    "GitReleaseSource",
    "DirectoryReleaseSource",
    "source_from_config",
]
