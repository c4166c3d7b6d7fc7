"""Deployer API for deploy and rollback operations"""

from pathlib import Path
from typing import Optional

from ..core import DeploymentLock, OutputSink, ReleaseStore, SymlinkSwitcher
from ..models import DeployConfig, LifecycleResult, ReleaseSet
from ..services import ConfigService, ReleaseLifecycle, ReleaseSource, source_from_config
from ..utils.async_utils import run_async


class Deployer:
    """Deployer class for release operations

    Wraps a ReleaseLifecycle so every deploy and rollback runs under the
    deployment lock of the configured root.
    """

    def __init__(self,
                 config: DeployConfig,
                 sink: Optional[OutputSink] = None,
                 lifecycle: Optional[ReleaseLifecycle] = None):
        """
        Initialize deployer

        Args:
            config: Deployment configuration
            sink: Progress output
            lifecycle: Pre-built lifecycle (built from config if omitted)
        """
        self.config = config
        self.sink = sink
        self.lifecycle = lifecycle or ReleaseLifecycle.from_config(config, sink)

    @classmethod
    def from_file(cls, config_path: Optional[Path] = None,
                  sink: Optional[OutputSink] = None) -> 'Deployer':
        """Create from a YAML configuration file"""
        return cls(ConfigService(config_path).load(), sink=sink)

    def lock(self) -> DeploymentLock:
        return DeploymentLock(self.config.root)

    async def deploy_async(self,
                           source: Optional[ReleaseSource] = None,
                           directory: Optional[Path] = None,
                           branch: Optional[str] = None) -> LifecycleResult:
        """
        Deploy a new release

        Args:
            source: Release source (picked from config when omitted)
            directory: Local directory to deploy instead of GitHub.Repo
            branch: Branch to clone, overrides GitHub.Branch

        Returns:
            LifecycleResult: Deployment result

        Raises:
            AlreadyRunningError: If another run holds the lock
            AtomicDeployError: If any lifecycle step fails
        """
        source = source or source_from_config(self.config, directory, branch)
        with self.lock():
            return await self.lifecycle.deploy(source)

    def deploy(self,
               source: Optional[ReleaseSource] = None,
               directory: Optional[Path] = None,
               branch: Optional[str] = None) -> LifecycleResult:
        return run_async(self.deploy_async(source, directory, branch))

    async def rollback_async(self) -> LifecycleResult:
        """
        Roll back to the previous release and delete the newest one

        Returns:
            LifecycleResult: Rollback result

        Raises:
            AlreadyRunningError: If another run holds the lock
            NoPreviousReleaseError: If fewer than two releases exist
        """
        with self.lock():
            return await self.lifecycle.rollback()

    def rollback(self) -> LifecycleResult:
        return run_async(self.rollback_async())

    def list_releases(self) -> ReleaseSet:
        return ReleaseStore(self.config.releases).list_releases()

    def current_target(self) -> Optional[Path]:
        """Directory the current link points at"""
        return SymlinkSwitcher().resolve(self.config.root)


def deploy(config_path: Optional[Path] = None,
           directory: Optional[Path] = None,
           branch: Optional[str] = None,
           sink: Optional[OutputSink] = None) -> LifecycleResult:
    """Convenience function: deploy using a configuration file"""
    return Deployer.from_file(config_path, sink).deploy(directory=directory, branch=branch)


def rollback(config_path: Optional[Path] = None,
             sink: Optional[OutputSink] = None) -> LifecycleResult:
    """Convenience function: roll back using a configuration file"""
    return Deployer.from_file(config_path, sink).rollback()
