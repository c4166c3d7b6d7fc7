"""Tests for atomic_deploy.api.deployer."""

from __future__ import annotations

from pathlib import Path

import pytest

import atomic_deploy
from atomic_deploy import AlreadyRunningError, Deployer, DeployConfig
from atomic_deploy.core import DeploymentLock, SymlinkSwitcher

from tests.conftest import RecordingSink, make_releases


class TestDeployer:
    """Test the Deployer facade."""

    def test_deploy_directory(self, config: DeployConfig, source_dir: Path,
                              sink: RecordingSink) -> None:
        deployer = Deployer(config, sink=sink)

        result = deployer.deploy(directory=source_dir)

        assert result.is_success
        assert deployer.current_target() == result.release.path
        assert deployer.list_releases().names() == [result.release.name]
        assert not (config.root / ".deploy.lock").read_text()

    def test_deploy_while_locked(self, config: DeployConfig, source_dir: Path) -> None:
        deployer = Deployer(config)

        with DeploymentLock(config.root):
            with pytest.raises(AlreadyRunningError):
                deployer.deploy(directory=source_dir)

        assert len(deployer.list_releases()) == 0

    def test_rollback_while_locked(self, config: DeployConfig) -> None:
        make_releases(config.releases, "20240101000000", "20240102000000")

        with DeploymentLock(config.root):
            with pytest.raises(AlreadyRunningError):
                Deployer(config).rollback()

        assert len(Deployer(config).list_releases()) == 2

    def test_lock_released_after_failure(self, config: DeployConfig) -> None:
        deployer = Deployer(config)

        with pytest.raises(atomic_deploy.NoPreviousReleaseError):
            deployer.rollback()

        with DeploymentLock(config.root) as lock:
            assert lock.is_held


class TestConvenienceFunctions:
    """Test module level deploy/rollback."""

    def test_deploy_and_rollback(self, config_file: Path, deploy_root: Path,
                                 source_dir: Path) -> None:
        make_releases(deploy_root / "releases", "20240101000000")

        deployed = atomic_deploy.deploy(config_file, directory=source_dir)
        assert SymlinkSwitcher().resolve(deploy_root) == deployed.release.path

        result = atomic_deploy.rollback(config_file)

        assert result.release.name == "20240101000000"
        assert SymlinkSwitcher().resolve(deploy_root) == deploy_root / "releases" / "20240101000000"
        assert not deployed.release.path.exists()

    def test_from_file(self, config_file: Path, deploy_root: Path) -> None:
        deployer = Deployer.from_file(config_file)

        assert deployer.config.root == deploy_root
        assert deployer.current_target() is None
