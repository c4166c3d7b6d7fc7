"""Tests for atomic_deploy.services.release_source."""

from __future__ import annotations

from pathlib import Path

import pytest

from atomic_deploy.api.exceptions import ConfigError
from atomic_deploy.core import ReleaseStore
from atomic_deploy.models import DeployConfig
from atomic_deploy.services import DirectoryReleaseSource, GitReleaseSource, source_from_config
from atomic_deploy.utils import run_async

from tests.conftest import RecordingRunner


class TestGitReleaseSource:
    """Test git clone sources."""

    def test_clone_command(self, config: DeployConfig, runner: RecordingRunner) -> None:
        release = ReleaseStore(config.releases).create_release()
        source = GitReleaseSource("https://github.com/acme/app.git", branch="main")

        run_async(source.fetch(release, runner))

        (command,) = runner.commands
        assert command.args == ("git", "clone", "--depth", "1", "--branch", "main",
                                "https://github.com/acme/app.git", ".")
        assert command.working_dir == release.path
        assert not command.elevated

    def test_no_branch(self, config: DeployConfig) -> None:
        release = ReleaseStore(config.releases).create_release()

        command = GitReleaseSource("git@github.com:acme/app.git").command(release)

        assert "--branch" not in command.args

    def test_describe(self) -> None:
        assert GitReleaseSource("repo.git", "dev").describe() == "repo.git (dev)"


class TestDirectoryReleaseSource:
    """Test local directory sources."""

    def test_copies_tree_without_git(self, config: DeployConfig, source_dir: Path,
                                     runner: RecordingRunner) -> None:
        release = ReleaseStore(config.releases).create_release()

        run_async(DirectoryReleaseSource(source_dir).fetch(release, runner))

        assert (release.path / "index.php").read_text() == "<?php echo 'hello';"
        assert (release.path / "var" / "cache" / "stale").exists()
        assert not (release.path / ".git").exists()
        assert runner.commands == []

    def test_missing_directory(self, config: DeployConfig, tmp_path: Path,
                               runner: RecordingRunner) -> None:
        release = ReleaseStore(config.releases).create_release()

        with pytest.raises(ConfigError):
            run_async(DirectoryReleaseSource(tmp_path / "missing").fetch(release, runner))


class TestSourceFromConfig:
    """Test release source selection."""

    def test_directory_wins(self, deploy_root: Path, source_dir: Path) -> None:
        config = DeployConfig.for_root(deploy_root, github_repo="acme/app")

        source = source_from_config(config, directory=source_dir)

        assert isinstance(source, DirectoryReleaseSource)

    def test_github_shorthand(self, deploy_root: Path) -> None:
        config = DeployConfig.for_root(deploy_root, github_repo="acme/app", github_branch="main")

        source = source_from_config(config)

        assert isinstance(source, GitReleaseSource)
        assert source.url == "https://github.com/acme/app.git"
        assert source.branch == "main"

    def test_branch_override(self, deploy_root: Path) -> None:
        config = DeployConfig.for_root(deploy_root, github_repo="acme/app", github_branch="main")

        assert source_from_config(config, branch="hotfix").branch == "hotfix"

    def test_full_url_kept(self, deploy_root: Path) -> None:
        config = DeployConfig.for_root(deploy_root, github_repo="ssh://git@example.com/app.git")

        assert source_from_config(config).url == "ssh://git@example.com/app.git"

    def test_no_source(self, config: DeployConfig) -> None:
        with pytest.raises(ConfigError):
            source_from_config(config)
