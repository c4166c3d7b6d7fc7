"""Tests for atomic_deploy.core.symlink_switcher."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from atomic_deploy.api.exceptions import DeployIOError
from atomic_deploy.core import SymlinkSwitcher
from atomic_deploy.models import Release

from tests.conftest import make_releases


class TestPointTo:
    """Test atomic link switching."""

    def test_creates_link(self, deploy_root: Path) -> None:
        (path,) = make_releases(deploy_root / "releases", "20240101000000")

        link = SymlinkSwitcher().point_to(deploy_root, Release.from_path(path))

        assert link == deploy_root / "current"
        assert link.is_symlink()
        assert Path(os.readlink(link)) == path.absolute()
        assert (link / "RELEASE").read_text() == "20240101000000"

    def test_replaces_existing_link(self, deploy_root: Path) -> None:
        old, new = make_releases(deploy_root / "releases", "20240101000000", "20240102000000")
        switcher = SymlinkSwitcher()
        switcher.point_to(deploy_root, Release.from_path(old))

        switcher.point_to(deploy_root, Release.from_path(new))

        assert switcher.resolve(deploy_root) == new.absolute()

    def test_no_temporary_link_left(self, deploy_root: Path) -> None:
        (path,) = make_releases(deploy_root / "releases", "20240101000000")

        SymlinkSwitcher().point_to(deploy_root, Release.from_path(path))

        assert sorted(p.name for p in deploy_root.iterdir()) == ["current", "releases", "shared"]

    def test_missing_target_leaves_link_untouched(self, deploy_root: Path) -> None:
        (path,) = make_releases(deploy_root / "releases", "20240101000000")
        switcher = SymlinkSwitcher()
        switcher.point_to(deploy_root, Release.from_path(path))
        missing = Release.from_path(deploy_root / "releases" / "20240102000000")

        with pytest.raises(DeployIOError):
            switcher.point_to(deploy_root, missing)

        assert switcher.resolve(deploy_root) == path.absolute()

    def test_rename_failure_cleans_temp_link(self, deploy_root: Path) -> None:
        (path,) = make_releases(deploy_root / "releases", "20240101000000")
        # A non-empty directory named current cannot be replaced by a link
        (deploy_root / "current" / "data").mkdir(parents=True)

        with pytest.raises(DeployIOError):
            SymlinkSwitcher().point_to(deploy_root, Release.from_path(path))

        assert (deploy_root / "current" / "data").is_dir()
        assert not any(p.name.startswith(".current.tmp") for p in deploy_root.iterdir())


class TestResolve:
    """Test reading the current link."""

    def test_no_link(self, deploy_root: Path) -> None:
        assert SymlinkSwitcher().resolve(deploy_root) is None

    def test_dangling_link(self, deploy_root: Path) -> None:
        (deploy_root / "current").symlink_to(deploy_root / "releases" / "gone")

        assert SymlinkSwitcher().resolve(deploy_root) == deploy_root / "releases" / "gone"
