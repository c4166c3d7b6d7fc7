"""Shared fixtures for atomic-deploy tests."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Tuple

import pytest
import yaml

from atomic_deploy.api.exceptions import NonZeroExitError
from atomic_deploy.core import CommandRunner
from atomic_deploy.models import Command, CommandResult, DeployConfig


class RecordingSink:
    """OutputSink that keeps every event in order."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, str]] = []

    def _record(self, kind: str, text: str) -> None:
        self.events.append((kind, text))

    def header(self, text: str) -> None:
        self._record("header", text)

    def step(self, text: str) -> None:
        self._record("step", text)

    def command_output(self, line: str) -> None:
        self._record("output", line)

    def success(self, text: str) -> None:
        self._record("success", text)

    def warning(self, text: str) -> None:
        self._record("warning", text)

    def of(self, kind: str) -> List[str]:
        return [text for k, text in self.events if k == kind]


class RecordingRunner(CommandRunner):
    """CommandRunner that records commands instead of running them."""

    def __init__(self, fail_on: Sequence[str] = ()) -> None:
        super().__init__()
        self.commands: List[Command] = []
        self.fail_on = tuple(fail_on)

    async def run(self, command: Command, *, check: bool = True) -> CommandResult:
        self.commands.append(command)
        if command.args[0] in self.fail_on:
            if check:
                raise NonZeroExitError(command.to_shell(), 1)
            return CommandResult(command=command, returncode=1)
        return CommandResult(command=command, returncode=0)

    def shells(self) -> List[str]:
        return [c.to_shell() for c in self.commands]


def make_releases(releases_root: Path, *names: str) -> List[Path]:
    """Create release directories with a marker file each."""
    paths = []
    for name in names:
        path = releases_root / name
        path.mkdir(parents=True)
        (path / "RELEASE").write_text(name)
        paths.append(path)
    return paths


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def deploy_root(tmp_path: Path) -> Path:
    root = tmp_path / "app"
    (root / "releases").mkdir(parents=True)
    (root / "shared").mkdir()
    return root


@pytest.fixture
def config(deploy_root: Path) -> DeployConfig:
    return DeployConfig.for_root(deploy_root)


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """A small application tree to deploy."""
    src = tmp_path / "src"
    (src / "var" / "cache").mkdir(parents=True)
    (src / "tests").mkdir()
    (src / ".git").mkdir()
    (src / "index.php").write_text("<?php echo 'hello';")
    (src / "tests" / "test.php").write_text("")
    (src / "var" / "cache" / "stale").write_text("")
    return src


@pytest.fixture
def config_file(tmp_path: Path, deploy_root: Path) -> Path:
    """A config.yml for deploy_root."""
    path = tmp_path / "config.yml"
    document = {
        "Deploy": {
            "Namespace": "app",
            "Shared": [],
            "Remove": [],
            "GitHub": {"Repo": None, "Branch": None},
            "Environment": {
                "Root": str(deploy_root),
                "ProcessTimeout": 30,
                "UseSudo": False,
                "KeepReleases": 3,
            },
        }
    }
    path.write_text(yaml.safe_dump(document, sort_keys=False))
    return path
