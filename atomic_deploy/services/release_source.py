"""Sources that fill a freshly created release directory"""

import logging
import shutil
from pathlib import Path
from typing import Optional, Protocol, Sequence

from ..api.exceptions import ConfigError, DeployIOError
from ..core.command_runner import CommandRunner
from ..models.command import Command
from ..models.config import DeployConfig
from ..models.release import Release

logger = logging.getLogger(__name__)


class ReleaseSource(Protocol):
    """Produces the contents of a new release"""

    def describe(self) -> str:
        ...

    async def fetch(self, release: Release, runner: CommandRunner) -> None:
        ...


class GitReleaseSource:
    """Shallow clone of a git repository into the release directory"""

    def __init__(self, url: str, branch: Optional[str] = None, depth: int = 1):
        self.url = url
        self.branch = branch
        self.depth = depth

    def describe(self) -> str:
        if self.branch:
            return f"{self.url} ({self.branch})"
        return self.url

    def command(self, release: Release) -> Command:
        args = ["git", "clone", "--depth", str(self.depth)]
        if self.branch:
            args += ["--branch", self.branch]
        args += [self.url, "."]
        return Command.of(*args, cwd=release.path)

    async def fetch(self, release: Release, runner: CommandRunner) -> None:
        await runner.run(self.command(release))


class DirectoryReleaseSource:
    """Copy of a local directory (a build output or a checkout)"""

    def __init__(self, path: Path, exclude: Sequence[str] = (".git",)):
        self.path = Path(path).expanduser().absolute()
        self.exclude = tuple(exclude)

    def describe(self) -> str:
        return str(self.path)

    async def fetch(self, release: Release, runner: CommandRunner) -> None:
        if not self.path.is_dir():
            raise ConfigError(f"Source directory does not exist: {self.path}")

        try:
            shutil.copytree(
                self.path,
                release.path,
                symlinks=True,
                ignore=shutil.ignore_patterns(*self.exclude),
                dirs_exist_ok=True,
            )
        except (OSError, shutil.Error) as e:
            raise DeployIOError(f"Failed to copy {self.path} into {release.path}: {e}",
                                str(release.path)) from e

        logger.info(f"Copied {self.path} into release {release.name}")


def source_from_config(config: DeployConfig,
                       directory: Optional[Path] = None,
                       branch: Optional[str] = None) -> ReleaseSource:
    """Pick the release source for a deploy

    A local directory wins over the configured repository.

    Raises:
        ConfigError: If neither a directory nor GitHub.Repo is available
    """
    if directory is not None:
        return DirectoryReleaseSource(directory)

    url = config.repository_url
    if url:
        return GitReleaseSource(url, branch or config.github_branch)

    raise ConfigError("No release source: pass --source or set GitHub.Repo")
