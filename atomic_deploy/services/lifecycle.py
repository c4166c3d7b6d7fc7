"""Release lifecycle: deploy and rollback state machine"""

import logging
import shutil
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from ..api.exceptions import (
    AtomicDeployError,
    ConfigError,
    DeployIOError,
    NoPreviousReleaseError,
)
from ..constants import (
    MSG_LINK_UPDATED,
    MSG_RELEASE_CREATED,
    MSG_RELEASE_REMOVED,
    MSG_SHARED_LINKED,
)
from ..core.command_runner import CommandRunner
from ..core.output import NullSink, OutputSink
from ..core.release_store import ReleaseStore
from ..core.symlink_switcher import SymlinkSwitcher
from ..models.command import Command
from ..models.config import DeployConfig, PermissionRules
from ..models.release import Release
from ..models.result import LifecycleResult, LifecycleState
from .release_source import ReleaseSource

logger = logging.getLogger(__name__)


class ReleaseLifecycle:
    """Sequences deploy and rollback over the release directories

    Deploy:   idle -> preparing -> linking -> fixing permissions (pre)
              -> switching -> fixing permissions (post) -> cleaning -> done
    Rollback: idle -> locating releases -> switching back -> deleting -> done

    Every step runs only after the previous one succeeded. The first error
    moves the machine to ``error``, is tagged with the failed step and
    propagates; completed steps are not undone. The symlink switch is the
    only atomic boundary.
    """

    def __init__(self,
                 config: DeployConfig,
                 runner: CommandRunner,
                 store: ReleaseStore,
                 switcher: SymlinkSwitcher,
                 sink: Optional[OutputSink] = None):
        """Initialize release lifecycle

        Args:
            config: Deployment configuration snapshot
            runner: Runs chown/chmod/rm and source commands
            store: Release directory store
            switcher: Current link switcher
            sink: Progress output
        """
        self.config = config
        self.runner = runner
        self.store = store
        self.switcher = switcher
        self.sink = sink or NullSink()
        self.result: Optional[LifecycleResult] = None

    @classmethod
    def from_config(cls, config: DeployConfig, sink: Optional[OutputSink] = None) -> 'ReleaseLifecycle':
        return cls(
            config=config,
            runner=CommandRunner.from_config(config, sink),
            store=ReleaseStore(config.releases),
            switcher=SymlinkSwitcher(),
            sink=sink,
        )

    @property
    def state(self) -> LifecycleState:
        return self.result.state if self.result else LifecycleState.IDLE

    @contextmanager
    def _stage(self, state: LifecycleState) -> Iterator[None]:
        self.result.enter(state)
        logger.debug(f"{self.result.operation}: {state.label}")
        try:
            yield
        except AtomicDeployError as e:
            self._fail(e)
            raise
        except OSError as e:
            error = DeployIOError(str(e), getattr(e, "filename", None))
            self._fail(error)
            raise error from e

    def _fail(self, error: AtomicDeployError) -> None:
        failed = self.result.state
        if error.step is None:
            error.step = failed.label
        self.result.complete(LifecycleState.ERROR)
        logger.error(f"{self.result.operation} failed while {failed.label}: {error}")

    async def deploy(self, source: ReleaseSource, now: Optional[datetime] = None) -> LifecycleResult:
        """Create, populate and activate a new release

        Args:
            source: Fills the new release directory
            now: Timestamp for the release name (defaults to now)

        Returns:
            LifecycleResult in the ``done`` state
        """
        self.result = result = LifecycleResult(operation="deploy")
        root = self.config.root
        self.sink.header("Deploying Release")

        with self._stage(LifecycleState.PREPARING):
            release = self.store.create_release(now)
            result.release = release
            self.sink.step(MSG_RELEASE_CREATED.format(name=release.name))
            self.sink.step(f"Fetching {source.describe()}")
            await source.fetch(release, self.runner)

        with self._stage(LifecycleState.LINKING):
            self._link_shared(release)

        with self._stage(LifecycleState.FIXING_PERMISSIONS):
            await self._fix_permissions(release, self.config.pre, "pre")

        with self._stage(LifecycleState.SWITCHING):
            link = self.switcher.point_to(root, release)
            self.sink.success(MSG_LINK_UPDATED.format(link=link, target=release.path))

        with self._stage(LifecycleState.FIXING_PERMISSIONS):
            await self._fix_permissions(release, self.config.post, "post")

        with self._stage(LifecycleState.CLEANING):
            await self._remove_paths(release)
            await self._prune_releases()

        result.complete(LifecycleState.DONE)
        self.sink.header("Deploy Complete")
        return result

    async def rollback(self) -> LifecycleResult:
        """Point current at the previous release and delete the newest one

        Returns:
            LifecycleResult in the ``done`` state

        Raises:
            NoPreviousReleaseError: Fewer than two releases exist; nothing
                is touched
        """
        self.result = result = LifecycleResult(operation="rollback")
        root = self.config.root
        self.sink.header("Rolling Back Release")

        with self._stage(LifecycleState.LOCATING_RELEASES):
            releases = self.store.list_releases()
            if len(releases) < 2:
                raise NoPreviousReleaseError(str(self.store.releases_root))
            doomed, target = releases[0], releases[1]
            result.release = target

        with self._stage(LifecycleState.SWITCHING_BACK):
            self.sink.step("Create symlink to previous release")
            link = self.switcher.point_to(root, target)
            self.sink.success(MSG_LINK_UPDATED.format(link=link, target=target.path))

        with self._stage(LifecycleState.DELETING):
            self.sink.step("Removing current release")
            await self._release_ownership(doomed)
            self.store.delete_release(doomed)
            result.removed.append(doomed)
            self.sink.success(MSG_RELEASE_REMOVED.format(name=doomed.name))

        result.complete(LifecycleState.DONE)
        self.sink.header("Rollback Complete")
        return result

    def _link_shared(self, release: Release) -> None:
        """Replace each shared path in the release with a link to shared storage"""
        for shared_path in self.config.shared:
            target = self.config.shared_root / shared_path
            if not target.exists():
                raise ConfigError(f"Shared path does not exist: {target}")

            link = release.path / shared_path
            if release.path not in link.parents:
                raise ConfigError(f"Shared path must be inside the release: {shared_path!r}")

            if link.is_symlink() or link.is_file():
                link.unlink()
            elif link.is_dir():
                shutil.rmtree(link)

            link.parent.mkdir(parents=True, exist_ok=True)
            link.symlink_to(target, target_is_directory=target.is_dir())

            self.result.linked[str(link)] = str(target)
            self.sink.step(MSG_SHARED_LINKED.format(path=shared_path, target=target))

    async def _fix_permissions(self, release: Release, rules: PermissionRules, stage: str) -> None:
        """Apply chown then chmod, each over its configured paths in order"""
        if rules.chown.is_active:
            self.sink.step(f"Setting group {rules.chown.group} ({stage})")
            await self.runner.run(self._command("chown", "-R", rules.chown.group,
                                                *rules.chown.paths, cwd=release.path))

        if rules.chmod.is_active:
            self.sink.step(f"Setting permission {rules.chmod.permission} ({stage})")
            await self.runner.run(self._command("chmod", "-R", rules.chmod.permission,
                                                *rules.chmod.paths, cwd=release.path))

    async def _remove_paths(self, release: Release) -> None:
        if not self.config.remove:
            return
        self.sink.step(f"Removing {', '.join(self.config.remove)}")
        await self.runner.run(self._command("rm", "-rf", "--", *self.config.remove, cwd=release.path))

    async def _prune_releases(self) -> None:
        """Delete releases beyond the retention count, never the live one"""
        live = self.switcher.resolve(self.config.root)
        for release in self.store.releases_to_prune(self.config.keep_releases, protect=live):
            await self._release_ownership(release)
            self.store.delete_release(release)
            self.result.removed.append(release)
            self.sink.step(MSG_RELEASE_REMOVED.format(name=release.name))

    async def _release_ownership(self, release: Release) -> None:
        """Hand framework cache/log/session paths to the service group

        Lets files created by the running service be removed after the
        release is abandoned. Only paths present in the release are touched.
        """
        group = self.config.permissions_process
        if not group:
            return

        paths = [p for p in self.config.rollback_chown_paths if (release.path / p).exists()]
        if not paths:
            return

        await self.runner.run(self._command("chown", "-R", group, *paths, cwd=release.path))

    def _command(self, *args: str, cwd: Path) -> Command:
        return Command.of(*args, cwd=cwd, elevated=self.config.use_sudo)
