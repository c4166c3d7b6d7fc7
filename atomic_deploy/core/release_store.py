"""Release directory store"""

import logging
import os
import shutil
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..api.exceptions import CollisionError, DeployIOError
from ..constants import RELEASE_NAME_FORMAT
from ..models.release import Release, ReleaseSet

logger = logging.getLogger(__name__)


class ReleaseStore:
    """Enumerates, creates and deletes release directories

    Releases are ordered by directory name. This is only chronological when
    names increase monotonically with creation time, which the
    ``YYYYMMDDHHMMSS`` naming used by create_release guarantees; mtimes are
    never consulted for ordering.
    """

    def __init__(self, releases_root: Path):
        self.releases_root = Path(releases_root).absolute()

    def list_releases(self) -> ReleaseSet:
        """List release directories, newest first

        Dot-entries and anything that is not a directory are skipped. A
        releases root that does not exist yet gives an empty set.

        Raises:
            DeployIOError: If the releases root cannot be read
        """
        if not self.releases_root.exists() and not self.releases_root.is_symlink():
            return ReleaseSet.from_releases(self.releases_root, [])

        try:
            entries = list(os.scandir(self.releases_root))
        except OSError as e:
            raise DeployIOError(
                f"Cannot read releases directory {self.releases_root}: {e}",
                str(self.releases_root)
            ) from e

        releases = []
        for entry in entries:
            if entry.name.startswith('.'):
                continue
            try:
                if not entry.is_dir():
                    continue
            except OSError:
                continue
            releases.append(Release.from_path(Path(entry.path)))

        return ReleaseSet.from_releases(self.releases_root, releases)

    def current(self) -> Release:
        """Newest release

        Raises:
            NoReleaseError: If there are no releases
        """
        return self.list_releases().current

    def previous(self) -> Release:
        """Second newest release

        Raises:
            NoPreviousReleaseError: If there are fewer than two releases
        """
        return self.list_releases().previous

    def create_release(self, now: Optional[datetime] = None) -> Release:
        """Create a new release directory named after the timestamp

        Raises:
            CollisionError: If a release with that name already exists
            DeployIOError: If the directory cannot be created
        """
        name = (now or datetime.now()).strftime(RELEASE_NAME_FORMAT)
        path = self.releases_root / name

        try:
            self.releases_root.mkdir(parents=True, exist_ok=True)
            path.mkdir()
        except FileExistsError as e:
            raise CollisionError(str(path)) from e
        except OSError as e:
            raise DeployIOError(f"Cannot create release {path}: {e}", str(path)) from e

        logger.info(f"Created release {name}")
        return Release.from_path(path)

    def delete_release(self, release: Release) -> None:
        """Recursively remove a release directory

        Entries that disappear while deleting are tolerated, any other
        failure (permissions, busy files) is raised.

        Raises:
            DeployIOError: If the release could not be fully removed
        """
        path = Path(release.path)
        if path.parent.absolute() != self.releases_root:
            raise DeployIOError(
                f"Refusing to delete {path}: not inside {self.releases_root}", str(path)
            )

        def on_exc(func, failed_path, error):
            if isinstance(error, FileNotFoundError):
                return
            raise DeployIOError(
                f"Failed to delete release {release.name} at {failed_path}: {error}",
                str(failed_path)
            ) from error

        if path.is_symlink():
            path.unlink(missing_ok=True)
        elif path.exists():
            if sys.version_info >= (3, 12):
                shutil.rmtree(path, onexc=on_exc)
            else:
                shutil.rmtree(path, onerror=lambda f, p, info: on_exc(f, p, info[1]))

        logger.info(f"Deleted release {release.name}")

    def releases_to_prune(self, keep: int, protect: Optional[Path] = None) -> List[Release]:
        """Releases beyond the newest ``keep``, never including ``protect``"""
        protected = Path(protect).resolve() if protect else None
        candidates = list(self.list_releases())[keep:]
        return [r for r in candidates if r.path.resolve() != protected]
