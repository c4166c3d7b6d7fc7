# atomic_deploy/models/release.py
"""Release models for the deployment tool"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from ..api.exceptions import NoReleaseError, NoPreviousReleaseError
from ..constants import RELEASE_NAME_FORMAT


def parse_release_name(name: str) -> Optional[datetime]:
    """Parse a timestamp release name, None if it does not follow the format"""
    try:
        return datetime.strptime(name, RELEASE_NAME_FORMAT)
    except ValueError:
        return None


@dataclass(frozen=True)
class Release:
    """One deployed snapshot directory"""
    path: Path
    name: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_path(cls, path: Path) -> 'Release':
        """Create from a release directory path

        The creation time comes from the timestamp name when possible,
        otherwise from the directory mtime.
        """
        path = Path(path).absolute()
        created_at = parse_release_name(path.name)
        if created_at is None:
            try:
                created_at = datetime.fromtimestamp(path.stat().st_mtime)
            except OSError:
                created_at = None
        return cls(path=path, name=path.name, created_at=created_at)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ReleaseSet:
    """Releases ordered newest first (descending by name)"""
    root: Path
    releases: Tuple[Release, ...] = field(default_factory=tuple)

    @classmethod
    def from_releases(cls, root: Path, releases: Sequence[Release]) -> 'ReleaseSet':
        ordered = sorted(releases, key=lambda r: r.name, reverse=True)
        return cls(root=Path(root), releases=tuple(ordered))

    def __len__(self) -> int:
        return len(self.releases)

    def __getitem__(self, index: int) -> Release:
        return self.releases[index]

    def __iter__(self) -> Iterator[Release]:
        return iter(self.releases)

    @property
    def current(self) -> Release:
        """Newest release"""
        if not self.releases:
            raise NoReleaseError(str(self.root))
        return self.releases[0]

    @property
    def previous(self) -> Release:
        """Second newest release, the rollback target"""
        if len(self.releases) < 2:
            raise NoPreviousReleaseError(str(self.root))
        return self.releases[1]

    def names(self) -> List[str]:
        return [r.name for r in self.releases]
