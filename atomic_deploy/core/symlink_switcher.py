"""Atomic ``current`` symlink switching"""

import logging
import os
from pathlib import Path
from typing import Optional

from ..api.exceptions import DeployIOError
from ..constants import CURRENT_LINK_NAME
from ..models.release import Release

logger = logging.getLogger(__name__)


class SymlinkSwitcher:
    """Repoints the ``current`` link of a deployment root

    The new link is created under a temporary name next to ``current`` and
    renamed over it, so there is no moment where ``current`` is missing.
    """

    def __init__(self, link_name: str = CURRENT_LINK_NAME):
        self.link_name = link_name

    def link_path(self, root: Path) -> Path:
        return Path(root) / self.link_name

    def resolve(self, root: Path) -> Optional[Path]:
        """Target of the current link, None if there is no link"""
        link = self.link_path(root)
        if not link.is_symlink():
            return None
        return Path(os.readlink(link))

    def point_to(self, root: Path, target: Release) -> Path:
        """Atomically point ``<root>/current`` at ``target``

        Args:
            root: Deployment root holding the link
            target: Release to activate

        Returns:
            Path to the current link

        Raises:
            DeployIOError: If the target is missing or the link cannot be
                replaced; the existing link is left untouched
        """
        root = Path(root)
        target_path = Path(target.path).absolute()
        if not target_path.is_dir():
            raise DeployIOError(f"Release directory does not exist: {target_path}", str(target_path))

        current_link = self.link_path(root)
        temp_link = root / f".{self.link_name}.tmp-{os.getpid()}"

        try:
            # Leftover from an interrupted run
            if temp_link.is_symlink() or temp_link.exists():
                temp_link.unlink()

            temp_link.symlink_to(target_path, target_is_directory=True)
            os.replace(temp_link, current_link)
        except OSError as e:
            try:
                temp_link.unlink(missing_ok=True)
            except OSError:
                logger.warning(f"Could not remove temporary link {temp_link}")
            raise DeployIOError(
                f"Failed to point {current_link} at {target_path}: {e}", str(current_link)
            ) from e

        logger.info(f"{current_link} -> {target_path}")
        return current_link
