"""Process-wide deployment lock"""

import fcntl
import json
import logging
import os
import time
from pathlib import Path
from typing import Optional

from ..api.exceptions import AlreadyRunningError, DeployIOError
from ..constants import DEPLOYMENT_LOCK_FILE

logger = logging.getLogger(__name__)


class DeploymentLock:
    """Exclusive, non-blocking lock on a deployment root

    Usage:
        with DeploymentLock(config.root):
            ...

    Acquisition fails immediately with AlreadyRunningError when another
    deploy or rollback holds the lock. The lock is an ``flock`` on
    ``<root>/.deploy.lock``, so the kernel drops it when the holding process
    dies. Each acquisition opens its own file description, which makes two
    locks on the same root conflict even inside one process.
    """

    def __init__(self, root: Path, lock_name: str = DEPLOYMENT_LOCK_FILE):
        self.root = Path(root)
        self.path = self.root / lock_name
        self._fd: Optional[int] = None

    @property
    def is_held(self) -> bool:
        return self._fd is not None

    def acquire(self) -> 'DeploymentLock':
        """Take the lock or fail

        Raises:
            AlreadyRunningError: If the lock is held elsewhere
            DeployIOError: If the lock file cannot be opened
        """
        if self._fd is not None:
            raise AlreadyRunningError(str(self.path), self.holder())

        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise DeployIOError(f"Cannot open lock file {self.path}: {e}", str(self.path)) from e

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            raise AlreadyRunningError(str(self.path), self.holder())
        except OSError as e:
            os.close(fd)
            raise DeployIOError(f"Cannot lock {self.path}: {e}", str(self.path)) from e

        self._fd = fd
        self._write_holder()
        logger.debug(f"Acquired deployment lock {self.path}")
        return self

    def release(self) -> None:
        """Drop the lock, no-op if not held"""
        if self._fd is None:
            return

        fd, self._fd = self._fd, None
        try:
            os.ftruncate(fd, 0)
        except OSError:
            logger.debug(f"Could not clear lock file {self.path}")
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
            os.close(fd)
        logger.debug(f"Released deployment lock {self.path}")

    def holder(self) -> Optional[dict]:
        """Pid and timestamp written by the current holder, if readable"""
        try:
            content = self.path.read_text()
        except OSError:
            return None
        if not content.strip():
            return None
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            return None
        return data if isinstance(data, dict) else None

    def _write_holder(self) -> None:
        data = json.dumps({"pid": os.getpid(), "timestamp": time.time()})
        try:
            os.ftruncate(self._fd, 0)
            os.lseek(self._fd, 0, os.SEEK_SET)
            os.write(self._fd, data.encode())
        except OSError:
            logger.debug(f"Could not record lock holder in {self.path}")

    def __enter__(self) -> 'DeploymentLock':
        return self.acquire()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
