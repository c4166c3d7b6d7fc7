"""Exception definitions for atomic-deploy"""

from typing import Optional

from ..constants import ErrorCode


class AtomicDeployError(Exception):
    """Base exception for atomic-deploy

    ``step`` is filled in by the release lifecycle with the name of the
    state that was running when the error was raised.
    """

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.error_code = error_code
        self.step: Optional[str] = None


class ConfigError(AtomicDeployError):
    """Configuration error"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIG_ERROR)


class DeployIOError(AtomicDeployError):
    """Filesystem operation failed"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, ErrorCode.IO_ERROR)
        self.path = path


class CommandError(AtomicDeployError):
    """Subprocess outcome error"""

    def __init__(self, message: str, command: str, error_code: str = None):
        super().__init__(message, error_code)
        self.command = command


class ExecutionError(CommandError):
    """Process could not be started"""

    def __init__(self, command: str, reason: str):
        super().__init__(
            f"Failed to start command: {command} ({reason})",
            command,
            ErrorCode.EXECUTION_FAILED
        )


class CommandTimeoutError(CommandError):
    """Process exceeded its timeout and was killed"""

    def __init__(self, command: str, timeout: float):
        super().__init__(
            f"Command timed out after {timeout}s: {command}",
            command,
            ErrorCode.COMMAND_TIMEOUT
        )
        self.timeout = timeout


class NonZeroExitError(CommandError):
    """Process exited with a non-zero status"""

    def __init__(self, command: str, returncode: int):
        super().__init__(
            f"Command failed (exit {returncode}): {command}",
            command,
            ErrorCode.NON_ZERO_EXIT
        )
        self.returncode = returncode


class ReleaseError(AtomicDeployError):
    """Release precondition violated"""
    pass


class NoReleaseError(ReleaseError):
    """No release directory exists"""

    def __init__(self, releases_root: str):
        super().__init__(f"No releases found in {releases_root}", ErrorCode.NO_RELEASE)
        self.releases_root = releases_root


class NoPreviousReleaseError(ReleaseError):
    """Fewer than two releases exist"""

    def __init__(self, releases_root: str):
        super().__init__(
            f"There is no release to rollback to in {releases_root}",
            ErrorCode.NO_PREVIOUS_RELEASE
        )
        self.releases_root = releases_root


class CollisionError(ReleaseError):
    """Release directory with the same name already exists"""

    def __init__(self, path: str):
        super().__init__(f"Release already exists: {path}", ErrorCode.RELEASE_COLLISION)
        self.path = path


class AlreadyRunningError(AtomicDeployError):
    """Another deploy or rollback holds the lock"""

    def __init__(self, lock_path: str, holder: Optional[dict] = None):
        message = "The command is already running in another process"
        if holder and holder.get("pid"):
            message += f" (pid {holder['pid']})"
        super().__init__(message, ErrorCode.ALREADY_RUNNING)
        self.lock_path = lock_path
        self.holder = holder
