"""Shell command execution with streamed output"""

import asyncio
import logging
import os
import signal
import time
from typing import AsyncIterator, List, Optional

from ..api.exceptions import CommandTimeoutError, ExecutionError, NonZeroExitError
from ..constants import DEFAULT_PROCESS_TIMEOUT, ELEVATION_PREFIX
from ..models.command import Command
from ..models.config import DeployConfig
from ..models.result import CommandResult
from .output import NullSink, OutputSink

logger = logging.getLogger(__name__)

# Upper bound for a single output line held by the stream reader
STREAM_LINE_LIMIT = 1024 * 1024

# Seconds a stopped command gets between SIGTERM and SIGKILL
TERMINATE_GRACE_PERIOD = 5.0


class CommandStream:
    """Lazy, finite, non-restartable sequence of output lines

    Iterating yields each line of combined stdout/stderr as the process
    produces it. A line longer than STREAM_LINE_LIMIT is yielded in
    limit-sized pieces. When iteration ends the process has exited and
    ``returncode`` is set. A stream that runs past its deadline terminates
    the whole process group and raises CommandTimeoutError.
    """

    grace_period = TERMINATE_GRACE_PERIOD

    def __init__(self,
                 process: asyncio.subprocess.Process,
                 shell: str,
                 timeout: Optional[float]):
        self.process = process
        self.shell = shell
        self.timeout = timeout
        self.returncode: Optional[int] = None
        self._loop = asyncio.get_running_loop()
        self._deadline = self._loop.time() + timeout if timeout else None
        self._finished = False

    def __aiter__(self) -> 'CommandStream':
        return self

    async def __anext__(self) -> str:
        if self._finished:
            raise StopAsyncIteration

        try:
            raw = await self._bounded(self._read_line())
            if raw:
                return raw.decode("utf-8", errors="replace").rstrip("\r\n")

            # EOF on the pipe, the process may still be running
            self.returncode = await self._bounded(self.process.wait())
        except asyncio.TimeoutError:
            await self._terminate()
            raise CommandTimeoutError(self.shell, self.timeout)

        self._finished = True
        raise StopAsyncIteration

    async def _read_line(self) -> bytes:
        """Next line, or the next piece of a line that overruns the limit"""
        stdout = self.process.stdout
        try:
            return await stdout.readuntil(b"\n")
        except asyncio.IncompleteReadError as e:
            # EOF, with an unterminated last line or nothing at all
            return e.partial
        except asyncio.LimitOverrunError as e:
            return await stdout.read(e.consumed)

    async def _bounded(self, awaitable):
        if self._deadline is None:
            return await awaitable
        remaining = self._deadline - self._loop.time()
        if remaining <= 0:
            # Close the pending coroutine before giving up on it
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise asyncio.TimeoutError
        return await asyncio.wait_for(awaitable, remaining)

    async def aclose(self) -> None:
        """Terminate the process group if the command is still running"""
        self._finished = True
        if self.process.returncode is None:
            await self._terminate()
        self.returncode = self.process.returncode

    async def _terminate(self) -> None:
        """SIGTERM the process group, SIGKILL it after the grace period

        Elevation wrappers such as sudo relay SIGTERM to the command they
        run but cannot relay SIGKILL. The grace period ends early once every
        process holding the output pipe has exited.
        """
        self._finished = True
        self._signal_group(signal.SIGTERM)
        try:
            await asyncio.wait_for(self._drain(), self.grace_period)
        except asyncio.TimeoutError:
            logger.warning(f"Command still running {self.grace_period}s after SIGTERM, killing: {self.shell}")

        self._signal_group(signal.SIGKILL)
        self.returncode = await self.process.wait()

    async def _drain(self) -> None:
        while await self.process.stdout.read(STREAM_LINE_LIMIT):
            pass
        await self.process.wait()

    def _signal_group(self, sig: int) -> None:
        try:
            os.killpg(self.process.pid, sig)
        except ProcessLookupError:
            pass
        except PermissionError:
            logger.warning(f"Cannot signal process group {self.process.pid}, signalling shell only")
            try:
                self.process.send_signal(sig)
            except ProcessLookupError:
                pass


class CommandRunner:
    """Runs shell commands one at a time and forwards their output"""

    def __init__(self,
                 sink: Optional[OutputSink] = None,
                 default_timeout: Optional[float] = DEFAULT_PROCESS_TIMEOUT,
                 elevation_prefix: str = ELEVATION_PREFIX):
        """Initialize command runner

        Args:
            sink: Receives each output line as it is produced
            default_timeout: Seconds allowed when a command sets no timeout,
                None for no limit
            elevation_prefix: Privilege elevation program
        """
        self.sink = sink or NullSink()
        self.default_timeout = default_timeout
        self.elevation_prefix = elevation_prefix

    @classmethod
    def from_config(cls, config: DeployConfig, sink: Optional[OutputSink] = None) -> 'CommandRunner':
        return cls(sink=sink, default_timeout=config.process_timeout)

    def _prepare(self, command: Command) -> Command:
        if command.elevation_prefix != self.elevation_prefix:
            command = Command(args=command.args,
                              working_dir=command.working_dir,
                              elevated=command.elevated,
                              timeout=command.timeout,
                              elevation_prefix=self.elevation_prefix)
        if command.timeout is None and self.default_timeout:
            command = command.with_timeout(self.default_timeout)
        return command

    async def open(self, command: Command) -> CommandStream:
        """Start a command and return its output stream

        Raises:
            ExecutionError: If the process cannot be started
        """
        command = self._prepare(command)
        shell = command.to_shell()
        logger.debug(f"Running: {shell}")

        try:
            process = await asyncio.create_subprocess_shell(
                shell,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                start_new_session=True,
                limit=STREAM_LINE_LIMIT,
            )
        except OSError as e:
            raise ExecutionError(shell, str(e)) from e

        return CommandStream(process, shell, command.timeout)

    async def stream(self, command: Command) -> AsyncIterator[str]:
        """Yield each output line of a command as it is produced

        The process group is terminated if the consumer stops early.
        """
        stream = await self.open(command)
        try:
            async for line in stream:
                yield line
        finally:
            await stream.aclose()

    async def run(self, command: Command, *, check: bool = True) -> CommandResult:
        """Run a command to completion, streaming output to the sink

        Args:
            command: Command to run
            check: Raise NonZeroExitError on a non-zero exit status

        Returns:
            CommandResult with exit code and captured lines

        Raises:
            ExecutionError: If the process cannot be started
            CommandTimeoutError: If the command exceeds its timeout
            NonZeroExitError: If check is set and the command fails
        """
        start = time.monotonic()
        stream = await self.open(command)
        lines: List[str] = []

        try:
            async for line in stream:
                lines.append(line)
                if line.strip():
                    self.sink.command_output(line.strip())
        finally:
            await stream.aclose()

        result = CommandResult(
            command=command,
            returncode=stream.returncode,
            lines=tuple(lines),
            duration=time.monotonic() - start,
        )

        if not result.success:
            logger.warning(f"Command exited with {result.returncode}: {stream.shell}")
            if check:
                raise NonZeroExitError(stream.shell, result.returncode)

        return result
