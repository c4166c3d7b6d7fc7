"""Output sink interface for lifecycle progress"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class OutputSink(Protocol):
    """Receives progress events and streamed command output

    The lifecycle and the command runner only talk to this interface, the
    console rendering lives in the CLI layer.
    """

    def header(self, text: str) -> None:
        ...

    def step(self, text: str) -> None:
        ...

    def command_output(self, line: str) -> None:
        ...

    def success(self, text: str) -> None:
        ...

    def warning(self, text: str) -> None:
        ...


class NullSink:
    """Sink that discards everything"""

    def header(self, text: str) -> None:
        pass

    def step(self, text: str) -> None:
        pass

    def command_output(self, line: str) -> None:
        pass

    def success(self, text: str) -> None:
        pass

    def warning(self, text: str) -> None:
        pass
