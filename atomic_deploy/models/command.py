"""Structured shell command descriptor"""

import shlex
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from ..constants import ELEVATION_PREFIX


@dataclass(frozen=True)
class Command:
    """A command to hand to the shell

    Arguments are kept as a list and quoted only when the final shell
    string is built, so paths and groups from the configuration can never
    change the structure of the command line.
    """

    args: Tuple[str, ...]
    working_dir: Optional[Path] = None
    elevated: bool = False
    timeout: Optional[float] = None
    elevation_prefix: str = field(default=ELEVATION_PREFIX, compare=False)

    def __post_init__(self):
        if isinstance(self.args, str):
            raise TypeError("Command args must be a sequence, not a string")
        object.__setattr__(self, "args", tuple(str(a) for a in self.args))
        if not self.args:
            raise ValueError("Command requires at least one argument")
        if self.working_dir is not None:
            object.__setattr__(self, "working_dir", Path(self.working_dir))

    @classmethod
    def of(cls,
           *args: Union[str, Path],
           cwd: Optional[Union[str, Path]] = None,
           elevated: bool = False,
           timeout: Optional[float] = None) -> 'Command':
        """Convenience constructor: Command.of('chmod', '-R', '775', 'var', cwd=release)"""
        return cls(args=tuple(str(a) for a in args),
                   working_dir=Path(cwd) if cwd is not None else None,
                   elevated=elevated,
                   timeout=timeout)

    def with_timeout(self, timeout: Optional[float]) -> 'Command':
        return replace(self, timeout=timeout)

    @property
    def display(self) -> str:
        """Command line without cd/elevation, for messages"""
        return shlex.join(self.args)

    def to_shell(self) -> str:
        """Build the final shell string

        Produces ``cd <dir> && <elevation> <command>``. The directory change
        appears once when a working dir is set; the elevation prefix appears
        at most once even if the args already start with it.
        """
        args: Sequence[str] = self.args
        if self.elevated and args[0] == self.elevation_prefix:
            args = args[1:]

        command = shlex.join(args)
        if self.elevated:
            command = f"{self.elevation_prefix} {command}"

        if self.working_dir is not None:
            command = f"cd {shlex.quote(str(self.working_dir))} && {command}"

        return command

    def __str__(self) -> str:
        return self.to_shell()
