"""Operation result models"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .command import Command
from .release import Release


class LifecycleState(Enum):
    """Release lifecycle states"""
    IDLE = "idle"
    # Deploy path
    PREPARING = "preparing"
    LINKING = "linking"
    FIXING_PERMISSIONS = "fixing_permissions"
    SWITCHING = "switching"
    CLEANING = "cleaning"
    # Rollback path
    LOCATING_RELEASES = "locating_releases"
    SWITCHING_BACK = "switching_back"
    DELETING = "deleting"
    # Terminal
    DONE = "done"
    ERROR = "error"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one executed command"""
    command: Command
    returncode: int
    lines: Tuple[str, ...] = ()
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.returncode == 0


@dataclass
class LifecycleResult:
    """Result of a deploy or rollback run"""

    operation: str
    state: LifecycleState = LifecycleState.IDLE
    states: List[LifecycleState] = field(default_factory=list)
    release: Optional[Release] = None
    removed: List[Release] = field(default_factory=list)
    linked: Dict[str, str] = field(default_factory=dict)  # link -> target
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    @property
    def is_success(self) -> bool:
        return self.state == LifecycleState.DONE

    @property
    def duration(self) -> Optional[float]:
        """Get operation duration in seconds"""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def enter(self, state: LifecycleState) -> None:
        self.state = state
        self.states.append(state)

    def complete(self, state: LifecycleState) -> None:
        """Mark operation as complete"""
        self.enter(state)
        self.end_time = datetime.now()

