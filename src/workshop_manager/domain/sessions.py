"""Domain models for mechanic work sessions."""

from dataclasses import dataclass, field
from enum import Enum


class SessionStatus(str, Enum):
    """Lifecycle states of a work session."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass(frozen=True)
class PauseInterval:
    """A pause inside a session; ``end`` is None while the pause is running."""

    start: int
    end: int | None = None

    @property
    def is_open(self) -> bool:
        """Return True when the pause has not been closed yet."""
        return self.end is None


@dataclass(frozen=True)
class WorkSession:
    """One on-duty shift for a mechanic. Timestamps are epoch milliseconds."""

    id: str
    mechanic_id: str
    mechanic_name: str
    start_time: int
    status: SessionStatus
    pauses: tuple[PauseInterval, ...] = ()
    end_time: int | None = None

    @property
    def is_open(self) -> bool:
        """Return True while the session can still change."""
        return self.status is not SessionStatus.COMPLETED


@dataclass(frozen=True)
class SessionBook:
    """Sessions of one workshop.

    At most one open session per mechanic lives in ``open``; completed
    sessions are archived in ``closed``.
    """

    open: dict[str, WorkSession] = field(default_factory=dict)
    closed: tuple[WorkSession, ...] = ()
