"""Domain models for reporting views."""

from dataclasses import dataclass
from enum import Enum


class ReportPeriod(str, Enum):
    """Time windows offered by the HR rollup."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class MechanicTimeRollup:
    """Worked time for one mechanic inside a window."""

    mechanic_id: str
    name: str
    username: str
    total_ms: int
    session_count: int
    has_open_session: bool


@dataclass(frozen=True)
class RevenueRollup:
    """Revenue totals over a set of service records."""

    total_revenue: float
    total_tax: float
    count: int
    average_ticket: float


@dataclass(frozen=True)
class WorkshopOverview:
    """Summary card for a workshop."""

    workshop_id: str
    name: str
    total_revenue: float
    staff_count: int
    open_sessions: int
