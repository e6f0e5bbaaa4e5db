"""Read-only rollups over sessions and service records."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

from workshop_manager.domain.ledger import ServiceRecord
from workshop_manager.domain.models import AppState, UserRecord
from workshop_manager.domain.reports import (
    MechanicTimeRollup,
    ReportPeriod,
    RevenueRollup,
    WorkshopOverview,
)
from workshop_manager.domain.sessions import SessionBook
from workshop_manager.services import time_tracking
from workshop_manager.services.durations import session_duration_ms
from workshop_manager.services.store import WorkshopStore

_WINDOW_DAYS = {
    ReportPeriod.DAILY: 0,
    ReportPeriod.WEEKLY: 7,
    ReportPeriod.MONTHLY: 30,
}


def window_start_ms(period: ReportPeriod, now_ms: int, tz: ZoneInfo) -> int:
    """Return the inclusive lower bound of a report window.

    Windows are anchored at local midnight of ``now_ms`` and reach back a
    fixed number of 24h days; they are not calendar weeks or months.
    """
    now = datetime.fromtimestamp(now_ms / 1000, tz=tz)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    start = midnight.astimezone(UTC) - timedelta(days=_WINDOW_DAYS[period])
    return int(start.timestamp() * 1000)


def mechanic_time_rollup(
    users: Iterable[UserRecord],
    book: SessionBook,
    period: ReportPeriod,
    now_ms: int,
    tz: ZoneInfo,
) -> list[MechanicTimeRollup]:
    """Return worked time per user inside the window, highest first."""
    since = window_start_ms(period, now_ms, tz)
    sessions = time_tracking.all_sessions(book)
    rollups = []
    for user in users:
        in_window = [
            s for s in sessions if s.mechanic_id == user.id and s.start_time >= since
        ]
        rollups.append(
            MechanicTimeRollup(
                mechanic_id=user.id,
                name=user.name,
                username=user.username,
                total_ms=sum(session_duration_ms(s, now_ms) for s in in_window),
                session_count=len(in_window),
                has_open_session=user.id in book.open,
            )
        )
    return sorted(rollups, key=lambda rollup: rollup.total_ms, reverse=True)


def revenue_rollup(
    records: Iterable[ServiceRecord], mechanic_id: str | None = None
) -> RevenueRollup:
    """Sum revenue and tax, optionally scoped to one mechanic."""
    scoped = [
        record
        for record in records
        if mechanic_id is None or record.mechanic_id == mechanic_id
    ]
    total_revenue = sum(record.final_price for record in scoped)
    count = len(scoped)
    return RevenueRollup(
        total_revenue=total_revenue,
        total_tax=sum(record.tax for record in scoped),
        count=count,
        average_ticket=total_revenue / count if count else 0.0,
    )


def search_services(
    records: Iterable[ServiceRecord],
    query: str = "",
    mechanic_id: str | None = None,
) -> list[ServiceRecord]:
    """Return matching service records, newest first.

    The query is a case-insensitive substring of the customer name, customer
    id, mechanic name or authorizer. An empty query matches every record.
    """
    needle = query.strip().lower()
    matches = [
        record
        for record in records
        if (mechanic_id is None or record.mechanic_id == mechanic_id)
        and (
            not needle
            or any(
                needle in value.lower()
                for value in (
                    record.customer_name,
                    record.customer_id,
                    record.mechanic_name,
                    record.authorized_by,
                )
            )
        )
    ]
    return sorted(matches, key=lambda record: record.timestamp, reverse=True)


def workshop_overview(state: AppState) -> list[WorkshopOverview]:
    """Return one summary per workshop."""
    return [
        WorkshopOverview(
            workshop_id=workshop.id,
            name=workshop.name,
            total_revenue=revenue_rollup(workshop.history).total_revenue,
            staff_count=len(state.staff_of(workshop.id)),
            open_sessions=len(workshop.sessions.open),
        )
        for workshop in state.workshops.values()
    ]


@dataclass
class ReportService:
    """Service computing live reports from the current snapshot."""

    store: WorkshopStore
    timezone_name: str = "UTC"

    def time_rollup(
        self, workshop_id: str, period: ReportPeriod
    ) -> list[MechanicTimeRollup] | None:
        """Return the HR time rollup for a workshop's staff."""
        workshop = self.store.workshop(workshop_id)
        if workshop is None:
            return None
        return mechanic_time_rollup(
            self.store.state.staff_of(workshop_id),
            workshop.sessions,
            period,
            self.store.clock(),
            ZoneInfo(self.timezone_name),
        )

    def revenue(
        self, workshop_id: str, mechanic_id: str | None = None
    ) -> RevenueRollup | None:
        """Return the revenue rollup of a workshop or one of its mechanics."""
        workshop = self.store.workshop(workshop_id)
        if workshop is None:
            return None
        return revenue_rollup(workshop.history, mechanic_id)

    def services(
        self,
        workshop_id: str,
        query: str = "",
        mechanic_id: str | None = None,
        limit: int | None = None,
    ) -> list[ServiceRecord] | None:
        """Search a workshop's service history, newest first."""
        workshop = self.store.workshop(workshop_id)
        if workshop is None:
            return None
        return search_services(workshop.history, query, mechanic_id)[:limit]

    def overview(self) -> list[WorkshopOverview]:
        """Return summaries for every workshop."""
        return workshop_overview(self.store.state)
