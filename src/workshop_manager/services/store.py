"""Application store: typed commands reduced into immutable snapshots."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from time import time_ns
from typing import Final, Protocol
from uuid import uuid4

from workshop_manager.domain.ledger import ServiceRecord
from workshop_manager.domain.models import (
    AppState,
    UserRecord,
    Workshop,
    WorkshopSettings,
)
from workshop_manager.domain.sessions import SessionBook
from workshop_manager.services import ledger, time_tracking

logger = logging.getLogger(__name__)

SUPER_ADMIN_ID = "u1"


class SyncStatus(str, Enum):
    """Coarse status of the remote synchronization."""

    ONLINE = "online"
    SYNCING = "syncing"
    ERROR = "error"
    OFFLINE = "offline"


class EmptySnapshot:
    """Marker returned when the remote store holds no document yet."""

    def __repr__(self) -> str:
        return "EMPTY_SNAPSHOT"


EMPTY_SNAPSHOT: Final = EmptySnapshot()


class SnapshotRepository(Protocol):
    """Persistence interface for the whole application snapshot."""

    def fetch_snapshot(self) -> AppState | EmptySnapshot | None:
        """Return the remote snapshot, EMPTY_SNAPSHOT, or None on failure."""

    def save_snapshot(self, state: AppState) -> bool:
        """Persist the snapshot and return True on success."""


@dataclass(frozen=True)
class StartSession:
    """Open a shift for a mechanic."""

    workshop_id: str
    mechanic_id: str
    remote: bool = False


@dataclass(frozen=True)
class PauseSession:
    """Pause a mechanic's active shift."""

    workshop_id: str
    mechanic_id: str
    remote: bool = False


@dataclass(frozen=True)
class ResumeSession:
    """Resume a mechanic's paused shift."""

    workshop_id: str
    mechanic_id: str
    remote: bool = False


@dataclass(frozen=True)
class StopSession:
    """Finish a mechanic's shift."""

    workshop_id: str
    mechanic_id: str
    remote: bool = False


@dataclass(frozen=True)
class ForceFinalizeSession:
    """Administrative finish of a mechanic's shift; needs confirmation."""

    workshop_id: str
    mechanic_id: str
    confirmed: bool = False


@dataclass(frozen=True)
class DeleteSessions:
    """Remove session records; needs confirmation."""

    workshop_id: str
    session_ids: frozenset[str]
    confirmed: bool = False


@dataclass(frozen=True)
class RecordService:
    """Append a finalized service record and accrue its tax."""

    workshop_id: str
    record: ServiceRecord


@dataclass(frozen=True)
class SettleTax:
    """Settle a user's whole tax balance; needs confirmation."""

    workshop_id: str
    user_id: str
    settled_by_id: str
    settled_by_name: str
    confirmed: bool = False


@dataclass(frozen=True)
class UpdatePricing:
    """Replace the pricing fields of a workshop's settings."""

    workshop_id: str
    tax_rate: float
    freelance_multiplier: float
    currency_symbol: str


@dataclass(frozen=True)
class UpdateWebhooks:
    """Replace the notification webhooks of a workshop's settings."""

    workshop_id: str
    estetica_webhook: str
    performance_webhook: str


Command = (
    StartSession
    | PauseSession
    | ResumeSession
    | StopSession
    | ForceFinalizeSession
    | DeleteSessions
    | RecordService
    | SettleTax
    | UpdatePricing
    | UpdateWebhooks
)


def reduce(  # noqa: PLR0911
    state: AppState, command: Command, now_ms: int, new_id: Callable[[], str]
) -> AppState:
    """Apply a command and return the next state.

    Commands that do not apply (unknown workshop, no qualifying session,
    declined confirmation, zero balance) return ``state`` itself.
    """
    workshop = state.workshops.get(command.workshop_id)
    if workshop is None:
        return state

    if isinstance(command, StartSession):
        mechanic = state.users.get(command.mechanic_id)
        if mechanic is None or mechanic.workshop_id != workshop.id:
            return state
        book = time_tracking.start(
            workshop.sessions, mechanic.id, mechanic.name, new_id(), now_ms
        )
        return _with_sessions(state, workshop, book)
    if isinstance(command, PauseSession):
        book = time_tracking.pause_for(workshop.sessions, command.mechanic_id, now_ms)
        return _with_sessions(state, workshop, book)
    if isinstance(command, ResumeSession):
        book = time_tracking.resume_for(workshop.sessions, command.mechanic_id, now_ms)
        return _with_sessions(state, workshop, book)
    if isinstance(command, StopSession | ForceFinalizeSession):
        if isinstance(command, ForceFinalizeSession) and not command.confirmed:
            return state
        book = time_tracking.stop_for(workshop.sessions, command.mechanic_id, now_ms)
        return _with_sessions(state, workshop, book)
    if isinstance(command, DeleteSessions):
        if not command.confirmed:
            return state
        book = time_tracking.delete(workshop.sessions, set(command.session_ids))
        return _with_sessions(state, workshop, book)
    if isinstance(command, RecordService):
        return ledger.accrue_tax(state, workshop.id, command.record)
    if isinstance(command, SettleTax):
        if not command.confirmed:
            return state
        return ledger.settle_tax(
            state,
            workshop_id=workshop.id,
            user_id=command.user_id,
            settled_by_id=command.settled_by_id,
            settled_by_name=command.settled_by_name,
            settlement_id=new_id(),
            now_ms=now_ms,
        )
    if isinstance(command, UpdatePricing):
        settings = replace(
            workshop.settings,
            tax_rate=command.tax_rate,
            freelance_multiplier=command.freelance_multiplier,
            currency_symbol=command.currency_symbol,
        )
        return _with_settings(state, workshop, settings)
    if isinstance(command, UpdateWebhooks):
        settings = replace(
            workshop.settings,
            estetica_webhook=command.estetica_webhook,
            performance_webhook=command.performance_webhook,
        )
        return _with_settings(state, workshop, settings)
    return state


def initial_state() -> AppState:
    """Return the seed state pushed to an empty remote store."""
    admin = UserRecord(
        id=SUPER_ADMIN_ID,
        username="Panda",
        name="Panda (Super Admin)",
        role_id="r_admin",
        workshop_id="system",
    )
    workshop = Workshop(
        id="w1",
        name="Oficina Central Pro",
        owner_id=SUPER_ADMIN_ID,
        settings=WorkshopSettings(workshop_name="Oficina Central Pro"),
    )
    return AppState(workshops={workshop.id: workshop}, users={admin.id: admin})


def system_clock_ms() -> int:
    """Return the current time in epoch milliseconds."""
    return time_ns() // 1_000_000


def new_record_id() -> str:
    """Return a short random identifier."""
    return uuid4().hex[:12]


@dataclass
class WorkshopStore:
    """Holds the current snapshot and writes every change through."""

    repository: SnapshotRepository
    state: AppState = field(default_factory=initial_state)
    clock: Callable[[], int] = system_clock_ms
    new_id: Callable[[], str] = new_record_id
    status: SyncStatus = SyncStatus.OFFLINE
    _writer: asyncio.Task[None] | None = field(default=None, repr=False)
    _dirty: bool = field(default=False, repr=False)

    def dispatch(self, command: Command) -> bool:
        """Apply a command locally and persist the result in the background.

        Returns True when the state changed. The local state is updated
        before persistence completes and is never rolled back.
        """
        next_state = reduce(self.state, command, self.clock(), self.new_id)
        if next_state is self.state:
            logger.debug("Ignored %s", type(command).__name__)
            return False
        self.state = next_state
        logger.info(
            "Applied %s on workshop %s%s",
            type(command).__name__,
            command.workshop_id,
            " (remote)" if getattr(command, "remote", False) else "",
        )
        self.push()
        return True

    def replace(self, state: AppState) -> None:
        """Replace the local snapshot wholesale with a fetched one."""
        self.state = state

    def workshop(self, workshop_id: str) -> Workshop | None:
        """Return a workshop from the current snapshot."""
        return self.state.workshops.get(workshop_id)

    def push(self) -> None:
        """Write the current snapshot through without waiting for it.

        Inside an event loop one writer task drains the changes in order and
        always saves the newest snapshot, so an older write never lands last.
        """
        self.status = SyncStatus.SYNCING
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._record_save(self._save_now(self.state))
            return
        self._dirty = True
        writer = self._writer
        if writer is None or writer.done() or writer.get_loop() is not loop:
            self._writer = loop.create_task(self._drain())

    async def flush(self) -> None:
        """Wait for in-flight writes to finish."""
        writer = self._writer
        if (
            writer is not None
            and not writer.done()
            and writer.get_loop() is asyncio.get_running_loop()
        ):
            await asyncio.gather(writer, return_exceptions=True)

    async def _drain(self) -> None:
        while self._dirty:
            self._dirty = False
            saved = await asyncio.to_thread(self._save_now, self.state)
            if not saved or not self._dirty:
                self._record_save(saved)

    def _save_now(self, snapshot: AppState) -> bool:
        try:
            return self.repository.save_snapshot(snapshot)
        except Exception:
            logger.exception("Snapshot save raised")
            return False

    def _record_save(self, saved: bool) -> None:
        if saved:
            self.status = SyncStatus.ONLINE
        else:
            logger.warning("Snapshot save failed; keeping local state")
            self.status = SyncStatus.ERROR


def _with_sessions(
    state: AppState, workshop: Workshop, book: SessionBook
) -> AppState:
    if book is workshop.sessions:
        return state
    return replace(
        state,
        workshops={**state.workshops, workshop.id: replace(workshop, sessions=book)},
    )


def _with_settings(
    state: AppState, workshop: Workshop, settings: WorkshopSettings
) -> AppState:
    if settings == workshop.settings:
        return state
    return replace(
        state,
        workshops={
            **state.workshops,
            workshop.id: replace(workshop, settings=settings),
        },
    )
