"""JSON codec for the stored application document.

The document uses camelCase keys and epoch-millisecond timestamps. Sessions
are stored as one flat ``workSessions`` list per workshop.
"""

import logging

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from workshop_manager.domain.ledger import ServicePart, ServiceRecord, SettlementRecord
from workshop_manager.domain.models import (
    DEFAULT_CATEGORY_GROUPS,
    AppState,
    UserRecord,
    Workshop,
    WorkshopSettings,
)
from workshop_manager.domain.sessions import (
    PauseInterval,
    SessionBook,
    SessionStatus,
    WorkSession,
)
from workshop_manager.services import time_tracking

logger = logging.getLogger(__name__)


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    def extras(self) -> dict[str, object]:
        return dict(self.model_extra or {})


class PauseIntervalModel(_WireModel):
    """Stored pause interval."""

    start: int
    end: int | None = None


class WorkSessionModel(_WireModel):
    """Stored work session."""

    id: str
    mechanic_id: str
    mechanic_name: str
    start_time: int
    end_time: int | None = None
    pauses: list[PauseIntervalModel] = Field(default_factory=list)
    status: SessionStatus


class ServicePartModel(_WireModel):
    """Stored part line of a service record."""

    part_id: str
    name: str
    price: float
    quantity: int = 1
    category: str | None = None


class ServiceRecordModel(_WireModel):
    """Stored service record."""

    id: str
    mechanic_id: str
    mechanic_name: str
    customer_name: str = ""
    customer_id: str = ""
    authorized_by: str = ""
    vehicle_model: str | None = None
    plate: str | None = None
    parts: list[ServicePartModel] = Field(default_factory=list)
    in_game_cost: float = 0.0
    freelance_fee: float = 0.0
    total_amount: float = 0.0
    tax: float = 0.0
    final_price: float = 0.0
    timestamp: int
    notes: str | None = None


class SettlementRecordModel(_WireModel):
    """Stored settlement entry."""

    id: str
    mechanic_id: str
    mechanic_name: str
    amount: float
    settled_by_id: str
    settled_by_name: str
    timestamp: int


class WorkshopSettingsModel(_WireModel):
    """Stored workshop settings."""

    workshop_name: str
    tax_rate: float = 0.15
    freelance_multiplier: float = 1.5
    currency_symbol: str = "R$"
    category_groups: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_GROUPS)
    )
    estetica_webhook: str = ""
    performance_webhook: str = ""


class WorkshopModel(_WireModel):
    """Stored workshop aggregate."""

    id: str
    name: str
    owner_id: str
    settings: WorkshopSettingsModel
    history: list[ServiceRecordModel] = Field(default_factory=list)
    work_sessions: list[WorkSessionModel] = Field(default_factory=list)
    settlements: list[SettlementRecordModel] = Field(default_factory=list)


class UserModel(_WireModel):
    """Stored user."""

    id: str
    username: str
    name: str
    role_id: str
    workshop_id: str
    pending_tax: float = 0.0
    avatar: str | None = None


class AppStateModel(_WireModel):
    """Stored application document."""

    workshops: list[WorkshopModel] = Field(default_factory=list)
    users: list[UserModel] = Field(default_factory=list)


def decode_state(payload: dict[str, object]) -> AppState:
    """Build domain state from a stored document."""
    model = AppStateModel.model_validate(payload)
    return AppState(
        workshops={ws.id: _decode_workshop(ws) for ws in model.workshops},
        users={user.id: _decode_user(user) for user in model.users},
        extra=model.extras(),
    )


def encode_state(state: AppState) -> dict[str, object]:
    """Serialize domain state into the stored document shape."""
    model = AppStateModel(
        workshops=[_encode_workshop(ws) for ws in state.workshops.values()],
        users=[_encode_user(user) for user in state.users.values()],
        **state.extra,
    )
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def _decode_workshop(model: WorkshopModel) -> Workshop:
    return Workshop(
        id=model.id,
        name=model.name,
        owner_id=model.owner_id,
        settings=WorkshopSettings(
            workshop_name=model.settings.workshop_name,
            tax_rate=model.settings.tax_rate,
            freelance_multiplier=model.settings.freelance_multiplier,
            currency_symbol=model.settings.currency_symbol,
            category_groups=dict(model.settings.category_groups),
            estetica_webhook=model.settings.estetica_webhook,
            performance_webhook=model.settings.performance_webhook,
            extra=model.settings.extras(),
        ),
        history=tuple(_decode_record(record) for record in model.history),
        sessions=_build_book(model.id, model.work_sessions),
        settlements=tuple(
            SettlementRecord(**entry.model_dump(exclude=set(entry.extras())))
            for entry in model.settlements
        ),
        extra=model.extras(),
    )


def _build_book(workshop_id: str, models: list[WorkSessionModel]) -> SessionBook:
    open_sessions: dict[str, WorkSession] = {}
    closed: list[WorkSession] = []
    for item in models:
        session = WorkSession(
            id=item.id,
            mechanic_id=item.mechanic_id,
            mechanic_name=item.mechanic_name,
            start_time=item.start_time,
            end_time=item.end_time,
            status=item.status,
            pauses=tuple(PauseInterval(start=p.start, end=p.end) for p in item.pauses),
        )
        if not session.is_open:
            closed.append(session)
            continue
        existing = open_sessions.get(session.mechanic_id)
        if existing is not None:
            older, session = sorted((existing, session), key=lambda s: s.start_time)
            retired = time_tracking.complete(older, _retire_time(older, session))
            logger.warning(
                "Workshop %s has several open sessions for %s; completing %s",
                workshop_id,
                session.mechanic_id,
                older.id,
            )
            closed.append(retired)
        open_sessions[session.mechanic_id] = session
    return SessionBook(open=open_sessions, closed=tuple(closed))


def _retire_time(older: WorkSession, newer: WorkSession) -> int:
    """End a superseded session at its open pause or when the next one began."""
    if older.pauses and older.pauses[-1].is_open:
        return min(older.pauses[-1].start, newer.start_time)
    return newer.start_time


def _decode_record(model: ServiceRecordModel) -> ServiceRecord:
    return ServiceRecord(
        id=model.id,
        mechanic_id=model.mechanic_id,
        mechanic_name=model.mechanic_name,
        customer_name=model.customer_name,
        customer_id=model.customer_id,
        authorized_by=model.authorized_by,
        parts=tuple(
            ServicePart(
                part_id=part.part_id,
                name=part.name,
                price=part.price,
                quantity=part.quantity,
                category=part.category,
            )
            for part in model.parts
        ),
        in_game_cost=model.in_game_cost,
        freelance_fee=model.freelance_fee,
        total_amount=model.total_amount,
        tax=model.tax,
        final_price=model.final_price,
        timestamp=model.timestamp,
        vehicle_model=model.vehicle_model,
        plate=model.plate,
        notes=model.notes,
        extra=model.extras(),
    )


def _decode_user(model: UserModel) -> UserRecord:
    return UserRecord(
        id=model.id,
        username=model.username,
        name=model.name,
        role_id=model.role_id,
        workshop_id=model.workshop_id,
        pending_tax=model.pending_tax,
        avatar=model.avatar,
        extra=model.extras(),
    )


def _encode_workshop(workshop: Workshop) -> WorkshopModel:
    settings = workshop.settings
    sessions = [*workshop.sessions.closed, *workshop.sessions.open.values()]
    return WorkshopModel(
        id=workshop.id,
        name=workshop.name,
        owner_id=workshop.owner_id,
        settings=WorkshopSettingsModel(
            workshop_name=settings.workshop_name,
            tax_rate=settings.tax_rate,
            freelance_multiplier=settings.freelance_multiplier,
            currency_symbol=settings.currency_symbol,
            category_groups=dict(settings.category_groups),
            estetica_webhook=settings.estetica_webhook,
            performance_webhook=settings.performance_webhook,
            **settings.extra,
        ),
        history=[_encode_record(record) for record in workshop.history],
        work_sessions=[
            WorkSessionModel(
                id=session.id,
                mechanic_id=session.mechanic_id,
                mechanic_name=session.mechanic_name,
                start_time=session.start_time,
                end_time=session.end_time,
                status=session.status,
                pauses=[
                    PauseIntervalModel(start=p.start, end=p.end)
                    for p in session.pauses
                ],
            )
            for session in sorted(sessions, key=lambda s: s.start_time)
        ],
        settlements=[
            SettlementRecordModel(
                id=entry.id,
                mechanic_id=entry.mechanic_id,
                mechanic_name=entry.mechanic_name,
                amount=entry.amount,
                settled_by_id=entry.settled_by_id,
                settled_by_name=entry.settled_by_name,
                timestamp=entry.timestamp,
            )
            for entry in workshop.settlements
        ],
        **workshop.extra,
    )


def _encode_record(record: ServiceRecord) -> ServiceRecordModel:
    return ServiceRecordModel(
        id=record.id,
        mechanic_id=record.mechanic_id,
        mechanic_name=record.mechanic_name,
        customer_name=record.customer_name,
        customer_id=record.customer_id,
        authorized_by=record.authorized_by,
        vehicle_model=record.vehicle_model,
        plate=record.plate,
        parts=[
            ServicePartModel(
                part_id=part.part_id,
                name=part.name,
                price=part.price,
                quantity=part.quantity,
                category=part.category,
            )
            for part in record.parts
        ],
        in_game_cost=record.in_game_cost,
        freelance_fee=record.freelance_fee,
        total_amount=record.total_amount,
        tax=record.tax,
        final_price=record.final_price,
        timestamp=record.timestamp,
        notes=record.notes,
        **record.extra,
    )


def _encode_user(user: UserRecord) -> UserModel:
    return UserModel(
        id=user.id,
        username=user.username,
        name=user.name,
        role_id=user.role_id,
        workshop_id=user.workshop_id,
        pending_tax=user.pending_tax,
        avatar=user.avatar,
        **user.extra,
    )
