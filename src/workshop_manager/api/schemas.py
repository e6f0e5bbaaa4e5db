"""Pydantic models for API payloads."""

from enum import Enum

from pydantic import BaseModel, Field

from workshop_manager.domain.ledger import ServicePart
from workshop_manager.domain.sessions import SessionStatus, WorkSession
from workshop_manager.services.durations import format_clock, session_duration_ms
from workshop_manager.services.orders import ServiceDraft
from workshop_manager.services.store import (
    Command,
    ForceFinalizeSession,
    PauseSession,
    ResumeSession,
    StartSession,
    StopSession,
)


class ServicePartIn(BaseModel):
    """Part line of an order."""

    part_id: str
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(default=1, ge=1)
    category: str | None = None


class ServiceDraftIn(BaseModel):
    """Order form submitted by a mechanic."""

    mechanic_id: str
    customer_name: str
    customer_id: str
    authorized_by: str = ""
    parts: list[ServicePartIn] = Field(default_factory=list)
    in_game_cost: float = Field(default=0.0, ge=0)
    vehicle_model: str | None = None
    plate: str | None = None
    notes: str | None = None

    def to_draft(self) -> ServiceDraft:
        """Convert the payload into a service draft."""
        return ServiceDraft(
            mechanic_id=self.mechanic_id,
            customer_name=self.customer_name,
            customer_id=self.customer_id,
            authorized_by=self.authorized_by,
            parts=tuple(ServicePart(**part.model_dump()) for part in self.parts),
            in_game_cost=self.in_game_cost,
            vehicle_model=self.vehicle_model,
            plate=self.plate,
            notes=self.notes,
        )


class ConfirmRequest(BaseModel):
    """Body of destructive admin actions."""

    confirm: bool = False


class DeleteSessionsRequest(ConfirmRequest):
    """Sessions selected for deletion."""

    session_ids: list[str] = Field(min_length=1)


class SettleRequest(ConfirmRequest):
    """Settlement of a user's tax balance."""

    settled_by_id: str
    settled_by_name: str


class PricingRequest(BaseModel):
    """Pricing fields of the workshop settings."""

    tax_rate: float = Field(ge=0, le=1)
    freelance_multiplier: float = Field(ge=0)
    currency_symbol: str = Field(min_length=1)


class WebhooksRequest(BaseModel):
    """Notification webhooks of the workshop settings."""

    estetica_webhook: str = ""
    performance_webhook: str = ""


class SessionView(BaseModel):
    """Work session with its live duration."""

    id: str
    mechanic_id: str
    mechanic_name: str
    status: SessionStatus
    start_time: int
    end_time: int | None
    pause_count: int
    duration_ms: int
    clock: str

    @classmethod
    def from_session(cls, session: WorkSession, now_ms: int) -> "SessionView":
        """Build a view of a session at ``now_ms``."""
        duration = session_duration_ms(session, now_ms)
        return cls(
            id=session.id,
            mechanic_id=session.mechanic_id,
            mechanic_name=session.mechanic_name,
            status=session.status,
            start_time=session.start_time,
            end_time=session.end_time,
            pause_count=len(session.pauses),
            duration_ms=duration,
            clock=format_clock(duration),
        )


class SessionAction(str, Enum):
    """Shift actions available to a mechanic."""

    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"


class AdminSessionAction(str, Enum):
    """Shift actions available to an administrator."""

    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"
    FORCE_FINALIZE = "force-finalize"


_SESSION_COMMANDS = {
    "start": StartSession,
    "pause": PauseSession,
    "resume": ResumeSession,
    "stop": StopSession,
}


def session_command(
    action: SessionAction | AdminSessionAction,
    workshop_id: str,
    mechanic_id: str,
    remote: bool = False,
    confirmed: bool = False,
) -> Command:
    """Map a route action onto a store command."""
    if action is AdminSessionAction.FORCE_FINALIZE:
        return ForceFinalizeSession(
            workshop_id=workshop_id, mechanic_id=mechanic_id, confirmed=confirmed
        )
    command_type = _SESSION_COMMANDS[action.value]
    return command_type(
        workshop_id=workshop_id, mechanic_id=mechanic_id, remote=remote
    )
