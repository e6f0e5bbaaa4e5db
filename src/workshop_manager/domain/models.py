"""Domain models for workshops and their staff."""

from dataclasses import dataclass, field

from workshop_manager.domain.ledger import ServiceRecord, SettlementRecord
from workshop_manager.domain.sessions import SessionBook

DEFAULT_CATEGORY_GROUPS = {
    "Motor": "Performance",
    "Transmissão": "Performance",
    "Lataria": "Estetica",
    "Suspensão": "Performance",
    "Estetica": "Estetica",
    "Outro": "Estetica",
}


@dataclass(frozen=True)
class UserRecord:
    """Represents a staff member of a workshop."""

    id: str
    username: str
    name: str
    role_id: str
    workshop_id: str
    pending_tax: float = 0.0
    avatar: str | None = None
    extra: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkshopSettings:
    """Pricing and notification settings of a workshop."""

    workshop_name: str
    tax_rate: float = 0.15
    freelance_multiplier: float = 1.5
    currency_symbol: str = "R$"
    category_groups: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_GROUPS)
    )
    estetica_webhook: str = ""
    performance_webhook: str = ""
    extra: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class Workshop:
    """A tenant with its own history, sessions and settlement archive."""

    id: str
    name: str
    owner_id: str
    settings: WorkshopSettings
    history: tuple[ServiceRecord, ...] = ()
    sessions: SessionBook = field(default_factory=SessionBook)
    settlements: tuple[SettlementRecord, ...] = ()
    extra: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class AppState:
    """Whole application snapshot as stored remotely.

    Document keys this service does not model travel in ``extra`` so that a
    wholesale save does not drop data owned by other screens.
    """

    workshops: dict[str, Workshop] = field(default_factory=dict)
    users: dict[str, UserRecord] = field(default_factory=dict)
    extra: dict[str, object] = field(default_factory=dict)

    def staff_of(self, workshop_id: str) -> list[UserRecord]:
        """Return users assigned to a workshop."""
        return [user for user in self.users.values() if user.workshop_id == workshop_id]
