"""Domain models for service records and tax settlements."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ServicePart:
    """Part line captured on a service record."""

    part_id: str
    name: str
    price: float
    quantity: int = 1
    category: str | None = None


@dataclass(frozen=True)
class ServiceRecord:
    """A finalized service order."""

    id: str
    mechanic_id: str
    mechanic_name: str
    customer_name: str
    customer_id: str
    authorized_by: str
    parts: tuple[ServicePart, ...]
    in_game_cost: float
    freelance_fee: float
    total_amount: float
    tax: float
    final_price: float
    timestamp: int
    vehicle_model: str | None = None
    plate: str | None = None
    notes: str | None = None
    extra: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class SettlementRecord:
    """Audit entry for a settled tax balance."""

    id: str
    mechanic_id: str
    mechanic_name: str
    amount: float
    settled_by_id: str
    settled_by_name: str
    timestamp: int
