"""Service order pricing and finalization."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from workshop_manager.domain.ledger import ServicePart, ServiceRecord
from workshop_manager.domain.models import WorkshopSettings
from workshop_manager.services.store import RecordService, WorkshopStore

logger = logging.getLogger(__name__)

ESTETICA = "Estetica"
PERFORMANCE = "Performance"
_GROUP_COLORS = {PERFORMANCE: 0x3B82F6, ESTETICA: 0xEC4899}


class WebhookClient(Protocol):
    """Interface for posting service announcements."""

    async def post_embed(self, webhook_url: str, embed: dict[str, object]) -> None:
        """Post a single embed to a webhook URL."""


@dataclass(frozen=True)
class ServiceQuote:
    """Price breakdown of a service order."""

    parts_subtotal: float
    freelance_fee: float
    total_amount: float
    tax: float
    final_price: float


@dataclass(frozen=True)
class ServiceDraft:
    """Order data entered before finalization."""

    mechanic_id: str
    customer_name: str
    customer_id: str
    authorized_by: str
    parts: tuple[ServicePart, ...]
    in_game_cost: float
    vehicle_model: str | None = None
    plate: str | None = None
    notes: str | None = None


def quote_service(
    parts: tuple[ServicePart, ...], in_game_cost: float, settings: WorkshopSettings
) -> ServiceQuote:
    """Price an order: parts plus freelance labor, then tax on top."""
    parts_subtotal = sum(part.price * part.quantity for part in parts)
    freelance_fee = in_game_cost * settings.freelance_multiplier
    total_amount = parts_subtotal + freelance_fee
    tax = total_amount * settings.tax_rate
    return ServiceQuote(
        parts_subtotal=parts_subtotal,
        freelance_fee=freelance_fee,
        total_amount=total_amount,
        tax=tax,
        final_price=total_amount + tax,
    )


def build_service_record(
    draft: ServiceDraft,
    mechanic_name: str,
    settings: WorkshopSettings,
    record_id: str,
    now_ms: int,
) -> ServiceRecord:
    """Freeze a draft into a priced service record."""
    quote = quote_service(draft.parts, draft.in_game_cost, settings)
    return ServiceRecord(
        id=record_id,
        mechanic_id=draft.mechanic_id,
        mechanic_name=mechanic_name,
        customer_name=draft.customer_name,
        customer_id=draft.customer_id,
        authorized_by=draft.authorized_by,
        parts=draft.parts,
        in_game_cost=draft.in_game_cost,
        freelance_fee=quote.freelance_fee,
        total_amount=quote.total_amount,
        tax=quote.tax,
        final_price=quote.final_price,
        timestamp=now_ms,
        vehicle_model=draft.vehicle_model,
        plate=draft.plate,
        notes=draft.notes,
    )


def category_group(part: ServicePart, settings: WorkshopSettings) -> str:
    """Return the notification group of a part; unknown categories are Estetica."""
    return settings.category_groups.get(part.category or "", ESTETICA)


def build_service_embeds(
    record: ServiceRecord, settings: WorkshopSettings
) -> list[tuple[str, dict[str, object]]]:
    """Return (webhook_url, embed) pairs, one per group touched by the order.

    Freelance labor counts as Estetica. Groups without a configured webhook
    are skipped.
    """
    groups: dict[str, list[ServicePart]] = {}
    if record.freelance_fee > 0:
        groups[ESTETICA] = []
    for part in record.parts:
        groups.setdefault(category_group(part, settings), []).append(part)

    embeds = []
    for group, parts in groups.items():
        url = (
            settings.performance_webhook
            if group == PERFORMANCE
            else settings.estetica_webhook
        )
        if not url:
            continue
        lines = [f"• {part.name}" for part in parts]
        if group == ESTETICA and record.freelance_fee > 0:
            lines.insert(0, "• Freelance labor")
        embeds.append(
            (
                url,
                {
                    "title": f"SERVICE: {group.upper()} - {settings.workshop_name}",
                    "description": f"{group} service completed.",
                    "color": _GROUP_COLORS.get(group, _GROUP_COLORS[ESTETICA]),
                    "fields": [
                        {
                            "name": "Customer",
                            "value": f"{record.customer_name} "
                            f"(ID: {record.customer_id})",
                            "inline": True,
                        },
                        {
                            "name": "Mechanic",
                            "value": record.mechanic_name,
                            "inline": True,
                        },
                        {
                            "name": "Total",
                            "value": f"{settings.currency_symbol} "
                            f"{record.final_price:,.2f}",
                            "inline": True,
                        },
                        {
                            "name": "Items",
                            "value": "\n".join(lines) or "Basic labor only.",
                        },
                        {"name": "Notes", "value": record.notes or "No notes."},
                    ],
                    "timestamp": datetime.fromtimestamp(
                        record.timestamp / 1000, tz=UTC
                    ).isoformat(),
                },
            )
        )
    return embeds


@dataclass
class OrderService:
    """Finalizes service orders into the workshop history."""

    store: WorkshopStore
    webhook_client: WebhookClient

    def quote(self, workshop_id: str, draft: ServiceDraft) -> ServiceQuote | None:
        """Price a draft with the workshop's current settings."""
        workshop = self.store.workshop(workshop_id)
        if workshop is None:
            return None
        return quote_service(draft.parts, draft.in_game_cost, workshop.settings)

    async def finalize(
        self, workshop_id: str, draft: ServiceDraft
    ) -> ServiceRecord | None:
        """Record a service, accrue its tax and announce it.

        Returns None when the workshop is unknown or the mechanic is not
        one of its staff.
        """
        workshop = self.store.workshop(workshop_id)
        mechanic = self.store.state.users.get(draft.mechanic_id)
        if workshop is None or mechanic is None or mechanic.workshop_id != workshop_id:
            return None
        record = build_service_record(
            draft,
            mechanic_name=mechanic.name,
            settings=workshop.settings,
            record_id=self.store.new_id(),
            now_ms=self.store.clock(),
        )
        self.store.dispatch(RecordService(workshop_id=workshop_id, record=record))
        await self._announce(record, workshop.settings)
        return record

    async def _announce(
        self, record: ServiceRecord, settings: WorkshopSettings
    ) -> None:
        for url, embed in build_service_embeds(record, settings):
            try:
                await self.webhook_client.post_embed(url, embed)
            except Exception:
                logger.exception("Failed to post service %s to webhook", record.id)
