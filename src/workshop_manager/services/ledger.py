"""Tax accrual and settlement ledger."""

from dataclasses import replace

from workshop_manager.domain.ledger import ServiceRecord, SettlementRecord
from workshop_manager.domain.models import AppState, UserRecord, Workshop


def can_settle(user: UserRecord) -> bool:
    """Return True when the user has a balance to settle."""
    return user.pending_tax > 0


def accrue_tax(state: AppState, workshop_id: str, record: ServiceRecord) -> AppState:
    """Add a finalized service record to history and accrue its tax.

    The record is prepended to the workshop history and ``record.tax`` is
    added to the performing mechanic's balance in the same new state.
    """
    workshop = state.workshops.get(workshop_id)
    if workshop is None:
        return state
    workshops = {
        **state.workshops,
        workshop_id: replace(workshop, history=(record, *workshop.history)),
    }
    users = state.users
    mechanic = users.get(record.mechanic_id)
    if mechanic is not None and record.tax:
        users = {
            **users,
            mechanic.id: replace(
                mechanic, pending_tax=mechanic.pending_tax + record.tax
            ),
        }
    return replace(state, workshops=workshops, users=users)


def settle_tax(  # noqa: PLR0913
    state: AppState,
    workshop_id: str,
    user_id: str,
    settled_by_id: str,
    settled_by_name: str,
    settlement_id: str,
    now_ms: int,
) -> AppState:
    """Zero a user's balance and archive the payment.

    Returns ``state`` untouched when the workshop or user is unknown, the
    user belongs to another workshop, or the balance is not positive.
    """
    workshop = state.workshops.get(workshop_id)
    user = state.users.get(user_id)
    if workshop is None or user is None or user.workshop_id != workshop_id:
        return state
    if not can_settle(user):
        return state

    settlement = SettlementRecord(
        id=settlement_id,
        mechanic_id=user.id,
        mechanic_name=user.name,
        amount=user.pending_tax,
        settled_by_id=settled_by_id,
        settled_by_name=settled_by_name,
        timestamp=now_ms,
    )
    return replace(
        state,
        workshops={
            **state.workshops,
            workshop_id: replace(
                workshop, settlements=(*workshop.settlements, settlement)
            ),
        },
        users={**state.users, user_id: replace(user, pending_tax=0.0)},
    )


def settlements_newest_first(workshop: Workshop) -> list[SettlementRecord]:
    """Return the settlement archive for display, most recent first."""
    return sorted(workshop.settlements, key=lambda entry: entry.timestamp, reverse=True)
