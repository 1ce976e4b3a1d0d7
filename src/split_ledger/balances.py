"""Balance calculation: pure functions of (participants, expenses)."""

from collections.abc import Iterable
from decimal import Decimal

from .models import Expense, Participant
from .money import from_cents, quantize, to_cents


def is_active(expense: Expense) -> bool:
    """True if the expense still counts towards balances."""
    return not expense.is_settled and not expense.is_settlement


def owed_shares(expense: Expense) -> dict[str, int]:
    """
    Split an expense equally, in cents.

    Each member owes amount // n cents. The amount % n leftover cents go one
    each to the first members in sorted-id order, so the shares always add
    up to the expense amount and don't depend on split order.

    Args:
        expense: A regular (non-settlement) expense

    Returns:
        Mapping of participant id to owed cents
    """
    members = sorted(expense.split_among)
    base, leftover = divmod(to_cents(expense.amount), len(members))
    return {
        pid: base + (1 if index < leftover else 0)
        for index, pid in enumerate(members)
    }


def split_share(expense: Expense) -> Decimal:
    """Per-head amount of an expense, rounded for display."""
    if not expense.split_among:
        return Decimal("0.00")
    return quantize(expense.amount / len(expense.split_among))


def total_active(expenses: Iterable[Expense]) -> Decimal:
    """Sum of amounts over expenses that still count towards balances."""
    return from_cents(sum(to_cents(e.amount) for e in expenses if is_active(e)))


def compute_balances(
    participants: Iterable[Participant], expenses: Iterable[Expense]
) -> list[Participant]:
    """
    Annotate participants with total_paid, total_owed and balance.

    Only unsettled, non-settlement expenses contribute. The payer is
    credited the full amount and every split member is charged an equal
    share. balance = total_paid - total_owed.

    Args:
        participants: Current participants, in display order
        expenses: The full expense log

    Returns:
        Copies of the participants with derived fields filled in
    """
    participants = list(participants)
    paid = {p.id: 0 for p in participants}
    owed = {p.id: 0 for p in participants}

    for expense in expenses:
        if not is_active(expense):
            continue
        if expense.paid_by in paid:
            paid[expense.paid_by] += to_cents(expense.amount)
        for pid, cents in owed_shares(expense).items():
            if pid in owed:
                owed[pid] += cents

    return [
        p.model_copy(
            update={
                "total_paid": from_cents(paid[p.id]),
                "total_owed": from_cents(owed[p.id]),
                "balance": from_cents(paid[p.id] - owed[p.id]),
            }
        )
        for p in participants
    ]
