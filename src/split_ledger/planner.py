"""Settlement planning: turn net balances into a list of transfers.

The policy is greedy largest-first matching. It is deterministic and keeps
the number of transfers small, but it is not guaranteed to find the minimum
number of transfers for every group.
"""

import logging
from collections.abc import Iterable
from decimal import Decimal

from .exceptions import LedgerInvariantError
from .models import Participant, Transfer
from .money import from_cents, to_cents

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = Decimal("0.01")


def check_balanced(
    balances: Iterable[Participant], tolerance: Decimal = DEFAULT_TOLERANCE
) -> None:
    """
    Verify that what creditors are owed matches what debtors owe.

    Raises:
        LedgerInvariantError: If the totals differ by more than tolerance.
            This is a bug in balance computation, not a user error.
        ValueError: If tolerance is negative
    """
    if tolerance < 0:
        raise ValueError(f"tolerance must not be negative, got {tolerance}")

    credit = 0
    debit = 0
    for participant in balances:
        cents = to_cents(participant.balance)
        if cents > 0:
            credit += cents
        else:
            debit -= cents

    if abs(credit - debit) > to_cents(tolerance):
        raise LedgerInvariantError(from_cents(credit), from_cents(debit))


def plan_settlements(
    balances: Iterable[Participant], tolerance: Decimal = DEFAULT_TOLERANCE
) -> list[Transfer]:
    """
    Compute the transfers that bring every balance back to zero.

    Steps:
    1. Creditors have balance > tolerance, debtors have balance < -tolerance
    2. Sort creditors largest first and debtors most negative first
    3. Pair the current creditor and debtor and move min(credit, |debt|)
    4. Skip transfers at or below tolerance (rounding dust)
    5. Move past whichever side is now within tolerance of zero (possibly both)

    Args:
        balances: Participants annotated by compute_balances()
        tolerance: Amount at or below which a balance counts as settled

    Returns:
        Ordered list of transfers; empty when everyone is already even

    Raises:
        LedgerInvariantError: If the balances don't net to zero
    """
    balances = list(balances)
    check_balanced(balances, tolerance)

    threshold = to_cents(tolerance)
    creditors = []
    debtors = []
    for participant in balances:
        cents = to_cents(participant.balance)
        if cents > threshold:
            creditors.append([participant.id, cents])
        elif cents < -threshold:
            debtors.append([participant.id, cents])

    # Stable sorts: ties keep participant order
    creditors.sort(key=lambda entry: entry[1], reverse=True)
    debtors.sort(key=lambda entry: entry[1])

    transfers: list[Transfer] = []
    i = j = 0
    while i < len(creditors) and j < len(debtors):
        creditor = creditors[i]
        debtor = debtors[j]
        amount = min(creditor[1], -debtor[1])

        if amount > threshold:
            transfers.append(
                Transfer(
                    from_participant=debtor[0],
                    to_participant=creditor[0],
                    amount=from_cents(amount),
                )
            )

        creditor[1] -= amount
        debtor[1] += amount

        if creditor[1] <= threshold:
            i += 1
        if debtor[1] >= -threshold:
            j += 1

    logger.debug(
        f"Planned {len(transfers)} transfer(s) for "
        f"{len(creditors)} creditor(s) and {len(debtors)} debtor(s)"
    )
    return transfers


def apply_transfers(
    balances: Iterable[Participant], transfers: Iterable[Transfer]
) -> dict[str, Decimal]:
    """
    Residual balance of each participant after the transfers are paid.

    Paying raises the debtor's balance and lowers the creditor's.
    """
    residual = {p.id: to_cents(p.balance) for p in balances}
    for transfer in transfers:
        cents = to_cents(transfer.amount)
        residual[transfer.from_participant] = (
            residual.get(transfer.from_participant, 0) + cents
        )
        residual[transfer.to_participant] = (
            residual.get(transfer.to_participant, 0) - cents
        )
    return {pid: from_cents(cents) for pid, cents in residual.items()}
