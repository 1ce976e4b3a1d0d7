"""Service layer that composes the ledger store and settlement logic.

The store is passed in explicitly; balances and plans are recomputed from
the full expense log on every call.
"""

import logging
from decimal import Decimal

from .applier import apply_settlement
from .balances import compute_balances
from .models import Expense, Participant, Transfer
from .planner import DEFAULT_TOLERANCE, plan_settlements
from .store import LedgerStore

logger = logging.getLogger(__name__)


class LedgerService:
    """Balances and settle-up for a ledger store."""

    def __init__(self, store: LedgerStore, tolerance: Decimal = DEFAULT_TOLERANCE):
        """Initialize the ledger service."""
        self.store = store
        self.tolerance = tolerance

    def balances(self) -> list[Participant]:
        """Participants annotated with total_paid, total_owed and balance."""
        return compute_balances(self.store.participants, self.store.expenses)

    def propose_settlement(self) -> list[Transfer]:
        """Transfers that would zero out all current balances."""
        return plan_settlements(self.balances(), self.tolerance)

    def settle_up(self) -> Expense | None:
        """
        Compute the current plan and commit it.

        Returns:
            The settlement record, or None if everyone was already even
        """
        plan = self.propose_settlement()
        record = apply_settlement(self.store, plan)

        if record:
            total = sum((t.amount for t in plan), Decimal("0.00"))
            logger.info(f"Settled up: {len(plan)} payment(s) totalling {total}")

        return record
