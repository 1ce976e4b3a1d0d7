"""Settlement applier: commit a settlement plan to the ledger."""

import logging
from datetime import datetime

from .models import Expense, Transfer, utc_now
from .store import LedgerStore, generate_id

logger = logging.getLogger(__name__)


def build_settlement_record(
    settlement_id: str, plan: list[Transfer], now: datetime | None = None
) -> Expense:
    """Build the synthetic expense that records a settlement in history."""
    return Expense(
        id=settlement_id,
        description=f"Settlement: {len(plan)} payment(s)",
        amount=0,
        paid_by="",
        split_among=[],
        date=now or utc_now(),
        is_settlement=True,
        settlement_details=list(plan),
    )


def apply_settlement(
    store: LedgerStore, plan: list[Transfer], now: datetime | None = None
) -> Expense | None:
    """
    Commit a settlement plan.

    All currently eligible expenses are marked settled under one fresh
    settlement id, and a settlement record carrying the transfers is
    appended. Expenses added afterwards are not covered.

    Args:
        store: The ledger to mutate
        plan: Transfers from plan_settlements()
        now: Timestamp for the settlement record (defaults to current UTC time)

    Returns:
        The settlement record, or None if the plan was empty
    """
    if not plan:
        logger.info("Nothing to settle, everyone is already even")
        return None

    record = build_settlement_record(generate_id(), plan, now)
    store.record_settlement(record)

    logger.info(f"Applied settlement {record.id} with {len(plan)} transfer(s)")
    return record
