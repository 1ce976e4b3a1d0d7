"""SplitLedger - Shared expense balances and settle-up planning."""

__version__ = "0.1.0"

from .applier import apply_settlement
from .balances import compute_balances
from .config import Settings, load_settings
from .db import Database, MemorySnapshotStore, SnapshotStore
from .models import Expense, LedgerSnapshot, Participant, Transfer
from .money import from_cents, to_cents
from .planner import plan_settlements
from .service import LedgerService
from .store import LedgerStore

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "MemorySnapshotStore",
    "SnapshotStore",
    "Expense",
    "LedgerSnapshot",
    "Participant",
    "Transfer",
    "from_cents",
    "to_cents",
    "compute_balances",
    "plan_settlements",
    "apply_settlement",
    "LedgerService",
    "LedgerStore",
]
