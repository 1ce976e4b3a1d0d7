"""Snapshot persistence for SplitLedger.

The ledger is saved as one opaque JSON blob. Persistence is a cache of the
in-memory state, not a transaction log.
"""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from .exceptions import PersistenceError
from .models import LedgerSnapshot

logger = logging.getLogger(__name__)

SNAPSHOT_KEY = "ledger"


class SnapshotStore(Protocol):
    """Load/save contract used by LedgerStore."""

    def load(self) -> LedgerSnapshot | None: ...

    def save(self, snapshot: LedgerSnapshot) -> None: ...


class MemorySnapshotStore:
    """Keeps the last saved snapshot in process memory."""

    def __init__(self, snapshot: LedgerSnapshot | None = None):
        self._data = snapshot.model_dump_json() if snapshot else None

    def load(self) -> LedgerSnapshot | None:
        if self._data is None:
            return None
        return LedgerSnapshot.model_validate_json(self._data)

    def save(self, snapshot: LedgerSnapshot) -> None:
        self._data = snapshot.model_dump_json()


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        try:
            self.conn = sqlite3.connect(str(db_path))
            self.conn.row_factory = sqlite3.Row
            self._init_schema()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open database {db_path}: {e}") from e

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS snapshots (
                key TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # Snapshot operations
    # ========================================================================

    def load(self) -> LedgerSnapshot | None:
        """Load the saved ledger snapshot, or None if nothing was saved yet."""
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                "SELECT data FROM snapshots WHERE key = ?", (SNAPSHOT_KEY,)
            )
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read snapshot: {e}") from e

        if not row:
            return None

        try:
            return LedgerSnapshot.model_validate_json(row["data"])
        except ValidationError as e:
            raise PersistenceError(f"Stored snapshot is corrupt: {e}") from e

    def save(self, snapshot: LedgerSnapshot) -> None:
        """Replace the saved ledger snapshot."""
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                INSERT INTO snapshots (key, data, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    data = excluded.data,
                    updated_at = excluded.updated_at
                """,
                (SNAPSHOT_KEY, snapshot.model_dump_json(), datetime.now().isoformat()),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to save snapshot: {e}") from e

        logger.debug(
            f"Saved snapshot ({len(snapshot.participants)} participants, "
            f"{len(snapshot.expenses)} expenses)"
        )
