"""Tests for snapshot persistence and the store's use of it."""

import logging
from decimal import Decimal

import pytest

from split_ledger.db import Database, MemorySnapshotStore
from split_ledger.exceptions import PersistenceError
from split_ledger.models import LedgerSnapshot, Participant
from split_ledger.service import LedgerService
from split_ledger.store import LedgerStore


@pytest.fixture
def mock_db(tmp_path):
    """Create a temporary database."""
    db_path = tmp_path / "test.db"
    db = Database(db_path)
    yield db
    db.close()


class FailingSnapshotStore:
    """Snapshot store whose operations always fail."""

    def load(self):
        raise PersistenceError("disk on fire")

    def save(self, snapshot):
        raise PersistenceError("disk on fire")


class UnwritableSnapshotStore:
    """Snapshot store that loads nothing and fails every save."""

    def load(self):
        return None

    def save(self, snapshot):
        raise PersistenceError("disk full")


class UnreadableSnapshotStore:
    """Snapshot store whose stored data cannot be read; records saves."""

    def __init__(self):
        self.saved: list[LedgerSnapshot] = []

    def load(self):
        raise PersistenceError("corrupt snapshot")

    def save(self, snapshot):
        self.saved.append(snapshot)


class TestDatabase:
    """Tests for the sqlite snapshot store."""

    def test_load_returns_none_when_empty(self, mock_db):
        assert mock_db.load() is None

    def test_snapshot_survives_reopen(self, tmp_path):
        """State written by one store is loaded by the next."""
        db_path = tmp_path / "ledger.db"
        db = Database(db_path)
        store = LedgerStore(db)
        alice = store.add_participant("Alice")
        bob = store.add_participant("Bob")
        store.add_expense("Lunch", "20.50", alice.id, [alice.id, bob.id])
        LedgerService(store).settle_up()
        expected = store.snapshot()
        db.close()

        reopened = Database(db_path)
        try:
            restored = LedgerStore(reopened)
            assert restored.snapshot() == expected
            assert restored.expenses[0].amount == Decimal("20.50")
            assert restored.expenses[-1].settlement_details[0].amount == Decimal(
                "10.25"
            )
        finally:
            reopened.close()

    def test_save_replaces_previous_snapshot(self, mock_db):
        mock_db.save(LedgerSnapshot())
        store = LedgerStore(mock_db)
        store.add_participant("Alice")

        loaded = mock_db.load()

        assert [p.name for p in loaded.participants] == ["Alice"]

    def test_corrupt_snapshot_raises(self, mock_db):
        mock_db.conn.execute(
            "INSERT INTO snapshots (key, data) VALUES ('ledger', 'not json')"
        )
        mock_db.conn.commit()

        with pytest.raises(PersistenceError, match="corrupt"):
            mock_db.load()

    def test_save_on_closed_database_raises(self, tmp_path):
        db = Database(tmp_path / "closed.db")
        db.close()

        with pytest.raises(PersistenceError):
            db.save(LedgerSnapshot())


class TestMemorySnapshotStore:
    """Tests for the in-memory snapshot store."""

    def test_round_trip(self):
        persistence = MemorySnapshotStore()
        store = LedgerStore(persistence)
        alice = store.add_participant("Alice")

        restored = LedgerStore(persistence)

        assert restored.participants == [alice]

    def test_saved_snapshot_is_a_copy(self):
        """Later in-memory changes don't leak into the saved snapshot."""
        persistence = MemorySnapshotStore()
        snapshot = LedgerSnapshot()
        persistence.save(snapshot)

        snapshot.participants.append(Participant(id="g", name="Ghost"))

        assert persistence.load() == LedgerSnapshot()


class TestPersistenceFailures:
    """Persistence is best-effort and never breaks mutations."""

    def test_failed_save_keeps_in_memory_state(self, caplog):
        store = LedgerStore(UnwritableSnapshotStore())

        with caplog.at_level(logging.WARNING, logger="split_ledger.store"):
            alice = store.add_participant("Alice")

        assert store.participants == [alice]
        assert "Failed to save ledger" in caplog.text

    def test_failed_load_starts_empty(self, caplog):
        with caplog.at_level(logging.ERROR, logger="split_ledger.store"):
            store = LedgerStore(FailingSnapshotStore())

        assert store.participants == []
        assert store.expenses == []
        assert "Error loading ledger" in caplog.text

    def test_failed_load_never_overwrites_stored_data(self, caplog):
        """After a failed load, mutations stay in memory and are not saved."""
        persistence = UnreadableSnapshotStore()
        store = LedgerStore(persistence)

        with caplog.at_level(logging.WARNING, logger="split_ledger.store"):
            alice = store.add_participant("Alice")
            store.add_expense("Lunch", 10, alice.id, [alice.id])

        assert persistence.saved == []
        assert [p.name for p in store.participants] == ["Alice"]
        assert "Not saving ledger" in caplog.text

    def test_clear_after_failed_load_resumes_saving(self):
        """clear() replaces the unreadable data and saves from then on."""
        persistence = UnreadableSnapshotStore()
        store = LedgerStore(persistence)
        store.add_participant("Lost")

        store.clear()
        store.add_participant("Alice")

        assert len(persistence.saved) == 2
        assert persistence.saved[0].participants == []
        assert [p.name for p in persistence.saved[1].participants] == ["Alice"]

    def test_closed_database_does_not_break_mutations(self, tmp_path, caplog):
        db = Database(tmp_path / "gone.db")
        store = LedgerStore(db)
        db.close()

        with caplog.at_level(logging.WARNING, logger="split_ledger.store"):
            store.add_participant("Alice")

        assert [p.name for p in store.participants] == ["Alice"]
        assert "Failed to save ledger" in caplog.text
