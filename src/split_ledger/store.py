"""Ledger store: the authoritative collection of participants and expenses.

The store is an ordinary object owned by its caller. It assumes a single
writer. Every mutator either applies completely or raises before touching
state, and operations on unknown ids are silent no-ops.
"""

import logging
import uuid
from decimal import Decimal

from pydantic import ValidationError

from .db import SnapshotStore
from .exceptions import InvalidExpenseError, InvalidParticipantError, PersistenceError
from .models import Expense, LedgerSnapshot, Participant, utc_now

logger = logging.getLogger(__name__)

# Settlement state only changes through record_settlement()
_IMMUTABLE_FIELDS = {
    "id",
    "is_settlement",
    "settlement_details",
    "is_settled",
    "settlement_id",
}


def generate_id() -> str:
    """Generate an opaque unique id for participants, expenses and settlements."""
    return uuid.uuid4().hex


class LedgerStore:
    """Mutable ledger state with optional best-effort persistence."""

    def __init__(self, persistence: SnapshotStore | None = None):
        """
        Initialize the store, loading any previously saved snapshot.

        Args:
            persistence: Optional snapshot store. If loading fails the store
                starts empty and saving stays disabled until clear() is
                called, so unreadable data is never overwritten. Save
                failures never undo a mutation.
        """
        self.persistence = persistence
        self._can_save = True
        self._participants: list[Participant] = []
        self._expenses: list[Expense] = []
        self._load()

    # ========================================================================
    # Read side
    # ========================================================================

    @property
    def participants(self) -> list[Participant]:
        return list(self._participants)

    @property
    def expenses(self) -> list[Expense]:
        return [e.model_copy(deep=True) for e in self._expenses]

    def get_participant(self, participant_id: str) -> Participant | None:
        for participant in self._participants:
            if participant.id == participant_id:
                return participant
        return None

    def get_expense(self, expense_id: str) -> Expense | None:
        for expense in self._expenses:
            if expense.id == expense_id:
                return expense.model_copy(deep=True)
        return None

    def participant_name(self, participant_id: str) -> str:
        """Name for display, or "Unknown" for ids that no longer exist."""
        participant = self.get_participant(participant_id)
        return participant.name if participant else "Unknown"

    def history(self) -> list[Expense]:
        """All expenses and settlement records, newest first."""
        return sorted(self.expenses, key=lambda e: e.date, reverse=True)

    def total_expenses(self) -> Decimal:
        """Sum of every real expense, settled ones included."""
        return sum(
            (e.amount for e in self._expenses if not e.is_settlement),
            Decimal("0.00"),
        )

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            participants=self.participants, expenses=self.expenses
        )

    # ========================================================================
    # Participant mutators
    # ========================================================================

    def add_participant(self, name: str, email: str | None = None) -> Participant:
        """
        Add a participant with a fresh id and zeroed derived fields.

        Raises:
            InvalidParticipantError: If the name is blank
        """
        name = name.strip()
        if not name:
            raise InvalidParticipantError("Participant name must not be blank")

        participant = Participant(id=generate_id(), name=name, email=email)
        self._participants.append(participant)

        logger.info(f"Added participant '{name}' ({participant.id})")
        self._persist()
        return participant

    def remove_participant(self, participant_id: str) -> None:
        """
        Remove a participant and clean up the expenses that reference them.

        Expenses paid by the participant are deleted outright, even when
        others were in the split. Otherwise the participant is pruned from
        the split, and expenses left with an empty split are deleted.

        Settlement records are skipped. They never have a payer or a split,
        and they stay in history as the audit trail of past settle-ups.
        """
        if self.get_participant(participant_id) is None:
            logger.debug(f"remove_participant: unknown id {participant_id}")
            return

        self._participants = [
            p for p in self._participants if p.id != participant_id
        ]

        kept: list[Expense] = []
        dropped = 0
        for expense in self._expenses:
            if expense.is_settlement:
                kept.append(expense)
                continue
            if expense.paid_by == participant_id:
                dropped += 1
                continue
            if participant_id in expense.split_among:
                split = [pid for pid in expense.split_among if pid != participant_id]
                if not split:
                    dropped += 1
                    continue
                expense = expense.model_copy(update={"split_among": split})
            kept.append(expense)
        self._expenses = kept

        logger.info(
            f"Removed participant {participant_id} "
            f"({dropped} dependent expense(s) deleted)"
        )
        self._persist()

    # ========================================================================
    # Expense mutators
    # ========================================================================

    def add_expense(
        self,
        description: str,
        amount: Decimal | int | float | str,
        paid_by: str,
        split_among: list[str],
        category: str | None = None,
    ) -> Expense:
        """
        Add an unsettled expense with a fresh id and the current timestamp.

        Args:
            description: What the money was spent on
            amount: Positive amount, rounded to cents
            paid_by: Id of the paying participant
            split_among: Ids of the participants sharing the cost equally
            category: Optional free-form category

        Returns:
            The created expense

        Raises:
            InvalidExpenseError: If any field is invalid or references an
                unknown participant. Nothing is added in that case.
        """
        self._check_known([paid_by, *split_among])

        try:
            expense = Expense(
                id=generate_id(),
                description=description.strip(),
                amount=amount,
                paid_by=paid_by,
                split_among=split_among,
                date=utc_now(),
                category=category,
            )
        except ValidationError as e:
            raise InvalidExpenseError(_first_error(e)) from e

        self._expenses.append(expense)

        logger.info(
            f"Added expense '{expense.description}' ({expense.amount}) "
            f"split {len(expense.split_among)} way(s)"
        )
        self._persist()
        return expense.model_copy(deep=True)

    def remove_expense(self, expense_id: str) -> None:
        """Delete an expense or settlement record by id."""
        if self.get_expense(expense_id) is None:
            logger.debug(f"remove_expense: unknown id {expense_id}")
            return

        self._expenses = [e for e in self._expenses if e.id != expense_id]

        logger.info(f"Removed expense {expense_id}")
        self._persist()

    def update_expense(self, expense_id: str, **fields) -> Expense | None:
        """
        Shallow-merge fields into an expense.

        The merged record is re-validated, so an update can never leave an
        invalid expense behind.

        Returns:
            The updated expense, or None for an unknown id

        Raises:
            InvalidExpenseError: If a field is unknown or immutable, or the
                merged expense is invalid
        """
        bad = (set(fields) - set(Expense.model_fields)) | (
            set(fields) & _IMMUTABLE_FIELDS
        )
        if bad:
            raise InvalidExpenseError(
                f"Cannot update field(s): {', '.join(sorted(bad))}"
            )

        for index, expense in enumerate(self._expenses):
            if expense.id == expense_id:
                break
        else:
            logger.debug(f"update_expense: unknown id {expense_id}")
            return None

        if expense.is_settled or expense.is_settlement:
            raise InvalidExpenseError(
                f"Expense {expense_id} is settled history and cannot be changed"
            )

        try:
            updated = Expense.model_validate({**expense.model_dump(), **fields})
        except ValidationError as e:
            raise InvalidExpenseError(_first_error(e)) from e

        if {"paid_by", "split_among"} & set(fields):
            self._check_known([updated.paid_by, *updated.split_among])

        self._expenses[index] = updated

        logger.info(f"Updated expense {expense_id}: {', '.join(sorted(fields))}")
        self._persist()
        return updated.model_copy(deep=True)

    def record_settlement(self, record: Expense) -> list[str]:
        """
        Freeze all eligible expenses under a settlement and append its record.

        Every expense that is neither settled nor a settlement record gets
        is_settled=True and settlement_id=record.id. The record itself is
        then appended to the log.

        Returns:
            Ids of the expenses that were settled
        """
        if not record.is_settlement:
            raise InvalidExpenseError("record_settlement needs a settlement record")

        settled_ids: list[str] = []
        expenses: list[Expense] = []
        for expense in self._expenses:
            if not expense.is_settled and not expense.is_settlement:
                expense = expense.model_copy(
                    update={"is_settled": True, "settlement_id": record.id}
                )
                settled_ids.append(expense.id)
            expenses.append(expense)
        expenses.append(record)
        self._expenses = expenses

        logger.info(
            f"Recorded settlement {record.id}: {len(settled_ids)} expense(s) settled"
        )
        self._persist()
        return settled_ids

    def clear(self) -> None:
        """Drop all participants and expenses.

        Also re-enables saving after a failed load, replacing the stored data.
        """
        self._participants = []
        self._expenses = []
        self._can_save = True

        logger.info("Cleared all ledger data")
        self._persist()

    def _check_known(self, participant_ids: list[str]):
        unknown = [
            pid for pid in participant_ids if self.get_participant(pid) is None
        ]
        if unknown:
            raise InvalidExpenseError(
                f"Unknown participant id(s): {', '.join(dict.fromkeys(unknown))}"
            )

    # ========================================================================
    # Persistence
    # ========================================================================

    def _load(self):
        if self.persistence is None:
            return

        try:
            snapshot = self.persistence.load()
        except PersistenceError as e:
            self._can_save = False
            logger.error(
                f"Error loading ledger, starting empty: {e}. "
                f"Changes will not be saved until the ledger is cleared."
            )
            return

        if snapshot is not None:
            self._participants = list(snapshot.participants)
            self._expenses = list(snapshot.expenses)
            logger.info(
                f"Loaded {len(self._participants)} participants and "
                f"{len(self._expenses)} expenses"
            )

    def _persist(self):
        if self.persistence is None:
            return
        if not self._can_save:
            logger.warning("Not saving ledger: stored data could not be loaded")
            return

        try:
            self.persistence.save(self.snapshot())
        except PersistenceError as e:
            logger.warning(f"Failed to save ledger, keeping in-memory state: {e}")


def _first_error(error: ValidationError) -> str:
    """Human-readable message for the first pydantic validation error."""
    detail = error.errors()[0]
    message = str(detail.get("msg", error))
    return message.removeprefix("Value error, ")
