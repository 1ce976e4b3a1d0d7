"""Custom exceptions for SplitLedger."""


class SplitLedgerError(Exception):
    """Base exception for all SplitLedger errors."""

    pass


class ConfigurationError(SplitLedgerError):
    """Raised when configuration is invalid or missing."""

    pass


class InvalidInputError(SplitLedgerError):
    """Base class for rejected mutations. The store is left unchanged."""

    pass


class InvalidParticipantError(InvalidInputError):
    """Raised when a participant cannot be created (e.g. blank name)."""

    pass


class InvalidExpenseError(InvalidInputError):
    """Raised when an expense is invalid or references unknown participants."""

    pass


class LedgerInvariantError(SplitLedgerError):
    """Raised when creditor and debtor totals don't net to zero.

    This always indicates a bug in balance computation, never bad user input.
    """

    def __init__(self, credit_total, debit_total, message: str | None = None):
        self.credit_total = credit_total
        self.debit_total = debit_total
        super().__init__(
            message
            or f"Ledger does not balance: creditors are owed {credit_total}, "
            f"debtors owe {debit_total}"
        )


class PersistenceError(SplitLedgerError):
    """Raised when a ledger snapshot cannot be loaded or saved."""

    pass
