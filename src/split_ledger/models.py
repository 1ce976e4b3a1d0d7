"""Pydantic domain models for SplitLedger."""

from datetime import UTC, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .money import quantize

ZERO = Decimal("0.00")

# Largest accepted expense amount; keeps ledger totals within Decimal precision
MAX_AMOUNT = Decimal("1000000000000.00")


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


# ============================================================================
# Ledger Models
# ============================================================================


class Participant(BaseModel):
    """A person sharing expenses.

    total_paid, total_owed and balance are derived. They stay zero in the
    store and are only filled in on copies returned by compute_balances().
    A positive balance means the participant is owed money.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str | None = None
    total_paid: Decimal = ZERO
    total_owed: Decimal = ZERO
    balance: Decimal = ZERO


class Transfer(BaseModel):
    """A proposed or recorded payment from a debtor to a creditor."""

    model_config = ConfigDict(frozen=True)

    from_participant: str
    to_participant: str
    amount: Decimal

    @field_validator("amount")
    @classmethod
    def _positive_amount(cls, value: Decimal) -> Decimal:
        value = quantize(value)
        if value <= 0:
            raise ValueError("transfer amount must be positive")
        return value


class Expense(BaseModel):
    """A shared expense, or a synthetic settlement record.

    Settlement records (is_settlement=True) carry a zero amount and an empty
    split. Their monetary effect lives in settlement_details.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    description: str
    amount: Decimal
    paid_by: str
    split_among: list[str]
    date: datetime = Field(default_factory=utc_now)
    category: str | None = None
    is_settlement: bool = False
    settlement_details: list[Transfer] | None = None
    is_settled: bool = False
    settlement_id: str | None = None

    @field_validator("amount")
    @classmethod
    def _round_amount(cls, value: Decimal) -> Decimal:
        return quantize(value)

    @field_validator("split_among")
    @classmethod
    def _dedupe_split(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def _check_shape(self) -> "Expense":
        if not self.description.strip():
            raise ValueError("description must not be blank")

        if self.is_settlement:
            if self.amount != 0:
                raise ValueError("settlement records carry a zero amount")
            if self.split_among:
                raise ValueError("settlement records have an empty split")
            if self.settlement_details is None:
                raise ValueError("settlement records need settlement_details")
        else:
            if self.amount <= 0:
                raise ValueError("amount must be positive")
            if self.amount > MAX_AMOUNT:
                raise ValueError(f"amount must not exceed {MAX_AMOUNT:,}")
            if not self.split_among:
                raise ValueError("expense must be split among at least one participant")
            if self.settlement_details is not None:
                raise ValueError("only settlement records carry settlement_details")
        return self


# ============================================================================
# Persistence Models
# ============================================================================


class LedgerSnapshot(BaseModel):
    """Full ledger state, the unit that persistence loads and saves."""

    participants: list[Participant] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
