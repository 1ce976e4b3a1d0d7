"""Fixed-point money helpers.

All ledger arithmetic runs on integer cents. Decimal is only used at the
edges: for amounts coming in from callers and for values handed back to them.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")


def to_cents(amount: Decimal | int | float | str) -> int:
    """
    Convert a currency amount to integer cents.
    Uses ROUND_HALF_UP for consistency.

    Args:
        amount: Amount in currency units (floats are converted via str)

    Returns:
        Amount in cents (integer)

    Raises:
        ValueError: If the amount is not a finite number within Decimal precision
    """
    if isinstance(amount, float):
        amount = str(amount)
    try:
        cents = Decimal(amount) * 100
        return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation as e:
        raise ValueError(f"amount {amount} is out of range") from e


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a two-place Decimal."""
    return (Decimal(cents) / 100).quantize(CENT)


def quantize(amount: Decimal | int | float | str) -> Decimal:
    """Round an amount to currency precision."""
    return from_cents(to_cents(amount))
