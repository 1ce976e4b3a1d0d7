"""Tests for the greedy settlement planner."""

import random
from decimal import Decimal

import pytest

from split_ledger.balances import compute_balances
from split_ledger.exceptions import LedgerInvariantError
from split_ledger.models import Expense, Participant, Transfer
from split_ledger.planner import apply_transfers, check_balanced, plan_settlements


def make_balances(**balances: str | int) -> list[Participant]:
    """Create balance-annotated participants, e.g. make_balances(a=10, b=-10)."""
    return [
        Participant(id=pid, name=pid.upper(), balance=Decimal(str(balance)))
        for pid, balance in balances.items()
    ]


def transfer(frm: str, to: str, amount: str | int) -> Transfer:
    return Transfer(from_participant=frm, to_participant=to, amount=amount)


class TestScenarios:
    """Worked examples."""

    def test_single_debtor_pays_single_creditor(self):
        plan = plan_settlements(make_balances(p1=10, p2=-10))

        assert plan == [transfer("p2", "p1", 10)]

    def test_zero_balance_participant_is_left_out(self):
        plan = plan_settlements(make_balances(a=15, b=0, c=-15))

        assert plan == [transfer("c", "a", 15)]

    def test_largest_creditor_is_matched_with_largest_debtor_first(self):
        """Creditors go largest first, debtors most negative first."""
        plan = plan_settlements(make_balances(b=30, c=-20, a=50, d=-60))

        assert plan == [
            transfer("d", "a", 50),
            transfer("d", "b", 10),
            transfer("c", "b", 20),
        ]

    def test_exact_match_advances_both_sides(self):
        plan = plan_settlements(make_balances(a=20, b=10, c=-20, d=-10))

        assert plan == [transfer("c", "a", 20), transfer("d", "b", 10)]

    def test_ties_keep_participant_order(self):
        plan = plan_settlements(make_balances(x=5, y=5, z=-10))

        assert plan == [transfer("z", "x", 5), transfer("z", "y", 5)]


class TestEdgeCases:
    """Empty plans and tolerance."""

    def test_no_participants(self):
        assert plan_settlements([]) == []

    def test_everyone_even(self):
        assert plan_settlements(make_balances(a=0, b=0)) == []

    def test_balances_within_tolerance_are_ignored(self):
        """A one-cent balance counts as settled."""
        assert plan_settlements(make_balances(a="0.01", b="-0.01")) == []

    def test_rounding_dust_is_not_transferred(self):
        """Leftover cents within tolerance don't produce transfers."""
        plan = plan_settlements(make_balances(a="10.00", b="-9.99", c="-0.01"))

        assert plan == [transfer("b", "a", "9.99")]

    def test_custom_tolerance(self):
        plan = plan_settlements(
            make_balances(a="0.50", b="-0.50"), tolerance=Decimal("1.00")
        )

        assert plan == []

    def test_unbalanced_input_raises(self):
        """Totals that don't net to zero are a bug and fail loudly."""
        with pytest.raises(LedgerInvariantError) as excinfo:
            plan_settlements(make_balances(a=10, b=-5))

        assert excinfo.value.credit_total == Decimal("10.00")
        assert excinfo.value.debit_total == Decimal("5.00")

    def test_negative_tolerance_is_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            plan_settlements(make_balances(a=10, b=-10), tolerance=Decimal("-0.01"))

    def test_check_balanced_accepts_one_cent_drift(self):
        check_balanced(make_balances(a="10.00", b="-9.99"))


class TestApplyTransfers:
    """Residual balances after paying a plan."""

    def test_paying_the_plan_zeroes_balances(self):
        balances = make_balances(a=50, b=30, c=-20, d=-60)

        residual = apply_transfers(balances, plan_settlements(balances))

        assert set(residual.values()) == {Decimal("0")}


@pytest.mark.parametrize("seed", range(25))
def test_random_ledgers_settle_within_tolerance(seed):
    """Plans conserve money and leave every balance within tolerance."""
    rng = random.Random(seed)
    participants = [
        Participant(id=f"p{i}", name=f"P{i}") for i in range(rng.randint(2, 8))
    ]
    ids = [p.id for p in participants]
    expenses = [
        Expense(
            id=f"e{n}",
            description=f"Expense {n}",
            amount=f"{rng.randint(1, 50_000) / 100:.2f}",
            paid_by=rng.choice(ids),
            split_among=rng.sample(ids, rng.randint(1, len(ids))),
        )
        for n in range(rng.randint(1, 20))
    ]
    balances = compute_balances(participants, expenses)
    tolerance = Decimal("0.01")

    plan = plan_settlements(balances)

    assert len(plan) <= max(len(participants) - 1, 0)
    assert all(t.amount > tolerance for t in plan)
    assert all(t.from_participant != t.to_participant for t in plan)

    owed_to_creditors = sum(p.balance for p in balances if p.balance > tolerance)
    paid = sum((t.amount for t in plan), Decimal("0"))
    assert abs(paid - owed_to_creditors) <= tolerance * len(participants)

    residual = apply_transfers(balances, plan)
    assert all(abs(value) <= tolerance for value in residual.values())
