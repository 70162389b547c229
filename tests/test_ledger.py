"""
Tests for the investment and savings-goal ledgers

Both ledgers derive every balance from an append-only log, so these tests
feed movement/transaction lists and check the reductions.
"""

import pytest
from decimal import Decimal

from src.ledger import (
    calculate_goal_balance,
    calculate_goal_stats,
    calculate_individual_goal_balance,
    calculate_investment_stats,
    calculate_portfolio_summary,
    get_goal_progress,
)
from src.models import Person, RecordTypeError
from tests.factories import movement, transaction


STOCKS = {"id": "inv1", "name": "ITSA4", "type": "stocks", "owner": "person1"}
CRYPTO = {"id": "inv2", "name": "BTC", "type": "crypto", "owner": "person2"}
TESOURO = {"id": "inv3", "name": "Tesouro Selic", "type": "fixed_income", "owner": "couple"}


class TestInvestmentStats:
    """Tests for calculate_investment_stats."""

    def test_buy_then_sell(self):
        """Test a sell reduces balance, cost basis and quantity."""
        stats = calculate_investment_stats(STOCKS, [
            movement("buy", 1000, quantity=1),
            movement("sell", 400, quantity=0.4),
        ])
        assert stats.total_balance == Decimal("600")
        assert stats.invested_amount == Decimal("600")
        assert stats.quantity == Decimal("0.6")

    def test_yield_keeps_cost_basis(self):
        """Test yield increases the balance but not the invested amount."""
        stats = calculate_investment_stats(STOCKS, [
            movement("buy", 1000, quantity=1),
            movement("yield", 50),
        ])
        assert stats.total_balance == Decimal("1050")
        assert stats.total_yield == Decimal("50")
        assert stats.invested_amount == Decimal("1000")

    def test_adjustment_keeps_cost_basis(self):
        """Test a negative adjustment only corrects the balance."""
        stats = calculate_investment_stats(STOCKS, [
            movement("buy", 1000, quantity=1),
            movement("adjustment", -20),
        ])
        assert stats.total_balance == Decimal("980")
        assert stats.invested_amount == Decimal("1000")
        assert stats.total_yield == Decimal("0")

    def test_profit_percentage(self):
        """Test profit and profit percentage against cost basis."""
        stats = calculate_investment_stats(STOCKS, [
            movement("buy", 1000, quantity=1),
            movement("yield", 100),
        ])
        assert stats.profit == Decimal("100")
        assert stats.profit_percentage == Decimal("10")

    def test_no_cost_basis_means_zero_percentage(self):
        """Test profit percentage is 0 without invested principal."""
        stats = calculate_investment_stats(STOCKS, [movement("yield", 30)])
        assert stats.profit == Decimal("30")
        assert stats.profit_percentage == Decimal("0")

    def test_empty_log(self):
        """Test an investment without movements is all zeros."""
        stats = calculate_investment_stats(STOCKS, [])
        assert stats.total_balance == 0
        assert stats.invested_amount == 0
        assert stats.quantity == 0

    def test_order_does_not_matter(self):
        """Test the reduction is independent of movement order."""
        movements = [
            movement("buy", 1000, quantity=2),
            movement("yield", 35),
            movement("sell", 300, quantity=0.5),
            movement("adjustment", 12.5),
        ]
        forward = calculate_investment_stats(STOCKS, movements)
        backward = calculate_investment_stats(STOCKS, list(reversed(movements)))
        assert forward == backward

    def test_idempotent(self):
        """Test reducing the same log twice gives equal stats."""
        movements = [
            movement("buy", 1000.10, quantity=3),
            movement("sell", 333.37, quantity=1, person="person2"),
            movement("yield", 0.01, person=None),
        ]
        assert calculate_investment_stats(STOCKS, movements) == calculate_investment_stats(STOCKS, movements)

    def test_deleted_movements_ignored(self):
        """Test soft-deleted movements do not count."""
        stats = calculate_investment_stats(STOCKS, [
            movement("buy", 1000, quantity=1),
            movement("buy", 500, quantity=1, deleted_at="2025-02-01T10:00:00Z"),
        ])
        assert stats.total_balance == Decimal("1000")
        assert stats.quantity == Decimal("1")

    def test_person_buckets(self):
        """Test movements are attributed to their person, or to the owner."""
        stats = calculate_investment_stats(TESOURO, [
            movement("buy", 600, person="person1"),
            movement("buy", 400, person="person2"),
            movement("yield", 100, person=None),
        ])
        assert stats.person1_balance == Decimal("650")
        assert stats.person2_balance == Decimal("450")
        assert stats.total_balance == Decimal("1100")

    def test_owner_takes_unassigned_movements(self):
        """Test a movement without person goes to a single owner."""
        stats = calculate_investment_stats(CRYPTO, [movement("buy", 300, person=None, investment_id="inv2")])
        assert stats.person1_balance == Decimal("0")
        assert stats.person2_balance == Decimal("300")

    def test_nan_value_is_zero(self):
        """Test a NaN movement value counts as zero."""
        stats = calculate_investment_stats(STOCKS, [
            movement("buy", 1000, quantity=1),
            movement("yield", float("nan")),
        ])
        assert stats.total_balance == Decimal("1000")

    def test_untyped_movement_rejected(self):
        """Test a foreign item fails fast."""
        with pytest.raises(RecordTypeError):
            calculate_investment_stats(STOCKS, [42])


class TestPortfolioSummary:
    """Tests for calculate_portfolio_summary."""

    def test_totals(self):
        """Test equity, cost, profit and per-person and per-type splits."""
        movements = [
            movement("buy", 1000, quantity=10, person=None, investment_id="inv1"),
            movement("yield", 100, person=None, investment_id="inv1"),
            movement("buy", 500, quantity=0.01, person=None, investment_id="inv2"),
            movement("adjustment", -50, person=None, investment_id="inv2"),
            movement("buy", 9999, investment_id="unknown"),
        ]
        summary = calculate_portfolio_summary([STOCKS, CRYPTO], movements)

        assert summary.total_equity == Decimal("1550")
        assert summary.total_cost == Decimal("1500")
        assert summary.total_profit == Decimal("50")
        assert round(summary.total_yield_percentage, 2) == Decimal("3.33")
        assert summary.p1_equity == Decimal("1100")
        assert summary.p2_equity == Decimal("450")
        assert summary.equity_by_type == {"stocks": Decimal("1100"), "crypto": Decimal("450")}
        assert set(summary.stats_by_investment) == {"inv1", "inv2"}
        assert summary.stats_by_investment["inv2"].invested_amount == Decimal("500")

    def test_deleted_investment_ignored(self):
        """Test soft-deleted investments are left out of the totals."""
        deleted = {**CRYPTO, "deleted_at": "2025-03-01T00:00:00Z"}
        movements = [
            movement("buy", 1000, investment_id="inv1"),
            movement("buy", 500, investment_id="inv2"),
        ]
        summary = calculate_portfolio_summary([STOCKS, deleted], movements)
        assert summary.total_equity == Decimal("1000")
        assert "inv2" not in summary.stats_by_investment

    def test_empty_portfolio(self):
        """Test an empty portfolio reports zeros."""
        summary = calculate_portfolio_summary([], [])
        assert summary.total_equity == 0
        assert summary.total_yield_percentage == 0
        assert summary.stats_by_investment == {}

    def test_investment_without_id(self):
        """Test an investment without id is keyed by its position."""
        summary = calculate_portfolio_summary([{"name": "Cofre", "type": "cash"}], [])
        assert list(summary.stats_by_investment) == ["#0"]


class TestGoalBalances:
    """Tests for goal balances and progress."""

    TRANSACTIONS = [
        transaction("deposit", 300, "person1", "2025-01-05"),
        transaction("deposit", 200, "person2", "2025-01-06"),
        transaction("withdraw", 50, "person1", "2025-02-01"),
    ]

    def test_balances(self):
        """Test the total and per-person signed sums."""
        assert calculate_goal_balance(self.TRANSACTIONS) == Decimal("450.00")
        assert calculate_individual_goal_balance(self.TRANSACTIONS, Person.PERSON1) == Decimal("250.00")
        assert calculate_individual_goal_balance(self.TRANSACTIONS, "person2") == Decimal("200.00")

    def test_stats(self):
        """Test the goal stats reduction."""
        goal = {"id": "g1", "title": "Viagem", "target_value": 1000}
        stats = calculate_goal_stats(goal, self.TRANSACTIONS)
        assert stats.total_balance == Decimal("450.00")
        assert stats.p1_balance == Decimal("250.00")
        assert stats.p2_balance == Decimal("200.00")
        assert stats.progress == Decimal("45.00")
        assert stats.is_completed is False
        assert stats.p1_last_deposit == Decimal("300")
        assert stats.p2_last_deposit == Decimal("200")

    def test_overfunded_progress_not_clamped(self):
        """Test progress can exceed 100 and marks the goal completed."""
        goal = {"title": "Reserva", "target_value": 100}
        stats = calculate_goal_stats(goal, [transaction("deposit", 150, "person1", "2025-01-01")])
        assert stats.progress == Decimal("150.00")
        assert stats.is_completed is True

    def test_zero_target(self):
        """Test a goal without target reports zero progress."""
        assert get_goal_progress({"title": "Sem alvo", "target_value": 0}, Decimal("500")) == Decimal("0")

    def test_completed_flag(self):
        """Test the stored completion flag is honored."""
        goal = {"title": "Carro", "target_value": 1000, "is_completed": True}
        assert calculate_goal_stats(goal, []).is_completed is True

    def test_unassigned_transaction_counts_in_total_only(self):
        """Test a transaction without person only affects the total."""
        stats = calculate_goal_stats(
            {"title": "Casa", "target_value": 1000},
            [transaction("deposit", 100, None, "2025-01-01")],
        )
        assert stats.total_balance == Decimal("100.00")
        assert stats.p1_balance == Decimal("0.00")
        assert stats.p2_balance == Decimal("0.00")

    def test_deleted_transactions_ignored(self):
        """Test soft-deleted transactions do not count."""
        transactions = self.TRANSACTIONS + [
            transaction("deposit", 1000, "person1", "2025-03-01", deleted_at="2025-03-02T00:00:00Z"),
        ]
        assert calculate_goal_balance(transactions) == Decimal("450.00")

    def test_order_does_not_matter(self):
        """Test balances and stats are independent of transaction order."""
        goal = {"id": "g1", "title": "Viagem", "target_value": 1000}
        backward = list(reversed(self.TRANSACTIONS))
        assert calculate_goal_balance(backward) == calculate_goal_balance(self.TRANSACTIONS)
        assert calculate_individual_goal_balance(backward, "person1") == Decimal("250.00")
        assert calculate_goal_stats(goal, backward) == calculate_goal_stats(goal, self.TRANSACTIONS)

    def test_idempotent(self):
        """Test computing stats twice gives equal results."""
        goal = {"id": "g1", "title": "Viagem", "target_value": 333.33, "interest_rate": 7.5}
        assert calculate_goal_stats(goal, self.TRANSACTIONS) == calculate_goal_stats(goal, self.TRANSACTIONS)


class TestLastDeposit:
    """Tests for the deterministic latest-deposit ordering."""

    GOAL = {"title": "Casa", "target_value": 10000}

    def test_latest_date_wins(self):
        """Test the deposit with the latest date is the last one."""
        stats = calculate_goal_stats(self.GOAL, [
            transaction("deposit", 300, "person1", "2025-03-01", created_at="2025-01-01T00:00:00Z"),
            transaction("deposit", 100, "person1", "2025-01-01", created_at="2025-05-01T00:00:00Z"),
        ])
        assert stats.p1_last_deposit == Decimal("300")

    def test_same_date_uses_creation_time(self):
        """Test creation time breaks a date tie."""
        stats = calculate_goal_stats(self.GOAL, [
            transaction("deposit", 300, "person1", "2025-03-01", created_at="2025-03-01T18:00:00Z"),
            transaction("deposit", 100, "person1", "2025-03-01", created_at="2025-03-01T09:00:00Z"),
        ])
        assert stats.p1_last_deposit == Decimal("300")

    def test_same_date_without_creation_time_uses_position(self):
        """Test input position breaks a full tie."""
        stats = calculate_goal_stats(self.GOAL, [
            transaction("deposit", 300, "person2", "2025-03-01"),
            transaction("deposit", 100, "person2", "2025-03-01"),
        ])
        assert stats.p2_last_deposit == Decimal("100")

    def test_withdrawals_are_not_deposits(self):
        """Test withdrawals are skipped when finding the last deposit."""
        stats = calculate_goal_stats(self.GOAL, [
            transaction("deposit", 300, "person1", "2025-01-01"),
            transaction("withdraw", 100, "person1", "2025-02-01"),
        ])
        assert stats.p1_last_deposit == Decimal("300")
        assert stats.p2_last_deposit == Decimal("0")

    def test_unreadable_date_sorts_first(self):
        """Test a deposit with an unreadable date is never the latest."""
        stats = calculate_goal_stats(self.GOAL, [
            transaction("deposit", 300, "person1", "2024-12-01"),
            transaction("deposit", 100, "person1", "sem data"),
        ])
        assert stats.p1_last_deposit == Decimal("300")
        assert stats.p1_balance == Decimal("400.00")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
