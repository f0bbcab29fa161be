"""Tests for budget evaluation."""

from datetime import date
from decimal import Decimal

from conftest import make_tx

from finledger.engine.budgets import (
    budget_totals,
    evaluate_budget,
    evaluate_budgets,
    period_bounds,
)
from finledger.models.ledger import Budget, BudgetFrequency, BudgetStatus, TransactionType

VIEW = date(2024, 3, 15)


def _budget(**fields) -> Budget:
    defaults = {
        "id": "b-food",
        "category": "Alimentação",
        "limit": Decimal("500.00"),
    }
    defaults.update(fields)
    return Budget(**defaults)


def _spend(amount: str, day: str, category: str = "Alimentação"):
    return make_tx(type=TransactionType.EXPENSE, amount=amount, date=day, category=category)


class TestPeriods:
    """Tests for period boundaries."""

    def test_monthly(self):
        assert period_bounds(VIEW, BudgetFrequency.MONTHLY) == ("2024-03-01", "2024-03-31")

    def test_weekly_monday_to_sunday(self):
        # 2024-03-15 is a Friday
        assert period_bounds(VIEW, BudgetFrequency.WEEKLY) == ("2024-03-11", "2024-03-17")

    def test_weekly_on_sunday_belongs_to_previous_monday(self):
        assert period_bounds(date(2024, 3, 17), BudgetFrequency.WEEKLY) == ("2024-03-11", "2024-03-17")

    def test_yearly(self):
        assert period_bounds(VIEW, BudgetFrequency.YEARLY) == ("2024-01-01", "2024-12-31")


class TestEvaluateBudget:
    """Tests for spend, rollover and status."""

    def test_positive_rollover_raises_limit(self):
        transactions = [_spend("300.00", "2024-02-10")]

        stats = evaluate_budget(_budget(rollover_enabled=True), transactions, VIEW)

        assert stats.rollover_amount == Decimal("200.00")
        assert stats.effective_limit == Decimal("700.00")

    def test_overspend_lowers_limit(self):
        transactions = [_spend("600.00", "2024-02-10")]

        stats = evaluate_budget(_budget(rollover_enabled=True), transactions, VIEW)

        assert stats.rollover_amount == Decimal("-100.00")
        assert stats.effective_limit == Decimal("400.00")

    def test_effective_limit_never_negative(self):
        transactions = [_spend("1500.00", "2024-02-10"), _spend("10.00", "2024-03-02")]

        stats = evaluate_budget(_budget(rollover_enabled=True), transactions, VIEW)

        assert stats.effective_limit == Decimal("0")
        assert stats.percent == 100.0
        assert stats.status == BudgetStatus.CRITICAL

    def test_rollover_disabled(self):
        stats = evaluate_budget(_budget(), [_spend("100.00", "2024-02-10")], VIEW)
        assert stats.rollover_amount == Decimal("0.00")
        assert stats.effective_limit == Decimal("500.00")

    def test_only_category_expenses_in_period_count(self):
        transactions = [
            _spend("100.00", "2024-03-01"),
            _spend("50.00", "2024-03-31"),
            _spend("70.00", "2024-04-01"),
            _spend("80.00", "2024-03-10", category="Lazer"),
            make_tx(type=TransactionType.INCOME, amount="90.00", date="2024-03-10", category="Alimentação"),
        ]

        stats = evaluate_budget(_budget(), transactions, VIEW)

        assert stats.current_spent == Decimal("150.00")
        assert len(stats.transactions) == 2
        assert stats.remaining == Decimal("350.00")

    def test_status_thresholds(self):
        normal = evaluate_budget(_budget(), [_spend("370.00", "2024-03-02")], VIEW)
        warning = evaluate_budget(_budget(), [_spend("375.00", "2024-03-02")], VIEW)
        critical = evaluate_budget(_budget(), [_spend("500.00", "2024-03-02")], VIEW)

        assert normal.status == BudgetStatus.NORMAL
        assert warning.status == BudgetStatus.WARNING
        assert critical.status == BudgetStatus.CRITICAL

    def test_zero_limit_and_zero_spend(self):
        stats = evaluate_budget(_budget(limit=Decimal("0")), [], VIEW)
        assert stats.percent == 0.0
        assert stats.status == BudgetStatus.NORMAL

    def test_paused_budget_reports_nothing(self):
        stats = evaluate_budget(
            _budget(paused=True, rollover_enabled=True),
            [_spend("450.00", "2024-03-02"), _spend("100.00", "2024-02-02")],
            VIEW,
        )

        assert stats.status == BudgetStatus.PAUSED
        assert stats.current_spent == Decimal("0.00")
        assert stats.percent == 0.0
        assert stats.rollover_amount == Decimal("0.00")

    def test_weekly_rollover_uses_previous_week(self):
        budget = _budget(frequency=BudgetFrequency.WEEKLY, limit=Decimal("100.00"), rollover_enabled=True)
        transactions = [
            _spend("40.00", "2024-03-04"),   # previous week (Mon)
            _spend("20.00", "2024-03-10"),   # previous week (Sun)
            _spend("30.00", "2024-03-11"),   # this week
        ]

        stats = evaluate_budget(budget, transactions, VIEW)

        assert stats.rollover_amount == Decimal("40.00")
        assert stats.effective_limit == Decimal("140.00")
        assert stats.current_spent == Decimal("30.00")

    def test_yearly_has_no_rollover(self):
        budget = _budget(frequency=BudgetFrequency.YEARLY, rollover_enabled=True)
        stats = evaluate_budget(budget, [_spend("100.00", "2023-05-01")], VIEW)
        assert stats.rollover_amount == Decimal("0.00")


class TestEvaluateBudgets:
    """Tests for the budget overview."""

    def test_filters_by_period_and_sorts_by_usage(self):
        budgets = [
            _budget(id="low"),
            _budget(id="high", category="Lazer", limit=Decimal("100.00")),
            _budget(id="weekly", frequency=BudgetFrequency.WEEKLY),
        ]
        transactions = [
            _spend("50.00", "2024-03-02"),
            _spend("90.00", "2024-03-02", category="Lazer"),
        ]

        stats = evaluate_budgets(budgets, transactions, VIEW, BudgetFrequency.MONTHLY)

        assert [s.budget.id for s in stats] == ["high", "low"]

    def test_totals(self):
        stats = evaluate_budgets(
            [_budget(), _budget(id="b2", category="Lazer", limit=Decimal("100.00"))],
            [_spend("50.00", "2024-03-02"), _spend("120.00", "2024-03-03", category="Lazer")],
            VIEW,
        )

        totals = budget_totals(stats)

        assert totals.budgeted == Decimal("600.00")
        assert totals.spent == Decimal("170.00")
        assert totals.remaining == Decimal("430.00")
