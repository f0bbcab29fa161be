"""Tests for balance, rollover and cash-flow views."""

from decimal import Decimal

from conftest import make_tx

from finledger.engine.balance import (
    compute_balance,
    daily_flow,
    month_to_date,
    monthly_summary,
    semiannual_flow,
)
from finledger.models.ledger import TransactionType

INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE


class TestComputeBalance:
    """Tests for the cash view of a month."""

    def test_negative_rollover_is_carried_forward(self):
        transactions = [
            make_tx(type=EXPENSE, amount="200.00", date="2024-02-10"),
            make_tx(type=INCOME, amount="150.00", date="2024-03-05"),
        ]

        summary = compute_balance(transactions, 2024, 3)

        assert summary.rollover == Decimal("-200.00")
        assert summary.operational_balance == Decimal("150.00")
        assert summary.balance == Decimal("-50.00")

    def test_card_transactions_are_excluded(self):
        transactions = [
            make_tx(type=INCOME, amount="1000.00", date="2024-03-01"),
            make_tx(type=EXPENSE, amount="400.00", date="2024-03-02", card_id="card-1", is_paid=False),
            make_tx(type=EXPENSE, amount="250.00", date="2024-02-02", card_id="card-1", is_paid=True),
        ]

        summary = compute_balance(transactions, 2024, 3)

        assert summary.total_expense == Decimal("0.00")
        assert summary.rollover == Decimal("0.00")
        assert summary.balance == Decimal("1000.00")

    def test_month_boundaries_are_inclusive(self):
        transactions = [
            make_tx(type=INCOME, amount="10.00", date="2024-02-29"),
            make_tx(type=INCOME, amount="20.00", date="2024-03-01"),
            make_tx(type=INCOME, amount="30.00", date="2024-03-31"),
            make_tx(type=INCOME, amount="40.00", date="2024-04-01"),
        ]

        summary = compute_balance(transactions, 2024, 3)

        assert summary.rollover == Decimal("10.00")
        assert summary.total_income == Decimal("50.00")
        assert summary.balance == Decimal("60.00")

    def test_consecutive_months_reconcile(self):
        """Next month's rollover equals this month's final balance."""
        transactions = [
            make_tx(type=INCOME, amount="3000.00", date="2024-01-05"),
            make_tx(type=EXPENSE, amount="1200.50", date="2024-01-20"),
            make_tx(type=EXPENSE, amount="2500.00", date="2024-02-03"),
            make_tx(type=INCOME, amount="100.25", date="2024-02-28"),
        ]

        february = compute_balance(transactions, 2024, 2)
        march = compute_balance(transactions, 2024, 3)

        assert march.rollover == february.balance


class TestEconomicView:
    """Tests for month-to-date figures and the monthly summary."""

    def test_month_to_date_includes_card_purchases(self):
        transactions = [
            make_tx(type=INCOME, amount="1000.00", date="2024-03-01"),
            make_tx(type=EXPENSE, amount="400.00", date="2024-03-02", card_id="card-1", is_paid=False),
        ]

        mtd = month_to_date(transactions, 2024, 3)

        assert mtd.expense == Decimal("400.00")
        assert mtd.balance == Decimal("600.00")

    def test_monthly_summary_deltas_and_categories(self):
        transactions = [
            make_tx(type=EXPENSE, amount="100.00", date="2024-02-10", category="Lazer"),
            make_tx(type=EXPENSE, amount="150.00", date="2024-03-10", category="Lazer"),
            make_tx(type=EXPENSE, amount="50.00", date="2024-03-11", category="Saúde"),
            make_tx(type=INCOME, amount="500.00", date="2024-03-01", category="Salário"),
        ]

        summary = monthly_summary(transactions, 2024, 3)

        assert summary.expense == Decimal("200.00")
        assert summary.expense_delta == 100.0
        assert summary.income_delta == 100.0
        assert summary.rollover == Decimal("-100.00")
        assert summary.real_balance == Decimal("200.00")
        assert list(summary.expense_by_category) == ["Lazer", "Saúde"]

    def test_monthly_summary_delta_is_zero_when_both_months_empty(self):
        summary = monthly_summary([], 2024, 3)
        assert summary.income_delta == 0.0
        assert summary.expense_delta == 0.0


class TestFlowViews:
    """Tests for the daily and semiannual cash-flow views."""

    def test_daily_flow_cumulative_matches_balance(self):
        transactions = [
            make_tx(type=INCOME, amount="500.00", date="2024-02-01"),
            make_tx(type=EXPENSE, amount="120.00", date="2024-02-01"),
            make_tx(type=EXPENSE, amount="80.00", date="2024-03-04"),
            make_tx(type=EXPENSE, amount="999.00", date="2024-03-05", card_id="card-1"),
        ]

        rows = daily_flow(transactions)

        assert [r.date for r in rows] == ["2024-02-01", "2024-03-04"]
        assert rows[0].day_balance == Decimal("380.00")
        assert rows[-1].cumulative_balance == compute_balance(transactions, 2024, 3).balance

    def test_semiannual_flow_most_recent_first(self):
        transactions = [
            make_tx(type=INCOME, amount="100.00", date="2023-08-01"),
            make_tx(type=INCOME, amount="200.00", date="2024-02-01"),
            make_tx(type=EXPENSE, amount="50.00", date="2024-06-30"),
            make_tx(type=EXPENSE, amount="70.00", date="2024-07-01"),
        ]

        rows = semiannual_flow(transactions)

        assert [(r.year, r.half) for r in rows] == [(2024, 2), (2024, 1), (2023, 2)]
        assert rows[1].net == Decimal("150.00")
        assert rows[0].total_out == Decimal("70.00")
