"""Tests for budget alerts and upcoming bills."""

from datetime import date
from decimal import Decimal

from conftest import make_tx

from finledger.engine.notifications import (
    budget_notifications,
    generate_notifications,
    upcoming_bills,
)
from finledger.models.ledger import Budget, NotificationType, TransactionType

TODAY = date(2024, 3, 15)


def _budget(**fields) -> Budget:
    defaults = {"id": "b1", "category": "Lazer", "limit": Decimal("100.00")}
    defaults.update(fields)
    return Budget(**defaults)


def _bill(day: str, **fields):
    return make_tx(
        date=day,
        type=TransactionType.EXPENSE,
        is_recurring=True,
        description="Internet",
        **fields,
    )


class TestBudgetNotifications:
    """Tests for exceeded and near-limit budgets."""

    def test_exceeded_is_critical(self):
        spent = [make_tx(category="Lazer", amount="120.00", date="2024-03-02")]

        notifications = budget_notifications([_budget()], spent, TODAY)

        assert [n.id for n in notifications] == ["budget-exceed-b1"]
        assert notifications[0].type == NotificationType.CRITICAL

    def test_message_uses_brazilian_money_format(self):
        spent = [make_tx(category="Lazer", amount="1234.56", date="2024-03-02")]

        notifications = budget_notifications([_budget(limit=Decimal("1000.00"))], spent, TODAY)

        assert "R$ 1.234,56 / R$ 1.000,00" in notifications[0].message

    def test_above_ratio_is_warning(self):
        spent = [make_tx(category="Lazer", amount="95.00", date="2024-03-02")]

        notifications = budget_notifications([_budget()], spent, TODAY, warning_ratio=0.9)

        assert notifications[0].type == NotificationType.WARNING
        assert "95%" in notifications[0].message

    def test_at_limit_is_only_a_warning(self):
        spent = [make_tx(category="Lazer", amount="100.00", date="2024-03-02")]
        notifications = budget_notifications([_budget()], spent, TODAY)
        assert notifications[0].type == NotificationType.WARNING

    def test_same_month_of_another_year_is_ignored(self):
        spent = [make_tx(category="Lazer", amount="500.00", date="2023-03-02")]
        assert budget_notifications([_budget()], spent, TODAY) == []

    def test_paused_budget_is_silent(self):
        spent = [make_tx(category="Lazer", amount="500.00", date="2024-03-02")]
        assert budget_notifications([_budget(paused=True)], spent, TODAY) == []


class TestUpcomingBills:
    """Tests for recurring expenses due soon."""

    def test_due_within_window(self):
        bills = upcoming_bills([_bill("2024-01-20"), _bill("2024-01-16")], TODAY)
        assert [b.due_date for b in bills] == ["2024-03-16", "2024-03-20"]

    def test_outside_window(self):
        assert upcoming_bills([_bill("2024-01-28")], TODAY) == []

    def test_passed_day_moves_to_next_month(self):
        bills = upcoming_bills([_bill("2024-01-02")], date(2024, 3, 28))
        assert [b.due_date for b in bills] == ["2024-04-02"]

    def test_due_today_counts(self):
        bills = upcoming_bills([_bill("2024-01-15")], TODAY)
        assert len(bills) == 1

    def test_only_expense_templates(self):
        transactions = [
            _bill("2024-01-16", recurrence_parent_id="tpl"),
            make_tx(date="2024-01-17", type=TransactionType.INCOME, is_recurring=True),
            make_tx(date="2024-01-18"),
        ]
        assert upcoming_bills(transactions, TODAY) == []

    def test_generate_orders_budget_alerts_first(self):
        transactions = [
            _bill("2024-01-16"),
            make_tx(category="Lazer", amount="500.00", date="2024-03-02"),
        ]

        notifications = generate_notifications(transactions, [_budget()], TODAY)

        assert [n.type for n in notifications] == [NotificationType.CRITICAL, NotificationType.INFO]
