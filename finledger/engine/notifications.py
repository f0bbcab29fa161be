"""
Notification Generation

Alerts derived from the ledger on every load:

- budget EXCEEDED (critical) or above the warning ratio (warning) for the
  current calendar month
- recurring expenses due within the next few days (info)

Notifications carry deterministic ids (`budget-exceed-<id>`,
`bill-<id>`) so the presentation layer can de-duplicate them between
loads.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from finledger.engine.budgets import category_expenses
from finledger.engine.dates import clamp_to_month, key_day, month_bounds, shift_month
from finledger.models.ledger import (
    Budget,
    Notification,
    NotificationType,
    Transaction,
    TransactionType,
    UpcomingBill,
)


def _money(value: Decimal) -> str:
    # pt-BR separators: 1.234,56
    us = f"{value:,.2f}"
    return "R$ " + us.replace(",", "_").replace(".", ",").replace("_", ".")


def budget_notifications(
    budgets: Iterable[Budget],
    transactions: list[Transaction],
    today: date,
    warning_ratio: float = 0.9,
) -> list[Notification]:
    start, end = month_bounds(today.year, today.month)
    ratio = Decimal(str(warning_ratio))
    notifications = []

    for budget in budgets:
        if budget.paused:
            continue
        spent = sum(
            (t.amount for t in category_expenses(transactions, budget.category, start, end)),
            Decimal("0.00"),
        )
        if spent > budget.limit:
            notifications.append(Notification(
                id=f"budget-exceed-{budget.id}",
                title="Orçamento Excedido",
                message=(
                    f"Você excedeu o orçamento de {budget.category} "
                    f"({_money(spent)} / {_money(budget.limit)})"
                ),
                type=NotificationType.CRITICAL,
                date=today.isoformat(),
            ))
        elif spent > budget.limit * ratio:
            notifications.append(Notification(
                id=f"budget-warn-{budget.id}",
                title="Alerta de Orçamento",
                message=f"Você já usou {spent / budget.limit * 100:.0f}% do orçamento de {budget.category}",
                type=NotificationType.WARNING,
                date=today.isoformat(),
            ))
    return notifications


def upcoming_bills(
    transactions: Iterable[Transaction],
    today: date,
    window_days: int = 7,
) -> list[UpcomingBill]:
    """
    Recurring expense templates whose next due date is within the window.

    The due date is the template's day in the current month, or in the
    next month once this month's has passed. Soonest first.
    """
    horizon = today + timedelta(days=window_days)
    bills = []
    for t in transactions:
        if not (t.is_template and t.type == TransactionType.EXPENSE):
            continue
        due = clamp_to_month(today.year, today.month, key_day(t.date))
        if due < today:
            year, month = shift_month(today.year, today.month, 1)
            due = clamp_to_month(year, month, key_day(t.date))
        if today <= due <= horizon:
            bills.append(UpcomingBill(transaction=t, due_date=due.isoformat()))
    return sorted(bills, key=lambda b: b.due_date)


def bill_notifications(
    transactions: list[Transaction],
    today: date,
    window_days: int = 7,
) -> list[Notification]:
    return [
        Notification(
            id=f"bill-{bill.transaction.id}",
            title="Conta Próxima",
            message=(
                f"{bill.transaction.description} vence em {bill.due_date} "
                f"({_money(bill.transaction.amount)})"
            ),
            type=NotificationType.INFO,
            date=today.isoformat(),
        )
        for bill in upcoming_bills(transactions, today, window_days)
    ]


def generate_notifications(
    transactions: list[Transaction],
    budgets: Iterable[Budget],
    today: date,
    warning_ratio: float = 0.9,
    window_days: int = 7,
) -> list[Notification]:
    """All current alerts: budget alerts first, then upcoming bills."""
    return (
        budget_notifications(budgets, transactions, today, warning_ratio)
        + bill_notifications(transactions, today, window_days)
    )
