"""
Budget Evaluation

A budget caps spending in one expense category over a period (month,
Monday-to-Sunday week or calendar year). With rollover enabled, the
unused part of the previous period raises this period's limit, and an
overspend lowers it:

    rollover        = limit - spent in the previous period
    effective_limit = max(0, limit + rollover)

Yearly budgets never roll over.

Status thresholds: CRITICAL at 100% of the effective limit, WARNING at
the configured warning percent (75 by default), NORMAL below. A paused
budget reports zero spend and PAUSED status.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from finledger.engine.dates import month_bounds, shift_month, week_bounds, year_bounds
from finledger.models.ledger import (
    Budget,
    BudgetFrequency,
    BudgetStats,
    BudgetStatus,
    BudgetTotals,
    Transaction,
    TransactionType,
)

ZERO = Decimal("0.00")


def period_bounds(view_date: date, period: BudgetFrequency) -> tuple[str, str]:
    """(start key, end key) of the period of type `period` containing `view_date`."""
    if period == BudgetFrequency.WEEKLY:
        start, end = week_bounds(view_date)
        return start.isoformat(), end.isoformat()
    if period == BudgetFrequency.YEARLY:
        return year_bounds(view_date.year)
    return month_bounds(view_date.year, view_date.month)


def previous_period_bounds(view_date: date, period: BudgetFrequency) -> Optional[tuple[str, str]]:
    """Bounds of the period before the one containing `view_date`; None for yearly."""
    if period == BudgetFrequency.WEEKLY:
        start, _ = week_bounds(view_date)
        return period_bounds(start - timedelta(days=7), period)
    if period == BudgetFrequency.MONTHLY:
        year, month = shift_month(view_date.year, view_date.month, -1)
        return month_bounds(year, month)
    return None


def category_expenses(
    transactions: Iterable[Transaction],
    category: str,
    start: str,
    end: str,
) -> list[Transaction]:
    """Expenses of `category` dated within [start, end]."""
    return [
        t for t in transactions
        if t.type == TransactionType.EXPENSE
        and t.category == category
        and start <= t.date <= end
    ]


def _total(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions), ZERO)


def budget_status(percent: float, warning_percent: float = 75.0) -> BudgetStatus:
    if percent >= 100:
        return BudgetStatus.CRITICAL
    if percent >= warning_percent:
        return BudgetStatus.WARNING
    return BudgetStatus.NORMAL


def evaluate_budget(
    budget: Budget,
    transactions: list[Transaction],
    view_date: date,
    warning_percent: float = 75.0,
) -> BudgetStats:
    """
    Evaluate one budget for the period containing `view_date`.

    The period type is the budget's own frequency.
    """
    start, end = period_bounds(view_date, budget.frequency)

    if budget.paused:
        return BudgetStats(
            budget=budget,
            period_start=start,
            period_end=end,
            current_spent=ZERO,
            rollover_amount=ZERO,
            effective_limit=budget.limit,
            remaining=ZERO,
            percent=0.0,
            status=BudgetStatus.PAUSED,
        )

    items = category_expenses(transactions, budget.category, start, end)
    spent = _total(items)

    rollover = ZERO
    if budget.rollover_enabled:
        previous = previous_period_bounds(view_date, budget.frequency)
        if previous is not None:
            prev_spent = _total(category_expenses(transactions, budget.category, *previous))
            rollover = budget.limit - prev_spent

    effective = max(ZERO, budget.limit + rollover)
    if effective > 0:
        percent = float(spent / effective * 100)
    else:
        percent = 100.0 if spent > 0 else 0.0

    return BudgetStats(
        budget=budget,
        period_start=start,
        period_end=end,
        current_spent=spent,
        rollover_amount=rollover,
        effective_limit=effective,
        remaining=effective - spent,
        percent=percent,
        status=budget_status(percent, warning_percent),
        transactions=items,
    )


def evaluate_budgets(
    budgets: Iterable[Budget],
    transactions: list[Transaction],
    view_date: date,
    period: BudgetFrequency = BudgetFrequency.MONTHLY,
    warning_percent: float = 75.0,
) -> list[BudgetStats]:
    """
    Evaluate every budget of the viewed period type, highest usage first.

    Budgets of other frequencies are not part of the view.
    """
    stats = [
        evaluate_budget(budget, transactions, view_date, warning_percent)
        for budget in budgets
        if budget.frequency == period
    ]
    return sorted(stats, key=lambda s: s.percent, reverse=True)


def budget_totals(stats: Iterable[BudgetStats]) -> BudgetTotals:
    """Aggregate budgeted/spent/remaining over the evaluated budgets."""
    totals = BudgetTotals()
    for s in stats:
        totals.budgeted += s.effective_limit
        totals.spent += s.current_spent
        totals.remaining += s.remaining
    return totals
