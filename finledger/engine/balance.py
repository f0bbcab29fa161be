"""
Balance Calculation

Two views of the same ledger:

CASH VIEW (`compute_balance`, daily and semiannual flow): card-linked
transactions are left out. A card purchase reaches cash only through
the settlement transaction created when its invoice is paid; counting
both would double the expense.

ECONOMIC VIEW (`month_to_date`, `monthly_summary` figures): every
income and expense counts in the month it is dated, card purchases
included.

The rollover is the net cash of everything dated before the month. It
is not floored at zero: a deficit carries forward.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable

from finledger.engine.dates import month_bounds, shift_month
from finledger.models.ledger import (
    BalanceSummary,
    DailyFlow,
    MonthlySummary,
    MonthToDate,
    SemiannualFlow,
    Transaction,
    TransactionType,
)

ZERO = Decimal("0.00")


def is_cash_flow(t: Transaction) -> bool:
    """True for entries that move cash: non-card income and expense."""
    return not t.card_id and t.type in (TransactionType.INCOME, TransactionType.EXPENSE)


def _sum(transactions: Iterable[Transaction], kind: TransactionType) -> Decimal:
    return sum((t.amount for t in transactions if t.type == kind), ZERO)


def compute_balance(transactions: list[Transaction], year: int, month: int) -> BalanceSummary:
    """
    Cash balance of a month.

    Args:
        transactions: The full ledger
        year: Calendar year
        month: Calendar month (1-12)

    Returns:
        Month income/expense, the rollover from all earlier months and
        the resulting balance (rollover + operational balance)
    """
    start, end = month_bounds(year, month)
    cash = [t for t in transactions if is_cash_flow(t)]

    previous = [t for t in cash if t.date < start]
    rollover = _sum(previous, TransactionType.INCOME) - _sum(previous, TransactionType.EXPENSE)

    current = [t for t in cash if start <= t.date <= end]
    income = _sum(current, TransactionType.INCOME)
    expense = _sum(current, TransactionType.EXPENSE)

    return BalanceSummary(
        year=year,
        month=month,
        total_income=income,
        total_expense=expense,
        rollover=rollover,
        balance=rollover + income - expense,
    )


def month_to_date(transactions: list[Transaction], year: int, month: int) -> MonthToDate:
    """Economic income/expense of a month, card purchases included."""
    start, end = month_bounds(year, month)
    current = [t for t in transactions if start <= t.date <= end]
    income = _sum(current, TransactionType.INCOME)
    expense = _sum(current, TransactionType.EXPENSE)
    return MonthToDate(income=income, expense=expense, balance=income - expense)


def percent_change(current: Decimal, previous: Decimal) -> float:
    """Month-over-month change in percent; 100 when growing from zero."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return float((current - previous) / previous * 100)


def expense_by_category(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for t in transactions:
        if t.type == TransactionType.EXPENSE:
            totals[t.category] += t.amount
    return dict(sorted(totals.items(), key=lambda item: item[1], reverse=True))


def monthly_summary(transactions: list[Transaction], year: int, month: int) -> MonthlySummary:
    """
    Monthly report.

    Income, expense and the category breakdown use the economic view;
    the rollover comes from the cash view so the real balance lines up
    with what `compute_balance` reports for the month start.
    """
    current = month_to_date(transactions, year, month)
    prev_year, prev_month = shift_month(year, month, -1)
    previous = month_to_date(transactions, prev_year, prev_month)
    rollover = compute_balance(transactions, year, month).rollover

    start, end = month_bounds(year, month)
    return MonthlySummary(
        year=year,
        month=month,
        income=current.income,
        expense=current.expense,
        operational_balance=current.balance,
        rollover=rollover,
        real_balance=rollover + current.balance,
        income_delta=percent_change(current.income, previous.income),
        expense_delta=percent_change(current.expense, previous.expense),
        expense_by_category=expense_by_category(
            t for t in transactions if start <= t.date <= end
        ),
    )


def daily_flow(transactions: list[Transaction]) -> list[DailyFlow]:
    """Per-day cash in/out with a running cumulative balance, oldest day first."""
    days: dict[str, list[Decimal]] = defaultdict(lambda: [ZERO, ZERO])
    for t in transactions:
        if not is_cash_flow(t):
            continue
        slot = 0 if t.type == TransactionType.INCOME else 1
        days[t.date][slot] += t.amount

    rows = []
    cumulative = ZERO
    for day in sorted(days):
        total_in, total_out = days[day]
        cumulative += total_in - total_out
        rows.append(DailyFlow(
            date=day,
            total_in=total_in,
            total_out=total_out,
            day_balance=total_in - total_out,
            cumulative_balance=cumulative,
        ))
    return rows


def semiannual_flow(transactions: list[Transaction]) -> list[SemiannualFlow]:
    """Cash in/out per half-year, most recent half first."""
    halves: dict[tuple[int, int], list[Decimal]] = defaultdict(lambda: [ZERO, ZERO])
    for t in transactions:
        if not is_cash_flow(t):
            continue
        half = 1 if t.month <= 6 else 2
        slot = 0 if t.type == TransactionType.INCOME else 1
        halves[(t.year, half)][slot] += t.amount

    return [
        SemiannualFlow(
            year=year,
            half=half,
            total_in=halves[(year, half)][0],
            total_out=halves[(year, half)][1],
            net=halves[(year, half)][0] - halves[(year, half)][1],
        )
        for year, half in sorted(halves, reverse=True)
    ]
