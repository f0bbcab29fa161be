"""
Ledger Derivation Engine

Pure functions that derive everything the ledger does not store:
recurring occurrences, installments and invoices, balances, budget
usage, debt payoff schedules, notifications and CSV drafts.

Nothing in this package performs I/O or reads the system clock; the
reference date is always passed in.
"""

from finledger.engine.balance import (
    compute_balance,
    daily_flow,
    is_cash_flow,
    month_to_date,
    monthly_summary,
    semiannual_flow,
)
from finledger.engine.budgets import (
    budget_totals,
    evaluate_budget,
    evaluate_budgets,
    period_bounds,
)
from finledger.engine.csv_import import parse_csv
from finledger.engine.dates import (
    Clock,
    add_months_clamped,
    month_bounds,
    system_clock,
    to_local_date_key,
)
from finledger.engine.debts import simulate_payoff
from finledger.engine.installments import (
    allocate_installments,
    card_usage,
    group_invoices,
    invoice_period,
    split_amount,
)
from finledger.engine.notifications import generate_notifications, upcoming_bills
from finledger.engine.recurrence import plan_occurrences

__all__ = [
    # Dates
    "Clock",
    "add_months_clamped",
    "month_bounds",
    "system_clock",
    "to_local_date_key",
    # Recurrence
    "plan_occurrences",
    # Cards
    "allocate_installments",
    "card_usage",
    "group_invoices",
    "invoice_period",
    "split_amount",
    # Balances
    "compute_balance",
    "daily_flow",
    "is_cash_flow",
    "month_to_date",
    "monthly_summary",
    "semiannual_flow",
    # Budgets
    "budget_totals",
    "evaluate_budget",
    "evaluate_budgets",
    "period_bounds",
    # Debts
    "simulate_payoff",
    # Notifications
    "generate_notifications",
    "upcoming_bills",
    # Import
    "parse_csv",
]
