"""
Data Models Package

This package contains all Pydantic models used by Finledger.
Every record read from or written to the ledger store conforms to these schemas.
"""

from finledger.models.ledger import (
    CATEGORY_CARD_PAYMENT,
    CATEGORY_DEBTS,
    CATEGORY_TRANSFER,
    TAG_AUTO,
    TAG_AUTO_RECURRING,
    TAG_DEBT,
    TAG_IMPORTED,
    TAG_INVOICE,
    BalanceSummary,
    Budget,
    BudgetFrequency,
    BudgetStats,
    BudgetStatus,
    BudgetTotals,
    CardUsage,
    CreditCard,
    DailyFlow,
    Debt,
    DebtCategory,
    Frequency,
    Goal,
    GoalPriority,
    GoalStatus,
    Invoice,
    MonthlyClosure,
    MonthlySummary,
    MonthToDate,
    Notification,
    NotificationType,
    SemiannualFlow,
    Transaction,
    TransactionDraft,
    TransactionNature,
    TransactionType,
    UpcomingBill,
    goal_tag,
    quantize_money,
)
from finledger.models.simulation import (
    DebtStrategy,
    PayoffSimulation,
    SimulationPoint,
)
from finledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "BalanceSummary",
    "Budget",
    "BudgetFrequency",
    "BudgetStats",
    "BudgetStatus",
    "BudgetTotals",
    "CardUsage",
    "CreditCard",
    "DailyFlow",
    "Debt",
    "DebtCategory",
    "Frequency",
    "Goal",
    "GoalPriority",
    "GoalStatus",
    "Invoice",
    "MonthlyClosure",
    "MonthlySummary",
    "MonthToDate",
    "Notification",
    "NotificationType",
    "SemiannualFlow",
    "Transaction",
    "TransactionDraft",
    "TransactionNature",
    "TransactionType",
    "UpcomingBill",
    "goal_tag",
    "quantize_money",
    # Labels and tags
    "CATEGORY_CARD_PAYMENT",
    "CATEGORY_DEBTS",
    "CATEGORY_TRANSFER",
    "TAG_AUTO",
    "TAG_AUTO_RECURRING",
    "TAG_DEBT",
    "TAG_IMPORTED",
    "TAG_INVOICE",
    # Simulation models
    "DebtStrategy",
    "PayoffSimulation",
    "SimulationPoint",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
