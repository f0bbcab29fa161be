"""
Core Ledger Models for Finledger

These models define the strict schemas for every record flowing through
the ledger engine. They are designed to:
1. Enforce type safety at the storage boundary
2. Keep money exact (Decimal, 2 places) so installment sums never drift
3. Keep calendar dates as fixed-width `YYYY-MM-DD` keys
4. Round-trip through any record store as plain JSON values

DESIGN DECISION: Dates are stored as date keys (strings), not `date`
objects. The format is fixed-width and zero-padded, so lexical ordering
is calendar ordering and every comparison in the engine is a string
comparison - no timezone can shift a key across midnight.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


CENT = Decimal("0.01")
DATE_KEY_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def quantize_money(value: Decimal | int | float | str) -> Decimal:
    """Round a monetary value to cents (half-up)."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def _check_date_key(value: str) -> str:
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"Not a valid calendar date: {value}")
    return value


DateKey = Annotated[str, Field(pattern=DATE_KEY_PATTERN), AfterValidator(_check_date_key)]


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """
    Direction of a ledger entry.

    TRANSFER only exists on the way in: it is always materialized as an
    EXPENSE/INCOME pair and never persisted as-is.
    """
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class TransactionNature(str, Enum):
    """Classification only. Recurring entries default to FIXED."""
    FIXED = "fixed"
    VARIABLE = "variable"


class Frequency(str, Enum):
    """
    Recurrence frequency of a template.

    Only MONTHLY is generated; other values are accepted for display
    but the recurrence generator skips them.
    """
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class BudgetFrequency(str, Enum):
    """Budget period type."""
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    YEARLY = "yearly"


class BudgetStatus(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"
    PAUSED = "paused"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class GoalPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DebtCategory(str, Enum):
    LOAN = "loan"
    CREDIT_CARD = "credit_card"
    FINANCING = "financing"
    OTHER = "other"


class NotificationType(str, Enum):
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"
    CRITICAL = "critical"


# Automation markers carried in `tags`
TAG_AUTO_RECURRING = "auto-recorrente"
TAG_AUTO = "auto"
TAG_INVOICE = "fatura"
TAG_IMPORTED = "importado"
TAG_DEBT = "dívida"

# Fixed labels written by the engine itself
CATEGORY_TRANSFER = "Transferência"
CATEGORY_CARD_PAYMENT = "Pagamento de Cartão"
CATEGORY_DEBTS = "Dívidas"


def goal_tag(goal_id: str) -> str:
    """Tag that marks a transaction as a contribution to a goal."""
    return f"meta:{goal_id}"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionDraft(BaseModel):
    """
    A transaction as entered by a user (or an automation), before it
    is persisted.

    This is PROPOSED data: amounts may still be non-positive and labels
    may be empty. `TransactionValidator` decides whether it can be saved.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(default="", max_length=300)
    amount: Decimal = Field(..., description="Amount in currency units")
    date: DateKey
    type: TransactionType
    nature: Optional[TransactionNature] = None
    category: str = Field(
        default="",
        description="Category label; for transfers, the destination account"
    )
    account: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    attachment_url: Optional[str] = None

    is_recurring: bool = False
    frequency: Optional[Frequency] = None
    recurrence_end_date: Optional[DateKey] = None
    recurrence_parent_id: Optional[str] = None

    card_id: Optional[str] = None
    transaction_group_id: Optional[str] = None
    is_paid: bool = False
    installment_current: Optional[int] = Field(default=None, ge=1)
    installment_total: Optional[int] = Field(default=None, ge=1)

    goal_id: Optional[str] = None


class Transaction(TransactionDraft):
    """
    A persisted ledger entry.

    A recurring entry without a parent reference is a TEMPLATE; entries
    carrying `recurrence_parent_id` are generated occurrences and are
    ordinary transactions from then on.
    """

    id: str = Field(..., min_length=1)
    amount: Annotated[
        Decimal,
        Field(ge=0, decimal_places=2, description="Non-negative amount in currency units")
    ]
    nature: TransactionNature = TransactionNature.VARIABLE
    account: str = Field(default="Carteira")

    @property
    def is_template(self) -> bool:
        return self.is_recurring and not self.recurrence_parent_id

    @property
    def year(self) -> int:
        return int(self.date[0:4])

    @property
    def month(self) -> int:
        return int(self.date[5:7])

    @property
    def day(self) -> int:
        return int(self.date[8:10])


# =============================================================================
# CREDIT CARDS & INVOICES
# =============================================================================

class CreditCard(BaseModel):
    """
    A credit card.

    Purchases on or after `closing_day` roll into the next month's invoice.
    Both days are capped at 28 so they exist in every month.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str
    name: str = Field(..., min_length=1, max_length=100)
    limit: Decimal = Field(..., ge=0, decimal_places=2)
    closing_day: int = Field(..., ge=1, le=28)
    due_day: int = Field(..., ge=1, le=28)
    color: str = Field(default="#6366f1")


class Invoice(BaseModel):
    """All transactions of one card that fall into one billing month."""

    card_id: str
    year: int
    month: int = Field(..., ge=1, le=12)
    total: Decimal = Decimal("0.00")
    items: list[Transaction] = Field(default_factory=list)
    is_paid: bool = True

    @property
    def period_key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def transaction_ids(self) -> list[str]:
        return [t.id for t in self.items]


class CardUsage(BaseModel):
    """Limit consumption of a card: unpaid purchases only."""

    card_id: str
    limit: Decimal
    used: Decimal
    available: Decimal


# =============================================================================
# BUDGETS
# =============================================================================

class Budget(BaseModel):
    """A spending cap for one expense category over a period."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str
    category: str = Field(..., min_length=1)
    limit: Decimal = Field(..., ge=0, decimal_places=2)
    rollover_enabled: bool = False
    frequency: BudgetFrequency = BudgetFrequency.MONTHLY
    paused: bool = False
    start_date: Optional[DateKey] = None
    end_date: Optional[DateKey] = None


class BudgetStats(BaseModel):
    """Evaluation of one budget for one viewed period."""

    budget: Budget
    period_start: str
    period_end: str
    current_spent: Decimal
    rollover_amount: Decimal
    effective_limit: Decimal
    remaining: Decimal
    percent: float
    status: BudgetStatus
    transactions: list[Transaction] = Field(default_factory=list)


class BudgetTotals(BaseModel):
    budgeted: Decimal = Decimal("0.00")
    spent: Decimal = Decimal("0.00")
    remaining: Decimal = Decimal("0.00")


# =============================================================================
# GOALS & DEBTS
# =============================================================================

class Goal(BaseModel):
    """
    A savings goal.

    `current_amount` only grows, through contributions. When both
    auto-contribution fields are set, the automation driver makes one
    contribution per month once the configured day has been reached.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str
    name: str = Field(..., min_length=1, max_length=100)
    target_amount: Decimal = Field(..., gt=0, decimal_places=2)
    current_amount: Decimal = Field(default=Decimal("0.00"), ge=0, decimal_places=2)
    deadline: Optional[DateKey] = None
    color: str = Field(default="#10b981")
    target_account: str = Field(default="Investimentos")
    auto_contribution_amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    auto_contribution_day: Optional[int] = Field(default=None, ge=1, le=31)
    priority: GoalPriority = GoalPriority.MEDIUM
    status: GoalStatus = GoalStatus.ACTIVE

    @property
    def has_auto_contribution(self) -> bool:
        return bool(self.auto_contribution_day and self.auto_contribution_amount)


class Debt(BaseModel):
    """
    A debt being paid down.

    `total_amount` never changes; `current_amount` is the remaining
    balance. `interest_rate` is a MONTHLY percentage.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str
    name: str = Field(..., min_length=1, max_length=100)
    total_amount: Decimal = Field(..., ge=0)
    current_amount: Decimal = Field(..., ge=0)
    interest_rate: Decimal = Field(default=Decimal("0"), ge=0)
    min_payment: Decimal = Field(default=Decimal("0"), ge=0)
    due_day: int = Field(default=10, ge=1, le=31)
    category: DebtCategory = DebtCategory.OTHER

    @model_validator(mode='before')
    @classmethod
    def default_remaining_balance(cls, data: Any) -> Any:
        """A debt without a recorded remaining balance is still owed in full."""
        if isinstance(data, dict) and data.get("current_amount") is None:
            data = {**data, "current_amount": data.get("total_amount")}
        return data


# =============================================================================
# CLOSURES & NOTIFICATIONS
# =============================================================================

class MonthlyClosure(BaseModel):
    """A month flagged closed rejects every write dated inside it."""

    id: Optional[str] = None
    year: int = Field(..., ge=1900, le=9999)
    month: int = Field(..., ge=1, le=12)
    is_closed: bool = False
    closed_at: Optional[datetime] = None

    @property
    def period_key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


class Notification(BaseModel):
    id: str
    title: str
    message: str
    type: NotificationType
    date: DateKey
    read: bool = False


class UpcomingBill(BaseModel):
    transaction: Transaction
    due_date: DateKey


# =============================================================================
# BALANCE VIEWS
# =============================================================================

class BalanceSummary(BaseModel):
    """
    Cash view of one month.

    Card-linked transactions are excluded: they reach cash only through
    the settlement transaction created when their invoice is paid.
    """

    year: int
    month: int
    total_income: Decimal
    total_expense: Decimal
    rollover: Decimal
    balance: Decimal

    @property
    def operational_balance(self) -> Decimal:
        return self.total_income - self.total_expense


class MonthToDate(BaseModel):
    """Economic view of one month: card purchases count when made."""

    income: Decimal
    expense: Decimal
    balance: Decimal


class MonthlySummary(BaseModel):
    """Monthly report: economic figures, cash rollover and comparison."""

    year: int
    month: int
    income: Decimal
    expense: Decimal
    operational_balance: Decimal
    rollover: Decimal
    real_balance: Decimal
    income_delta: float
    expense_delta: float
    expense_by_category: dict[str, Decimal] = Field(default_factory=dict)


class DailyFlow(BaseModel):
    date: DateKey
    total_in: Decimal
    total_out: Decimal
    day_balance: Decimal
    cumulative_balance: Decimal


class SemiannualFlow(BaseModel):
    year: int
    half: int = Field(..., ge=1, le=2)
    total_in: Decimal
    total_out: Decimal
    net: Decimal
