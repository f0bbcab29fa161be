"""
Main Orchestrator for Finledger

This module ties together all the components and defines the
automation flow that runs every time the ledger is loaded:

1. Load transactions, budgets and goals (in parallel)
2. Goal auto-contributions due this month
3. Recurring occurrences missing over the horizon
4. Notifications (budget alerts, upcoming bills)

DESIGN DECISION: Steps 2 and 3 are batch automations. A failure on one
goal or one occurrence is logged and audited, and the run continues;
the rest of the system stays available even if automation is
incomplete. Loading (step 1) is not tolerant: if the store cannot be
read the run fails.
"""

import asyncio
from typing import NamedTuple, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from finledger.agents import CategoryAgent
from finledger.audit import AuditLogger, create_correlation_id
from finledger.config import get_settings
from finledger.engine.dates import Clock, key_in_month, system_clock
from finledger.engine.notifications import generate_notifications, upcoming_bills
from finledger.models.audit import AuditEventBuilder
from finledger.models.ledger import (
    Goal,
    GoalStatus,
    Notification,
    Transaction,
    UpcomingBill,
    goal_tag,
)
from finledger.services.ledger import LedgerService
from finledger.services.planning import PlanningService
from finledger.services.recurrence import RecurrenceGenerator
from finledger.services.storage import (
    GoogleSheetsLedgerStore,
    InMemoryLedgerStore,
    LedgerStore,
)


logger = structlog.get_logger("finledger.orchestrator")


class AutomationReport(BaseModel):
    """What one automation run produced."""

    goal_contributions: list[Transaction] = Field(default_factory=list)
    occurrences: list[Transaction] = Field(default_factory=list)
    notifications: list[Notification] = Field(default_factory=list)
    upcoming_bills: list[UpcomingBill] = Field(default_factory=list)


class AutomationDriver:
    """
    Runs the load-time automations in order.

    Flow:
    1. Goal auto-contributions (idempotent per goal per month via the
       `meta:<goal id>` tag)
    2. Recurrence generation (idempotent per template per month)
    3. Notification generation (pure)
    """

    def __init__(
        self,
        ledger: LedgerService,
        planning: PlanningService,
        recurrence: Optional[RecurrenceGenerator] = None,
    ):
        self._ledger = ledger
        self._planning = planning
        self._recurrence = recurrence or RecurrenceGenerator(ledger)
        self._settings = ledger.settings

    def _contribution_due(self, goal: Goal, transactions: list[Transaction]) -> bool:
        today = self._ledger.today()
        if goal.status != GoalStatus.ACTIVE or not goal.has_auto_contribution:
            return False
        if today.day < goal.auto_contribution_day:
            return False
        tag = goal_tag(goal.id)
        return not any(
            tag in t.tags and key_in_month(t.date, today.year, today.month)
            for t in transactions
        )

    async def run_goal_automation(
        self,
        transactions: list[Transaction],
        goals: list[Goal],
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """Make this month's automatic contribution for every goal that is due."""
        created: list[Transaction] = []
        for goal in goals:
            if not self._contribution_due(goal, transactions + created):
                continue
            try:
                contribution, _ = await self._planning.contribute_to_goal(
                    goal.id,
                    goal.auto_contribution_amount,
                    source_account=self._settings.default_account,
                    automatic=True,
                )
            except Exception as e:
                logger.warning("goal_automation_failed", goal_id=goal.id, error=str(e))
                await self._ledger.audit.log(AuditEventBuilder.goal_automation_failed(
                    goal_id=goal.id,
                    error_message=str(e),
                    correlation_id=correlation_id,
                ))
                continue
            created.extend(contribution)
        return created

    async def run(self) -> AutomationReport:
        """
        Load the ledger and run every automation.

        Returns:
            AutomationReport with new transactions and current alerts
        """
        correlation_id = create_correlation_id()
        try:
            transactions, budgets, goals = await asyncio.gather(
                self._ledger.list_transactions(),
                self._planning.list_budgets(),
                self._planning.list_goals(),
            )
        except Exception as e:
            await self._ledger.audit.log_error(
                error_type="automation_load_failed",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        contributions = await self.run_goal_automation(transactions, goals, correlation_id)
        transactions = transactions + contributions

        occurrences = await self._recurrence.run(transactions, correlation_id)
        transactions = transactions + occurrences

        today = self._ledger.today()
        notifications = generate_notifications(
            transactions,
            budgets,
            today,
            warning_ratio=self._settings.notification_budget_ratio,
            window_days=self._settings.upcoming_bill_window_days,
        )
        bills = upcoming_bills(transactions, today, self._settings.upcoming_bill_window_days)

        logger.info(
            "automation_completed",
            correlation_id=str(correlation_id),
            goal_contributions=len(contributions),
            occurrences=len(occurrences),
            notifications=len(notifications),
        )
        return AutomationReport(
            goal_contributions=contributions,
            occurrences=occurrences,
            notifications=notifications,
            upcoming_bills=bills,
        )


class AppComponents(NamedTuple):
    store: LedgerStore
    ledger: LedgerService
    planning: PlanningService
    automation: AutomationDriver
    category_agent: CategoryAgent


def create_store(owner_id: Optional[str] = None) -> LedgerStore:
    """
    Build the configured ledger store.

    Falls back to the in-memory store if Google Sheets is selected but
    not configured.
    """
    app_settings = get_settings().app
    owner = owner_id or app_settings.owner_id

    if app_settings.storage_backend == "google_sheets":
        try:
            return GoogleSheetsLedgerStore(owner)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", backend="google_sheets", error=str(e))

    return InMemoryLedgerStore(owner)


def create_app_components(
    store: Optional[LedgerStore] = None,
    clock: Clock = system_clock,
    persist_audit: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        store: Ledger store to use. Built from settings if None.
        clock: Reference clock for every date-dependent operation
        persist_audit: Write audit events to the store's audit_log table

    Returns:
        AppComponents
    """
    store = store or create_store()
    audit_logger = AuditLogger(store if persist_audit else None)

    ledger = LedgerService(store, audit_logger=audit_logger, clock=clock)
    planning = PlanningService(store, ledger)
    automation = AutomationDriver(ledger, planning)

    return AppComponents(
        store=store,
        ledger=ledger,
        planning=planning,
        automation=automation,
        category_agent=CategoryAgent(),
    )
