"""
Planning Service

Cards, budgets, goals and debts: the user-owned entities around the
ledger. Their balance fields change only through the two registered
operations, each of which also writes a ledger transaction through
`LedgerService` (so validation and period locks apply):

- register_debt_payment: an expense, then the debt's remaining balance
  goes down (never below zero)
- contribute_to_goal: a transfer to the goal's account, then the goal's
  current amount goes up; reaching the target completes the goal

DESIGN DECISION: The transaction is written FIRST. If it fails, the
entity is left untouched and the error propagates.
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel

from finledger.engine.budgets import budget_totals, evaluate_budgets
from finledger.engine.debts import simulate_payoff
from finledger.models.audit import AuditEventBuilder
from finledger.models.ledger import (
    CATEGORY_DEBTS,
    TAG_AUTO,
    TAG_DEBT,
    Budget,
    BudgetFrequency,
    BudgetStats,
    BudgetTotals,
    CreditCard,
    Debt,
    Goal,
    GoalStatus,
    Transaction,
    TransactionDraft,
    TransactionNature,
    TransactionType,
    goal_tag,
    quantize_money,
)
from finledger.models.simulation import DebtStrategy, PayoffSimulation
from finledger.services.ledger import LedgerService
from finledger.services.storage import LedgerStore, NotFoundError, Table

EntityT = TypeVar("EntityT", bound=BaseModel)


class PlanningService:
    """CRUD for cards/budgets/goals/debts plus payments and contributions."""

    def __init__(self, store: LedgerStore, ledger: LedgerService):
        self._store = store
        self._ledger = ledger
        self._settings = ledger.settings
        self._audit = ledger.audit

    # =========================================================================
    # GENERIC CRUD
    # =========================================================================

    async def _list(self, table: Table, model: Type[EntityT]) -> list[EntityT]:
        return [model.model_validate(r) for r in await self._store.get_all(table)]

    async def _get(self, table: Table, model: Type[EntityT], entity_id: str) -> EntityT:
        for record in await self._store.get_all(table):
            if record.get("id") == entity_id:
                return model.model_validate(record)
        raise NotFoundError(f"{table.value} record not found: {entity_id}")

    async def _create(self, table: Table, model: Type[EntityT], fields: dict[str, Any]) -> EntityT:
        # Validate before anything reaches the store
        entity = model.model_validate({**fields, "id": str(uuid.uuid4())})
        records = await self._store.insert(table, [entity.model_dump(mode="json")])
        return model.model_validate(records[0])

    async def _update(
        self,
        table: Table,
        model: Type[EntityT],
        entity_id: str,
        fields: dict[str, Any],
    ) -> EntityT:
        current = await self._get(table, model, entity_id)
        merged = model.model_validate({**current.model_dump(), **fields, "id": entity_id})
        changes = {k: v for k, v in merged.model_dump(mode="json").items() if k in fields}
        return model.model_validate(await self._store.update(table, entity_id, changes))

    # =========================================================================
    # CARDS
    # =========================================================================

    async def list_cards(self) -> list[CreditCard]:
        return await self._list(Table.CARDS, CreditCard)

    async def create_card(self, fields: dict[str, Any]) -> CreditCard:
        return await self._create(Table.CARDS, CreditCard, fields)

    async def update_card(self, card_id: str, fields: dict[str, Any]) -> CreditCard:
        return await self._update(Table.CARDS, CreditCard, card_id, fields)

    async def delete_card(self, card_id: str) -> bool:
        return await self._store.delete(Table.CARDS, card_id)

    # =========================================================================
    # BUDGETS
    # =========================================================================

    async def list_budgets(self) -> list[Budget]:
        return await self._list(Table.BUDGETS, Budget)

    async def create_budget(self, fields: dict[str, Any]) -> Budget:
        return await self._create(Table.BUDGETS, Budget, fields)

    async def update_budget(self, budget_id: str, fields: dict[str, Any]) -> Budget:
        return await self._update(Table.BUDGETS, Budget, budget_id, fields)

    async def delete_budget(self, budget_id: str) -> bool:
        return await self._store.delete(Table.BUDGETS, budget_id)

    async def budget_overview(
        self,
        view_date: date,
        period: BudgetFrequency = BudgetFrequency.MONTHLY,
    ) -> tuple[list[BudgetStats], BudgetTotals]:
        """Evaluate the budgets of one period type and total them up."""
        stats = evaluate_budgets(
            await self.list_budgets(),
            await self._ledger.list_transactions(),
            view_date,
            period,
            self._settings.budget_warning_percent,
        )
        return stats, budget_totals(stats)

    # =========================================================================
    # GOALS
    # =========================================================================

    async def list_goals(self) -> list[Goal]:
        return await self._list(Table.GOALS, Goal)

    async def create_goal(self, fields: dict[str, Any]) -> Goal:
        return await self._create(Table.GOALS, Goal, fields)

    async def update_goal(self, goal_id: str, fields: dict[str, Any]) -> Goal:
        return await self._update(Table.GOALS, Goal, goal_id, fields)

    async def delete_goal(self, goal_id: str) -> bool:
        return await self._store.delete(Table.GOALS, goal_id)

    async def contribute_to_goal(
        self,
        goal_id: str,
        amount: Decimal,
        source_account: Optional[str] = None,
        automatic: bool = False,
        date_key: Optional[str] = None,
    ) -> tuple[list[Transaction], Goal]:
        """
        Move money into a goal.

        Creates a transfer from `source_account` to the goal's target
        account tagged `meta:<goal id>`, then raises `current_amount`.

        Returns:
            (the transfer's two transactions, the updated goal)
        """
        goal = await self._get(Table.GOALS, Goal, goal_id)
        amount = quantize_money(amount)
        tags = [goal_tag(goal.id)] + ([TAG_AUTO] if automatic else [])
        label = "Aporte Automático" if automatic else "Aporte"

        created = await self._ledger.create(TransactionDraft(
            description=f"{label}: {goal.name}",
            amount=amount,
            type=TransactionType.TRANSFER,
            category=goal.target_account,
            account=source_account or self._settings.default_account,
            tags=tags,
            date=date_key or self._ledger.today().isoformat(),
            goal_id=goal.id,
            nature=TransactionNature.FIXED,
        ))

        new_amount = goal.current_amount + amount
        fields: dict[str, Any] = {"current_amount": new_amount}
        if new_amount >= goal.target_amount and goal.status == GoalStatus.ACTIVE:
            fields["status"] = GoalStatus.COMPLETED
        updated = await self._update(Table.GOALS, Goal, goal.id, fields)

        await self._audit.log(AuditEventBuilder.goal_contribution(
            goal_id=goal.id,
            amount=str(amount),
            new_amount=str(updated.current_amount),
            automatic=automatic,
        ))
        return created, updated

    # =========================================================================
    # DEBTS
    # =========================================================================

    async def list_debts(self) -> list[Debt]:
        return await self._list(Table.DEBTS, Debt)

    async def create_debt(self, fields: dict[str, Any]) -> Debt:
        return await self._create(Table.DEBTS, Debt, fields)

    async def update_debt(self, debt_id: str, fields: dict[str, Any]) -> Debt:
        return await self._update(Table.DEBTS, Debt, debt_id, fields)

    async def delete_debt(self, debt_id: str) -> bool:
        return await self._store.delete(Table.DEBTS, debt_id)

    async def register_debt_payment(
        self,
        debt_id: str,
        amount: Decimal,
        source_account: Optional[str] = None,
    ) -> tuple[Transaction, Debt]:
        """
        Pay part of a debt.

        Records an expense "Pagamento: <name>" in the debts category and
        lowers the remaining balance, flooring it at zero.
        """
        debt = await self._get(Table.DEBTS, Debt, debt_id)
        amount = quantize_money(amount)

        created = await self._ledger.create(TransactionDraft(
            description=f"Pagamento: {debt.name}",
            amount=amount,
            type=TransactionType.EXPENSE,
            category=CATEGORY_DEBTS,
            account=source_account or self._settings.default_account,
            tags=[TAG_DEBT, debt.category.value],
            date=self._ledger.today().isoformat(),
        ))

        remaining = max(Decimal("0"), debt.current_amount - amount)
        updated = await self._update(Table.DEBTS, Debt, debt.id, {"current_amount": remaining})

        await self._audit.log(AuditEventBuilder.debt_payment_registered(
            debt_id=debt.id,
            amount=str(amount),
            new_balance=str(updated.current_amount),
        ))
        return created[0], updated

    async def simulate_debts(
        self,
        extra_payment: Decimal = Decimal("0"),
        strategy: DebtStrategy = DebtStrategy.AVALANCHE,
    ) -> PayoffSimulation:
        return simulate_payoff(
            await self.list_debts(),
            extra_payment,
            strategy,
            self._settings.max_simulation_months,
        )
