"""
Recurrence Generator

Persists the occurrences planned by `finledger.engine.recurrence`.

DESIGN DECISION: Batch generation is PARTIAL-FAILURE TOLERANT. Each
occurrence is saved on its own; one that fails (storage error, closed
month, ...) is logged and audited, and the batch moves on to the next
one. This is the opposite of the single-item writes in
`LedgerService`, which always propagate errors.
"""

from typing import Optional
from uuid import UUID

import structlog

from finledger.engine.recurrence import plan_occurrences
from finledger.models.audit import AuditEventBuilder
from finledger.models.ledger import Transaction
from finledger.services.ledger import LedgerService


logger = structlog.get_logger("finledger.recurrence")


class RecurrenceGenerator:
    """Generates missing monthly occurrences of recurring templates."""

    def __init__(self, ledger: LedgerService, horizon_months: Optional[int] = None):
        self._ledger = ledger
        self._horizon = horizon_months or ledger.settings.recurrence_horizon_months

    async def run(
        self,
        transactions: list[Transaction],
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Plan and save every missing occurrence.

        Args:
            transactions: The ledger as loaded (templates and occurrences)
            correlation_id: Groups the audit events of one run

        Returns:
            The occurrences that were saved
        """
        drafts = plan_occurrences(transactions, self._ledger.today(), self._horizon)
        created: list[Transaction] = []

        for draft in drafts:
            try:
                saved = await self._ledger.create(draft)
            except Exception as e:
                logger.warning(
                    "recurrence_occurrence_failed",
                    template_id=draft.recurrence_parent_id,
                    date=draft.date,
                    error=str(e),
                )
                await self._ledger.audit.log_recurrence_failed(
                    template_id=draft.recurrence_parent_id or "",
                    date=draft.date,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
                continue

            created.extend(saved)
            for occurrence in saved:
                await self._ledger.audit.log(AuditEventBuilder.recurrence_generated(
                    template_id=draft.recurrence_parent_id or "",
                    occurrence_id=occurrence.id,
                    date=occurrence.date,
                    correlation_id=correlation_id,
                ))

        if created:
            logger.info("recurrence_generated", count=len(created))
        return created
