"""
Audit Logger

DESIGN DECISION: Every write the ledger services make is logged.
This provides:
1. Traceability of automatic entries (recurrences, goal contributions)
2. Debugging capability for batch automations that skip items
3. A history of closed months and rejected writes

The audit logger:
- Is async so it can share the store's event loop
- Gracefully handles failures (a failed audit write never breaks a ledger write)
- Supports correlation IDs to trace related events (one automation run)
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from finledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from finledger.services.storage import LedgerStore, Table


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The store's `audit_log` table (for persistence), when a store is given
    """

    def __init__(
        self,
        store: Optional[LedgerStore] = None,
    ):
        """
        Initialize audit logger.

        Args:
            store: Ledger store used for persistence.
                   If None, only logs locally.
        """
        self._store = store
        self._logger = structlog.get_logger("finledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to the store if available.

        Returns True if the store write succeeded (or no store configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._store:
            try:
                await self._store.insert(Table.AUDIT_LOG, [event.to_record()])
                return True
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transactions_created(
        self,
        transaction_ids: list[str],
        kind: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a create (single, transfer pair or installment set)."""
        await self.log(AuditEventBuilder.transaction_created(
            transaction_ids=transaction_ids,
            kind=kind,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_recurrence_failed(
        self,
        template_id: str,
        date: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an occurrence that could not be saved."""
        await self.log(AuditEventBuilder.recurrence_failed(
            template_id=template_id,
            date=date,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_period_locked(
        self,
        period_key: str,
        operation: str,
    ) -> None:
        """Log a write rejected because its month is closed."""
        await self.log(AuditEventBuilder.period_locked(
            period_key=period_key,
            operation=operation,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a batch (e.g., one automation run).
    Pass it through all subsequent operations.
    """
    return uuid4()
