"""
Audit Models for Finledger

Every write the engine makes to the ledger is logged for audit purposes.
This provides:
1. Traceability of automatic entries (recurrences, goal contributions)
2. Debugging information when a batch automation skips an item
3. A record of period locks and rejected writes

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSFER_CREATED = "transfer_created"
    INSTALLMENTS_CREATED = "installments_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    CSV_IMPORTED = "csv_imported"

    # Cards and debts
    INVOICE_PAID = "invoice_paid"
    DEBT_PAYMENT_REGISTERED = "debt_payment_registered"

    # Goals
    GOAL_CONTRIBUTION = "goal_contribution"
    GOAL_AUTOMATION_FAILED = "goal_automation_failed"

    # Recurrence engine
    RECURRENCE_GENERATED = "recurrence_generated"
    RECURRENCE_FAILED = "recurrence_failed"

    # Guards
    VALIDATION_FAILED = "validation_failed"
    PERIOD_LOCKED = "period_locked"
    MONTH_CLOSED = "month_closed"
    MONTH_REOPENED = "month_reopened"

    # System events
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every ledger write creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'goal', 'card')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Store id of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one automation run)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_record(self) -> dict:
        """
        Convert to a flat record for the `audit_log` table.

        `details` is JSON-encoded so every value is a scalar.
        """
        return {
            "id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type or "",
            "entity_id": self.entity_id or "",
            "correlation_id": str(self.correlation_id) if self.correlation_id else "",
            "description": self.description,
            "details_json": json.dumps(self.details, default=str) if self.details else "",
            "error_message": self.error_message or "",
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(ids, "single", "120.00")
        event = AuditEventBuilder.recurrence_failed(template_id, "2024-03-05", "timeout")
    """

    @staticmethod
    def transaction_created(
        transaction_ids: list[str],
        kind: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        event_type = {
            "transfer": AuditEventType.TRANSFER_CREATED,
            "installments": AuditEventType.INSTALLMENTS_CREATED,
        }.get(kind, AuditEventType.TRANSACTION_CREATED)
        return AuditEvent(
            event_type=event_type,
            entity_type="transaction",
            entity_id=transaction_ids[0] if transaction_ids else None,
            correlation_id=correlation_id,
            description=f"Created {len(transaction_ids)} {kind} transaction(s) for {amount}",
            details={
                "transaction_ids": transaction_ids,
                "kind": kind,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction updated: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def csv_imported(
        created: int,
        skipped: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CSV_IMPORTED,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"CSV import created {created} transactions, skipped {skipped} rows",
            details={"created": created, "skipped": skipped},
            is_user_action=True,
        )

    @staticmethod
    def invoice_paid(
        card_id: str,
        settlement_id: str,
        amount: str,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVOICE_PAID,
            entity_type="card",
            entity_id=card_id,
            correlation_id=correlation_id,
            description=f"Invoice paid: {amount} covering {transaction_count} transactions",
            details={
                "settlement_id": settlement_id,
                "amount": amount,
                "transaction_count": transaction_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def debt_payment_registered(
        debt_id: str,
        amount: str,
        new_balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBT_PAYMENT_REGISTERED,
            entity_type="debt",
            entity_id=debt_id,
            correlation_id=correlation_id,
            description=f"Debt payment of {amount}, remaining {new_balance}",
            details={"amount": amount, "new_balance": new_balance},
            is_user_action=True,
        )

    @staticmethod
    def goal_contribution(
        goal_id: str,
        amount: str,
        new_amount: str,
        automatic: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_CONTRIBUTION,
            entity_type="goal",
            entity_id=goal_id,
            correlation_id=correlation_id,
            description=f"{'Automatic' if automatic else 'Manual'} contribution of {amount}",
            details={"amount": amount, "new_amount": new_amount, "automatic": automatic},
            is_user_action=not automatic,
        )

    @staticmethod
    def goal_automation_failed(
        goal_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_AUTOMATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="goal",
            entity_id=goal_id,
            correlation_id=correlation_id,
            description="Automatic goal contribution skipped after an error",
            error_message=error_message,
        )

    @staticmethod
    def recurrence_generated(
        template_id: str,
        occurrence_id: str,
        date: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRENCE_GENERATED,
            entity_type="transaction",
            entity_id=occurrence_id,
            correlation_id=correlation_id,
            description=f"Recurring occurrence generated for {date}",
            details={"template_id": template_id, "date": date},
        )

    @staticmethod
    def recurrence_failed(
        template_id: str,
        date: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRENCE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=template_id,
            correlation_id=correlation_id,
            description=f"Recurring occurrence for {date} could not be saved",
            details={"date": date},
            error_message=error_message,
        )

    @staticmethod
    def validation_failed(
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Transaction rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def period_locked(
        period_key: str,
        operation: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERIOD_LOCKED,
            severity=AuditSeverity.WARNING,
            entity_type="closure",
            correlation_id=correlation_id,
            description=f"{operation} rejected: {period_key} is closed",
            details={"period": period_key, "operation": operation},
            is_user_action=True,
        )

    @staticmethod
    def month_closure_changed(
        period_key: str,
        is_closed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_CLOSED if is_closed else AuditEventType.MONTH_REOPENED,
            entity_type="closure",
            correlation_id=correlation_id,
            description=f"Month {period_key} {'closed' if is_closed else 'reopened'}",
            details={"period": period_key},
            is_user_action=True,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
