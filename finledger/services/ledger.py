"""
Ledger Service

All writes to the transactions table go through here. The service
turns a user-entered draft into the records that actually get stored:

- TRANSFER: an expense from the source account and an income to the
  destination account (the draft's `category`), sharing one group id,
  both paid
- CARD PURCHASE IN INSTALLMENTS: one unpaid record per installment,
  dated on the card's due day of each invoice month
- anything else: one record, unpaid only if it is on a card

GUARDS (checked before any write, in this order):
1. Validation - errors raise TransactionValidationError
2. Period lock - a write dated in a closed month raises PeriodLockedError

Store failures propagate unchanged. Nothing is retried here; the
caller decides whether to try again.
"""

import calendar
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Optional

import structlog
from pydantic import BaseModel, Field

from finledger.audit import AuditLogger
from finledger.config import LedgerSettings, get_settings
from finledger.engine.balance import compute_balance, month_to_date, monthly_summary
from finledger.engine.csv_import import parse_csv
from finledger.engine.dates import Clock, month_key, parse_date_key, system_clock, to_local_date_key
from finledger.engine.installments import allocate_installments, card_usage, group_invoices
from finledger.models.audit import AuditEventBuilder
from finledger.models.ledger import (
    CATEGORY_CARD_PAYMENT,
    CATEGORY_TRANSFER,
    TAG_INVOICE,
    BalanceSummary,
    CardUsage,
    CreditCard,
    Invoice,
    MonthlyClosure,
    MonthlySummary,
    MonthToDate,
    Transaction,
    TransactionDraft,
    TransactionNature,
    TransactionType,
    quantize_money,
)
from finledger.services.storage import LedgerStore, NotFoundError, Table
from finledger.validation import TransactionValidationError, TransactionValidator


logger = structlog.get_logger("finledger.ledger")


# =============================================================================
# ERRORS
# =============================================================================

class PeriodLockedError(Exception):
    """A write targeted a transaction dated in a closed month."""

    def __init__(self, year: int, month: int, operation: str = "write"):
        self.year = year
        self.month = month
        self.operation = operation
        self.period_key = month_key(year, month)
        super().__init__(
            f"Month {self.period_key} ({calendar.month_name[month]} {year}) is closed: "
            f"{operation} rejected. Reopen the month to proceed."
        )


class InvoicePaymentError(Exception):
    """The settlement transaction of an invoice payment was not recorded."""
    pass


class CsvImportResult(BaseModel):
    """Outcome of a CSV import."""

    created: list[Transaction] = Field(default_factory=list)
    skipped: int = 0


def _to_record(draft: TransactionDraft) -> dict[str, Any]:
    return draft.model_dump(mode="json")


class LedgerService:
    """
    Transaction CRUD, invoice payment, CSV import and month closures
    over one owner's store.
    """

    def __init__(
        self,
        store: LedgerStore,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[TransactionValidator] = None,
        settings: Optional[LedgerSettings] = None,
        clock: Clock = system_clock,
    ):
        self._store = store
        self._settings = settings or get_settings().ledger
        self._audit = audit_logger or AuditLogger(store)
        self._validator = validator or TransactionValidator(self._settings)
        self._clock = clock

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    @property
    def audit(self) -> AuditLogger:
        return self._audit

    def today(self) -> date:
        """Today's local date according to the injected clock."""
        return parse_date_key(to_local_date_key(self._clock()))

    # =========================================================================
    # READS
    # =========================================================================

    async def list_transactions(self) -> list[Transaction]:
        """Every transaction of the owner, newest first."""
        records = await self._store.get_all(Table.TRANSACTIONS)
        transactions = [Transaction.model_validate(r) for r in records]
        return sorted(transactions, key=lambda t: t.date, reverse=True)

    async def get_transaction(self, transaction_id: str) -> Transaction:
        for record in await self._store.get_all(Table.TRANSACTIONS):
            if record.get("id") == transaction_id:
                return Transaction.model_validate(record)
        raise NotFoundError(f"Transaction not found: {transaction_id}")

    async def get_card(self, card_id: str) -> CreditCard:
        for record in await self._store.get_all(Table.CARDS):
            if record.get("id") == card_id:
                return CreditCard.model_validate(record)
        raise NotFoundError(f"Card not found: {card_id}")

    async def balance(self, year: int, month: int) -> BalanceSummary:
        return compute_balance(await self.list_transactions(), year, month)

    async def month_to_date(self, year: int, month: int) -> MonthToDate:
        return month_to_date(await self.list_transactions(), year, month)

    async def monthly_summary(self, year: int, month: int) -> MonthlySummary:
        return monthly_summary(await self.list_transactions(), year, month)

    async def list_invoices(self, card: CreditCard) -> list[Invoice]:
        return group_invoices(await self.list_transactions(), card)

    async def card_usage(self, card: CreditCard) -> CardUsage:
        return card_usage(await self.list_transactions(), card)

    # =========================================================================
    # MONTHLY CLOSURES
    # =========================================================================

    async def list_closures(self) -> list[MonthlyClosure]:
        records = await self._store.get_all(Table.CLOSURES)
        return [MonthlyClosure.model_validate(r) for r in records]

    async def get_closure(self, year: int, month: int) -> Optional[MonthlyClosure]:
        for closure in await self.list_closures():
            if closure.year == year and closure.month == month:
                return closure
        return None

    async def is_month_closed(self, year: int, month: int) -> bool:
        closure = await self.get_closure(year, month)
        return bool(closure and closure.is_closed)

    async def set_closure(self, year: int, month: int, is_closed: bool) -> MonthlyClosure:
        """Close or reopen a month (creates the closure record on first use)."""
        fields = {
            "year": year,
            "month": month,
            "is_closed": is_closed,
            "closed_at": self._clock().isoformat() if is_closed else None,
        }
        existing = await self.get_closure(year, month)
        if existing and existing.id:
            record = await self._store.update(Table.CLOSURES, existing.id, fields)
        else:
            record = (await self._store.insert(Table.CLOSURES, [fields]))[0]

        closure = MonthlyClosure.model_validate(record)
        await self._audit.log(AuditEventBuilder.month_closure_changed(closure.period_key, is_closed))
        return closure

    async def _ensure_open(self, date_key: str, operation: str) -> None:
        """Raise PeriodLockedError if `date_key` falls in a closed month."""
        year, month = int(date_key[0:4]), int(date_key[5:7])
        if await self.is_month_closed(year, month):
            await self._audit.log_period_locked(month_key(year, month), operation)
            raise PeriodLockedError(year, month, operation)

    # =========================================================================
    # CREATE
    # =========================================================================

    async def _ensure_valid(self, draft: TransactionDraft) -> None:
        """Audit and raise TransactionValidationError if `draft` has errors."""
        result = self._validator.validate(draft)
        if not result.is_valid:
            await self._audit.log(AuditEventBuilder.validation_failed(
                [issue.model_dump() for issue in result.errors]
            ))
            raise TransactionValidationError(result)

    def _with_defaults(self, draft: TransactionDraft) -> TransactionDraft:
        nature = draft.nature
        if nature is None:
            nature = TransactionNature.FIXED if draft.is_recurring else TransactionNature.VARIABLE
        return draft.model_copy(update={
            "amount": quantize_money(draft.amount),
            "account": draft.account or self._settings.default_account,
            "nature": nature,
        })

    def _split_transfer(self, draft: TransactionDraft) -> list[TransactionDraft]:
        group_id = str(uuid.uuid4())
        source, destination = draft.account, draft.category
        debit = draft.model_copy(update={
            "type": TransactionType.EXPENSE,
            "description": f"Transf. para {destination}",
            "category": CATEGORY_TRANSFER,
            "transaction_group_id": group_id,
            "is_paid": True,
        })
        credit = draft.model_copy(update={
            "type": TransactionType.INCOME,
            "account": destination,
            "description": f"Transf. de {source}",
            "category": CATEGORY_TRANSFER,
            "transaction_group_id": group_id,
            "is_paid": True,
        })
        return [debit, credit]

    async def _materialize(self, draft: TransactionDraft) -> tuple[str, list[TransactionDraft]]:
        if draft.type == TransactionType.TRANSFER:
            return "transfer", self._split_transfer(draft)

        if draft.card_id and (draft.installment_total or 1) > 1:
            card = await self.get_card(draft.card_id)
            return "installments", allocate_installments(draft, card, str(uuid.uuid4()))

        return "single", [draft.model_copy(update={"is_paid": not draft.card_id})]

    async def create(self, draft: TransactionDraft) -> list[Transaction]:
        """
        Validate, check the period lock and persist a draft.

        Returns:
            Every record written (2 for a transfer, N for installments)

        Raises:
            TransactionValidationError: The draft has errors
            PeriodLockedError: The draft's month is closed
            NotFoundError: The draft's card doesn't exist
            StorageError: The store rejected the write
        """
        await self._ensure_valid(draft)
        await self._ensure_open(draft.date, "create")

        kind, drafts = await self._materialize(self._with_defaults(draft))
        records = await self._store.insert(Table.TRANSACTIONS, [_to_record(d) for d in drafts])
        created = [Transaction.model_validate(r) for r in records]

        await self._audit.log_transactions_created(
            transaction_ids=[t.id for t in created],
            kind=kind,
            amount=str(quantize_money(draft.amount)),
        )
        return created

    # =========================================================================
    # UPDATE / DELETE
    # =========================================================================

    async def update(self, transaction_id: str, fields: dict[str, Any]) -> Transaction:
        """
        Overwrite some fields of a stored transaction.

        Both the stored date and the new date (if any) must be in open
        months. The merged record is validated before it is written.
        """
        current = await self.get_transaction(transaction_id)
        await self._ensure_open(current.date, "update")
        if fields.get("date"):
            await self._ensure_open(str(fields["date"]), "update")

        merged = Transaction.model_validate({**current.model_dump(), **fields, "id": transaction_id})
        self._validator.validate_or_raise(TransactionDraft.model_validate(merged.model_dump()))

        changes = {k: v for k, v in merged.model_dump(mode="json").items() if k in fields}
        record = await self._store.update(Table.TRANSACTIONS, transaction_id, changes)
        updated = Transaction.model_validate(record)

        await self._audit.log(AuditEventBuilder.transaction_updated(transaction_id, sorted(changes)))
        return updated

    async def delete(self, transaction_id: str) -> bool:
        """Delete a transaction unless its month is closed."""
        current = await self.get_transaction(transaction_id)
        await self._ensure_open(current.date, "delete")

        deleted = await self._store.delete(Table.TRANSACTIONS, transaction_id)
        if deleted:
            await self._audit.log(AuditEventBuilder.transaction_deleted(transaction_id))
        return deleted

    # =========================================================================
    # INVOICE PAYMENT
    # =========================================================================

    async def pay_invoice(
        self,
        card_id: str,
        amount: Decimal,
        source_account: str,
        transaction_ids: list[str],
    ) -> Transaction:
        """
        Settle a card invoice.

        Every check (amount, period lock, members) runs before the first
        write. Then marks every member transaction paid, THEN records the
        settlement expense dated today. If the settlement insert fails the
        members stay paid; the error is raised so the caller can retry the
        settlement.

        Raises:
            TransactionValidationError: The amount is not positive
            PeriodLockedError: Today's month is closed
            NotFoundError: A member transaction doesn't exist
            InvoicePaymentError: A member is not on this card, or the store
                returned no settlement record
        """
        today_key = self.today().isoformat()
        settlement = TransactionDraft(
            description="Pagamento de Fatura",
            amount=quantize_money(amount),
            type=TransactionType.EXPENSE,
            nature=TransactionNature.VARIABLE,
            category=CATEGORY_CARD_PAYMENT,
            account=source_account,
            date=today_key,
            is_paid=True,
            tags=[TAG_INVOICE],
        )
        await self._ensure_valid(settlement)
        await self._ensure_open(today_key, "pay_invoice")

        stored = {t.id: t for t in await self.list_transactions()}
        for transaction_id in transaction_ids:
            member = stored.get(transaction_id)
            if member is None:
                raise NotFoundError(f"Transaction not found: {transaction_id}")
            if member.card_id != card_id:
                raise InvoicePaymentError(f"Transaction {transaction_id} is not on card {card_id}")

        for transaction_id in transaction_ids:
            await self._store.update(Table.TRANSACTIONS, transaction_id, {"is_paid": True})

        try:
            records = await self._store.insert(Table.TRANSACTIONS, [_to_record(settlement)])
        except Exception as e:
            logger.error(
                "invoice_settlement_failed",
                card_id=card_id,
                paid_transaction_ids=transaction_ids,
                error=str(e),
            )
            await self._audit.log(AuditEventBuilder.storage_error("pay_invoice", str(e)))
            raise
        if not records:
            raise InvoicePaymentError(f"Settlement for card {card_id} was not recorded")

        payment = Transaction.model_validate(records[0])
        await self._audit.log(AuditEventBuilder.invoice_paid(
            card_id=card_id,
            settlement_id=payment.id,
            amount=str(payment.amount),
            transaction_count=len(transaction_ids),
        ))
        return payment

    # =========================================================================
    # CSV IMPORT
    # =========================================================================

    async def import_csv(self, content: str) -> CsvImportResult:
        """
        Import transactions from CSV text.

        Rows that cannot be parsed, fail validation, or fall into a
        closed month are skipped; the rest are inserted in one call.
        """
        drafts, skipped = parse_csv(
            content,
            default_category=self._settings.default_category,
            default_account=self._settings.default_account,
        )

        closed = {(c.year, c.month) for c in await self.list_closures() if c.is_closed}
        accepted = []
        for draft in drafts:
            if not self._validator.validate(draft).is_valid:
                skipped += 1
                continue
            if (int(draft.date[0:4]), int(draft.date[5:7])) in closed:
                skipped += 1
                continue
            accepted.append(self._with_defaults(draft).model_copy(update={"is_paid": True}))

        created: list[Transaction] = []
        if accepted:
            records = await self._store.insert(Table.TRANSACTIONS, [_to_record(d) for d in accepted])
            created = [Transaction.model_validate(r) for r in records]

        await self._audit.log(AuditEventBuilder.csv_imported(len(created), skipped))
        return CsvImportResult(created=created, skipped=skipped)
