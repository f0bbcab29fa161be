"""
Installment Allocation and Invoice Grouping

Credit-card purchases reach cash only when their invoice is paid. This
module decides which invoice (billing month) a purchase belongs to,
splits multi-installment purchases into dated installments, and groups
a card's transactions back into invoices.

BILLING RULE: a purchase dated on or after the card's closing day
belongs to the NEXT month's invoice; earlier purchases belong to the
purchase month. December rolls into January of the following year.

ROUNDING RULE: every installment but the last is the total divided by
the count, rounded DOWN to cents. The last one absorbs the remainder,
so the installments always add up to the purchase amount exactly.
"""

from decimal import ROUND_DOWN, Decimal
from typing import Iterable

from finledger.engine.dates import clamp_to_month, shift_month
from finledger.models.ledger import (
    CENT,
    CardUsage,
    CreditCard,
    Invoice,
    Transaction,
    TransactionDraft,
    TransactionNature,
    quantize_money,
)


def invoice_period(date_key: str, closing_day: int) -> tuple[int, int]:
    """(year, month) of the invoice a card transaction dated `date_key` belongs to."""
    year, month, day = int(date_key[0:4]), int(date_key[5:7]), int(date_key[8:10])
    if day >= closing_day:
        return shift_month(year, month, 1)
    return year, month


def split_amount(total: Decimal, count: int) -> list[Decimal]:
    """
    Split `total` into `count` cent amounts that sum to `total` exactly.

    100.00 / 3 -> [33.33, 33.33, 33.34]
    """
    if count < 1:
        raise ValueError("Installment count must be at least 1")
    total = quantize_money(total)
    base = (total / count).quantize(CENT, rounding=ROUND_DOWN)
    remainder = quantize_money(total - base * count)
    amounts = [base] * count
    amounts[-1] = quantize_money(base + remainder)
    return amounts


def allocate_installments(
    purchase: TransactionDraft,
    card: CreditCard,
    group_id: str,
) -> list[TransactionDraft]:
    """
    Split a card purchase into one draft per installment.

    Installment i is dated on the card's due day of the i-th invoice
    month after the purchase's first invoice. All installments are
    unpaid, fixed, and share `group_id`.
    """
    count = purchase.installment_total or 1
    amounts = split_amount(purchase.amount, count)
    first_year, first_month = invoice_period(purchase.date, card.closing_day)

    drafts = []
    for index, amount in enumerate(amounts):
        year, month = shift_month(first_year, first_month, index)
        drafts.append(purchase.model_copy(update={
            "description": f"{purchase.description} ({index + 1}/{count})",
            "amount": amount,
            "date": clamp_to_month(year, month, card.due_day).isoformat(),
            "card_id": card.id,
            "installment_current": index + 1,
            "installment_total": count,
            "transaction_group_id": group_id,
            "is_paid": False,
            "nature": TransactionNature.FIXED,
        }))
    return drafts


def group_invoices(transactions: Iterable[Transaction], card: CreditCard) -> list[Invoice]:
    """
    Group every transaction of `card` into invoices, oldest first.

    An invoice is paid only when every one of its transactions is paid.
    """
    groups: dict[tuple[int, int], Invoice] = {}
    for t in transactions:
        if t.card_id != card.id:
            continue
        year, month = invoice_period(t.date, card.closing_day)
        invoice = groups.get((year, month))
        if invoice is None:
            invoice = Invoice(card_id=card.id, year=year, month=month)
            groups[(year, month)] = invoice
        invoice.items.append(t)
        invoice.total = quantize_money(invoice.total + t.amount)
        if not t.is_paid:
            invoice.is_paid = False
    return [groups[key] for key in sorted(groups)]


def card_usage(transactions: Iterable[Transaction], card: CreditCard) -> CardUsage:
    """Available limit = card limit - unpaid transactions on the card."""
    used = sum(
        (t.amount for t in transactions if t.card_id == card.id and not t.is_paid),
        Decimal("0.00"),
    )
    return CardUsage(
        card_id=card.id,
        limit=card.limit,
        used=used,
        available=card.limit - used,
    )
