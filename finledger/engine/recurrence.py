"""
Recurrence Planning

Turns recurring TEMPLATES into the monthly occurrences that are still
missing over a fixed horizon (the current month plus the following
months). Planning is pure: it only reads the ledger and returns drafts.
`RecurrenceGenerator` (services) persists them.

IDEMPOTENCY: an occurrence for (template, month) already exists if any
transaction - persisted, or planned earlier in the same run - points at
the template through `recurrence_parent_id` and is dated in that month.
Running the planner again over its own output yields nothing new.
"""

from datetime import date
from typing import Iterable

from finledger.engine.dates import clamp_to_month, key_day, key_in_month, shift_month
from finledger.models.ledger import (
    TAG_AUTO_RECURRING,
    Frequency,
    Transaction,
    TransactionDraft,
    TransactionNature,
)


def recurring_templates(transactions: Iterable[Transaction]) -> list[Transaction]:
    """
    Templates the generator works on.

    Templates without a frequency are treated as monthly; any other
    frequency is not generated.
    """
    return [
        t for t in transactions
        if t.is_template and t.frequency in (None, Frequency.MONTHLY)
    ]


def _already_generated(
    template_id: str,
    year: int,
    month: int,
    existing: Iterable[TransactionDraft],
) -> bool:
    return any(
        child.recurrence_parent_id == template_id and key_in_month(child.date, year, month)
        for child in existing
    )


def occurrence_date(template: Transaction, year: int, month: int) -> str:
    """Template's due day in the target month, clamped to the month's last day."""
    return clamp_to_month(year, month, key_day(template.date)).isoformat()


def build_occurrence(template: Transaction, date_key: str) -> TransactionDraft:
    tags = list(template.tags)
    if TAG_AUTO_RECURRING not in tags:
        tags.append(TAG_AUTO_RECURRING)
    return TransactionDraft(
        description=template.description,
        amount=template.amount,
        date=date_key,
        type=template.type,
        category=template.category,
        account=template.account,
        tags=tags,
        is_recurring=False,
        recurrence_parent_id=template.id,
        nature=TransactionNature.FIXED,
    )


def plan_occurrences(
    transactions: list[Transaction],
    today: date,
    horizon_months: int = 12,
) -> list[TransactionDraft]:
    """
    Plan every missing monthly occurrence within the horizon.

    Args:
        transactions: The full ledger (templates and existing occurrences)
        today: Reference date; the horizon starts at its month
        horizon_months: Number of months to cover, current month included

    Returns:
        New occurrence drafts, in template order then month order
    """
    created: list[TransactionDraft] = []

    for template in recurring_templates(transactions):
        for offset in range(horizon_months):
            year, month = shift_month(today.year, today.month, offset)
            target = occurrence_date(template, year, month)

            # Never before (or on) the template's own date
            if target <= template.date:
                continue
            if template.recurrence_end_date and target > template.recurrence_end_date:
                continue

            if _already_generated(template.id, year, month, transactions):
                continue
            if _already_generated(template.id, year, month, created):
                continue

            draft = build_occurrence(template, target)
            created.append(draft)

    return created
