"""
CSV Import Parsing

Expected columns (header optional):

    Date,Description,Amount,Type,Category,Account

Only the first three are required. Type is `income` or anything else
(treated as expense). Blank lines, header lines and rows that cannot be
read (too few columns, bad amount, bad date) are skipped and counted.
"""

import csv
import io
from datetime import date
from decimal import Decimal, InvalidOperation

from finledger.models.ledger import (
    TAG_IMPORTED,
    TransactionDraft,
    TransactionNature,
    TransactionType,
    quantize_money,
)


def _parse_row(row: list[str], default_category: str, default_account: str) -> TransactionDraft:
    cells = [cell.strip() for cell in row]
    date_key, description, raw_amount = cells[0], cells[1], cells[2]

    date.fromisoformat(date_key)
    amount = quantize_money(Decimal(raw_amount))
    if amount <= 0:
        raise ValueError(f"Non-positive amount: {raw_amount}")

    kind = cells[3].lower() if len(cells) > 3 else ""
    category = cells[4] if len(cells) > 4 and cells[4] else default_category
    account = cells[5] if len(cells) > 5 and cells[5] else default_account

    return TransactionDraft(
        description=description,
        amount=amount,
        date=date_key,
        type=TransactionType.INCOME if kind == "income" else TransactionType.EXPENSE,
        category=category,
        account=account,
        tags=[TAG_IMPORTED],
        is_recurring=False,
        nature=TransactionNature.VARIABLE,
    )


def parse_csv(
    content: str,
    default_category: str = "Outros",
    default_account: str = "Carteira",
) -> tuple[list[TransactionDraft], int]:
    """
    Parse CSV text into transaction drafts.

    Returns:
        (drafts, number of skipped data rows)
    """
    drafts: list[TransactionDraft] = []
    skipped = 0

    for row in csv.reader(io.StringIO(content)):
        if not row or not "".join(row).strip():
            continue
        if row[0].strip().lower() == "date":
            continue
        if len(row) < 3:
            skipped += 1
            continue
        try:
            drafts.append(_parse_row(row, default_category, default_account))
        except (ValueError, InvalidOperation):
            skipped += 1

    return drafts, skipped
