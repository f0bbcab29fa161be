"""
Date Key Utilities

Every date in the ledger is a `YYYY-MM-DD` key in the user's LOCAL
calendar. Keys are fixed-width and zero-padded, so comparing two keys
as strings is the same as comparing the calendar dates.

The one place timezones matter is turning a timestamp ("now") into a
key: an aware timestamp is first converted to local time so that, e.g.,
23:30 local on the 31st never becomes the 1st because UTC already
rolled over.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Callable

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Current local time (aware)."""
    return datetime.now().astimezone()


def to_local_date_key(moment: datetime | date) -> str:
    """
    Format a date or timestamp as a local-calendar `YYYY-MM-DD` key.

    Aware timestamps are shifted by the local UTC offset before
    formatting; naive timestamps are taken to be local already.
    """
    if isinstance(moment, datetime):
        if moment.tzinfo is not None:
            moment = moment.astimezone()
        moment = moment.date()
    return moment.isoformat()


def parse_date_key(key: str) -> date:
    return date.fromisoformat(key)


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_to_month(year: int, month: int, day: int) -> date:
    """The given day in the given month, or the month's last day if it has fewer."""
    return date(year, month, min(day, last_day_of_month(year, month)))


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move (year, month) by `delta` months, rolling the year as needed."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def add_months_clamped(d: date, n: int) -> date:
    """
    Add n calendar months, clamping to the end of the target month.

    Jan 31 + 1 month -> Feb 28 (Feb 29 in leap years).
    """
    year, month = shift_month(d.year, d.month, n)
    return clamp_to_month(year, month, d.day)


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_bounds(year: int, month: int) -> tuple[str, str]:
    """(first day key, last day key) of a calendar month."""
    return (
        f"{year:04d}-{month:02d}-01",
        f"{year:04d}-{month:02d}-{last_day_of_month(year, month):02d}",
    )


def week_bounds(d: date) -> tuple[date, date]:
    """Monday-to-Sunday week containing `d`."""
    start = d - timedelta(days=d.weekday())
    return start, start + timedelta(days=6)


def year_bounds(year: int) -> tuple[str, str]:
    return f"{year:04d}-01-01", f"{year:04d}-12-31"


def key_in_month(key: str, year: int, month: int) -> bool:
    """True if the date key falls in the given calendar month."""
    return key[0:7] == month_key(year, month)


def key_day(key: str) -> int:
    return int(key[8:10])
