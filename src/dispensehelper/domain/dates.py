"""Calendar helpers shared by both scheduling pipelines.

Month keys are zero-padded ``YYYY-MM`` strings, so sorting them as strings
sorts them chronologically.
"""

import math
from datetime import date, datetime, time, timedelta
from typing import Any, Optional, Union

from dispensehelper.domain.errors import InvalidDate

DateLike = Union[date, datetime]

SECONDS_PER_DAY = 86400


def parse_iso_date(value: Any, item_id: Optional[str] = None) -> date:
    """Parse an ISO-8601 date (or timestamp) into a calendar date.

    Args:
        value: A ``date``, ``datetime`` or ISO-8601 string.
        item_id: Item the value belongs to, used in the error.

    Raises:
        InvalidDate: If the value is missing or unparseable.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidDate(item_id, value)

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise InvalidDate(item_id, value) from None


def month_key(d: DateLike) -> str:
    """``YYYY-MM`` key for a date."""
    return f"{d.year:04d}-{d.month:02d}"


def parse_month_key(key: str) -> date:
    """First day of the month named by a ``YYYY-MM`` key."""
    year, month = key.split("-")
    return date(int(year), int(month), 1)


def first_of_next_month(d: DateLike) -> date:
    """First day of the calendar month after ``d``."""
    # Day 1 + 32 days always lands in the next month, whatever its length.
    return (date(d.year, d.month, 1) + timedelta(days=32)).replace(day=1)


def next_month_key(key: str) -> str:
    """Month key one calendar month after ``key`` (December rolls to January)."""
    return month_key(first_of_next_month(parse_month_key(key)))


def is_same_month(a: DateLike, b: DateLike) -> bool:
    """True if both dates fall in the same calendar year and month."""
    return a.year == b.year and a.month == b.month


def days_until(expiry: date, today: DateLike) -> int:
    """Whole days from ``today`` until ``expiry``, rounded up.

    A plain ``date`` gives the exact day difference. A ``datetime`` is compared
    against midnight at the start of the expiry date, so any part of a day
    still remaining counts as a full day.
    """
    if isinstance(today, datetime):
        expiry_start = datetime.combine(expiry, time.min, tzinfo=today.tzinfo)
        delta = expiry_start - today
        return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)
    return (expiry - today).days
