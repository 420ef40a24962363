"""
dates.py - Timezone-safe calendar helpers

Flights live on calendar dates with no time component. Input dates arrive as
`date`/`datetime` objects or as `YYYY-MM-DD` strings, sometimes with a time
suffix (`2025-01-01T00:00:00Z`). Strings are decomposed into integer
year/month/day components; the time part is discarded, so a UTC suffix can
never shift a date into the previous or next day.
"""

from __future__ import annotations
from calendar import monthrange
from datetime import date, datetime, timedelta
from typing import Any, List, Optional


def parse_date(value: Any) -> Optional[date]:
    """
    Convert a date-like value to a `date`.

    Returns None for empty or malformed input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    date_part = value.strip().split("T")[0].split(" ")[0].rstrip("Zz")
    parts = date_part.split("-")
    if len(parts) != 3:
        return None
    try:
        year, month, day = (int(p) for p in parts)
        return date(year, month, day)
    except ValueError:
        return None


def format_date(value: Any) -> str:
    """Format a date-like value as YYYY-MM-DD ('' if it cannot be parsed)."""
    parsed = parse_date(value)
    if parsed is None:
        return ""
    return parsed.isoformat()


def first_day_of_month(d: date) -> date:
    return date(d.year, d.month, 1)


def last_day_of_month(d: date) -> date:
    return date(d.year, d.month, days_in_month(d))


def days_in_month(d: date) -> int:
    return monthrange(d.year, d.month)[1]


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def _next_month(d: date) -> date:
    if d.month == 12:
        return date(d.year + 1, 1, 1)
    return date(d.year, d.month + 1, 1)


def months_between(start_date: Any, end_date: Any) -> List[date]:
    """
    First-of-month anchors for every calendar month the range touches.

    Partial months at either end are included, so months_between(d, d)
    returns exactly one month. Returns an empty list when either date cannot
    be parsed or start is after end.

    Example:
        months_between("2025-01-15", "2025-03-02")
        # [date(2025, 1, 1), date(2025, 2, 1), date(2025, 3, 1)]
    """
    start = parse_date(start_date)
    end = parse_date(end_date)
    if start is None or end is None or start > end:
        return []

    months = []
    current = first_day_of_month(start)
    last = first_day_of_month(end)
    while current <= last:
        months.append(current)
        current = _next_month(current)
    return months
