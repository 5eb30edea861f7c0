from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def today_local() -> date:
    return now_local().date()


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date in [start, end]."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def school_day_of_week(value: date) -> int:
    """0 = Sunday ... 6 = Saturday (the timetable convention)."""
    return (value.weekday() + 1) % 7


def days_apart(a: date, b: date) -> int:
    return abs((a - b).days)
