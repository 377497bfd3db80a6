"""
Date/time helpers for aggregation windows

RULES:
- All timestamps are handled as timezone-aware UTC
- Day boundaries are UTC midnights
- Windows are half-open: [start, end)
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Union


def now_utc() -> datetime:
    """Current datetime in UTC (timezone-aware)"""
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC; naive values are assumed to be UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def as_date(value: Union[date, datetime]) -> date:
    """Calendar (UTC) date for a date or datetime"""
    if isinstance(value, datetime):
        return to_utc(value).date()
    return value


def start_of_day(value: Union[date, datetime]) -> datetime:
    """UTC midnight at the start of the given day"""
    return datetime.combine(as_date(value), time.min, tzinfo=timezone.utc)


def day_window(value: Union[date, datetime]) -> tuple[datetime, datetime]:
    """[midnight, next midnight) for the given day"""
    start = start_of_day(value)
    return start, start + timedelta(days=1)


def rolling_window(value: Union[date, datetime], days: int) -> tuple[datetime, datetime]:
    """
    [start, end) covering `days` whole days that end with (and include)
    the reference day
    """
    end = start_of_day(value) + timedelta(days=1)
    return end - timedelta(days=days), end


def days_in_window(start: datetime, days: int) -> list[date]:
    """Ordered calendar dates of a window, oldest first"""
    first = as_date(start)
    return [first + timedelta(days=i) for i in range(days)]
