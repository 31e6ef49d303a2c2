"""Datetime helpers.

Columns store naive UTC; the API accepts and returns aware or naive ISO
strings. Everything crossing into the database goes through ``to_naive_utc``.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple


def utcnow() -> datetime:
    return datetime.utcnow()


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utc_day_bounds(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def hours_until(target: datetime, now: datetime) -> float:
    return (to_naive_utc(target) - to_naive_utc(now)).total_seconds() / 3600.0
