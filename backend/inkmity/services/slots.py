"""Bookable slot computation.

Opening hours are wall-clock ranges in the artist's timezone. A date's
exception ranges replace the weekday ranges when non-empty. Artists that never
saved availability are open 10:00-22:00 every day with 60 minute slots.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from .. import crud, models
from ..core.config import settings
from ..models.availability import WEEKDAY_KEYS
from ..utils.dates import to_naive_utc, utcnow
from ..utils.redis_cache import cache_slots, get_cached_slots

logger = logging.getLogger(__name__)

DEFAULT_OPEN_RANGES = [{"start": "10:00", "end": "22:00"}]
DEFAULT_SLOT_MINUTES = 60
MIN_SLOT_MINUTES = 5
MAX_SLOT_MINUTES = 480

Interval = Tuple[datetime, datetime]


def _parse_hhmm(value: str) -> time:
    hours, minutes = str(value).split(":")
    return time(int(hours), int(minutes))


def _zone(name: Optional[str]) -> ZoneInfo:
    try:
        return ZoneInfo(name or settings.DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using %s", name, settings.DEFAULT_TIMEZONE)
        return ZoneInfo(settings.DEFAULT_TIMEZONE)


def clamp_slot_minutes(value: Optional[int]) -> int:
    return max(MIN_SLOT_MINUTES, min(MAX_SLOT_MINUTES, int(value or DEFAULT_SLOT_MINUTES)))


def resolve_ranges(availability: Optional[models.Availability], day: date) -> List[Dict[str, str]]:
    if availability is None:
        return list(DEFAULT_OPEN_RANGES)
    exceptions = availability.exceptions or {}
    override = exceptions.get(day.isoformat())
    if override:
        return list(override)
    weekly = availability.weekly or {}
    return list(weekly.get(WEEKDAY_KEYS[day.weekday()]) or [])


def _to_utc(local: datetime) -> datetime:
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def local_intervals(day: date, ranges: Iterable[Dict[str, str]], tz: ZoneInfo) -> List[Tuple[datetime, datetime]]:
    """Aware (local) start/end datetimes for each range on ``day``."""
    out = []
    for r in ranges:
        start = datetime.combine(day, _parse_hhmm(r["start"]), tzinfo=tz)
        end = datetime.combine(day, _parse_hhmm(r["end"]), tzinfo=tz)
        if end > start:
            out.append((start, end))
    return out


def _overlaps(start: datetime, end: datetime, busy: Sequence[Interval]) -> bool:
    return any(b_start < end and b_end > start for b_start, b_end in busy)


def build_slots(
    day: date,
    ranges: Iterable[Dict[str, str]],
    tz_name: Optional[str],
    slot_minutes: int,
    duration_minutes: Optional[int],
    busy: Sequence[Interval],
    now: datetime,
) -> List[Interval]:
    """Free slots on ``day`` as naive UTC ``(start, end)`` pairs.

    Starts step by ``slot_minutes``; each slot spans the longer of the
    requested duration and one step, and must end inside its range.
    """
    tz = _zone(tz_name)
    step = timedelta(minutes=clamp_slot_minutes(slot_minutes))
    length = step
    if duration_minutes:
        length = max(step, timedelta(minutes=int(duration_minutes)))
    slots: List[Interval] = []
    for range_start, range_end in local_intervals(day, ranges, tz):
        # step in UTC so DST days neither repeat nor skip wall-clock hours
        cursor, limit = _to_utc(range_start), _to_utc(range_end)
        while cursor + length <= limit:
            end = cursor + length
            if cursor > now and not _overlaps(cursor, end, busy):
                slots.append((cursor, end))
            cursor += step
    slots.sort()
    return slots


def _day_bounds_utc(day: date, tz: ZoneInfo) -> Interval:
    start = datetime.combine(day, time.min, tzinfo=tz)
    return _to_utc(start), _to_utc(start + timedelta(days=1))


def get_slots(
    db: Session,
    artist_id: str,
    day: date,
    duration_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[Dict[str, datetime]]:
    now = now or utcnow()
    cached = get_cached_slots(artist_id, day, duration_minutes)
    if cached is not None:
        out = []
        for item in cached:
            start = datetime.fromisoformat(item["start_at"])
            if start > now:
                out.append({"start_at": start, "end_at": datetime.fromisoformat(item["end_at"])})
        return out

    availability = crud.crud_availability.get_availability(db, artist_id)
    tz = _zone(availability.timezone if availability else None)
    slot_minutes = availability.slot_minutes if availability else DEFAULT_SLOT_MINUTES
    day_start, day_end = _day_bounds_utc(day, tz)
    busy = [
        (b.start_at, b.end_at)
        for b in crud.booking.get_bookings_for_range(db, artist_id, day_start, day_end)
    ]
    slots = build_slots(
        day,
        resolve_ranges(availability, day),
        tz.key,
        slot_minutes,
        duration_minutes,
        busy,
        now,
    )
    payload = [{"start_at": s.isoformat(), "end_at": e.isoformat()} for s, e in slots]
    cache_slots(payload, artist_id, day, duration_minutes)
    return [{"start_at": s, "end_at": e} for s, e in slots]


def fits_availability(db: Session, artist_id: str, start: datetime, end: datetime) -> bool:
    """True when ``[start, end)`` (naive UTC) lies inside one opening range."""
    availability = crud.crud_availability.get_availability(db, artist_id)
    tz = _zone(availability.timezone if availability else None)
    start_local = to_naive_utc(start).replace(tzinfo=timezone.utc).astimezone(tz)
    end_local = to_naive_utc(end).replace(tzinfo=timezone.utc).astimezone(tz)
    day = start_local.date()
    for range_start, range_end in local_intervals(day, resolve_ranges(availability, day), tz):
        if range_start <= start_local and end_local <= range_end:
            return True
    return False
