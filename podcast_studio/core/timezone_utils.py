"""
Timezone utilities for the scheduling core.

Opening hours are wall-clock times in the studio's zone; reservations are
stored as UTC instants. These helpers convert between the two.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import pytz

from .config import settings


def get_zone(tz_name: Optional[str] = None) -> pytz.BaseTzInfo:
    """Return the pytz zone for ``tz_name`` (defaults to the business timezone)."""
    return pytz.timezone(tz_name or settings.business_timezone)


def localize(day: date, wall_clock: time, tz_name: Optional[str] = None) -> datetime:
    """Attach a zone to a local date and wall-clock time."""
    zone = get_zone(tz_name)
    return zone.localize(datetime.combine(day, wall_clock))


def to_zone(dt: datetime, tz_name: Optional[str] = None) -> datetime:
    """
    Convert an aware datetime to the given zone.

    Naive datetimes are assumed to be UTC.
    """
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt.astimezone(get_zone(tz_name))


def to_utc(dt: datetime) -> datetime:
    """Normalize an aware datetime to UTC (naive input is assumed UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def day_bounds(day: date, tz_name: Optional[str] = None) -> tuple[datetime, datetime]:
    """Return the [start, end) UTC instants covering ``day`` in the given zone."""
    start = localize(day, time.min, tz_name)
    end = localize(day + timedelta(days=1), time.min, tz_name)
    return to_utc(start), to_utc(end)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
