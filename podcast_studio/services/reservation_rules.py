# podcast_studio/services/reservation_rules.py
"""
Shared scheduling rules for the podcast room.

Pure functions used by both the availability calculation and the booking
lifecycle: whole-hour durations, hour-boundary instants, half-open overlap,
confirmation code formatting and the reservation status transition table.
Nothing here touches the database.
"""

from datetime import date, datetime, time, timedelta
from typing import Dict, FrozenSet, Optional

import pytz

from ..core.config import settings
from ..core.exceptions import InvalidStateTransitionException, ValidationException
from ..core.timezone_utils import get_zone, to_utc
from ..models.reservation import ReservationStatus

MINUTES_PER_HOUR = 60

ALLOWED_TRANSITIONS: Dict[ReservationStatus, FrozenSet[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.REJECTED, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.CANCELLED, ReservationStatus.COMPLETED}
    ),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.REJECTED: frozenset(),
}


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(
    current: ReservationStatus, target: ReservationStatus, reservation_id: str = ""
) -> None:
    """
    Raise unless ``current -> target`` is a legal lifecycle move.

    Raises:
        InvalidStateTransitionException: For any move not in ALLOWED_TRANSITIONS
    """
    if not can_transition(current, target):
        raise InvalidStateTransitionException(reservation_id, current.value, target.value)


def validate_duration_hours(duration_hours: object) -> int:
    """Return ``duration_hours`` if it is a positive whole number of hours."""
    if isinstance(duration_hours, bool) or not isinstance(duration_hours, int):
        raise ValidationException(
            "Duration must be a whole number of hours",
            details={"duration_hours": duration_hours},
        )
    if duration_hours < 1:
        raise ValidationException(
            "Duration must be at least one hour",
            details={"duration_hours": duration_hours},
        )
    return duration_hours


def validate_duration_minutes(duration_minutes: int) -> int:
    """
    Convert a minute duration to whole hours.

    Raises:
        ValidationException: If the value is not a positive multiple of 60
    """
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise ValidationException(
            "Duration must be given in whole minutes",
            details={"duration_minutes": duration_minutes},
        )
    if duration_minutes <= 0 or duration_minutes % MINUTES_PER_HOUR:
        raise ValidationException(
            "Duration must be a positive whole number of hours",
            details={"duration_minutes": duration_minutes},
        )
    return duration_minutes // MINUTES_PER_HOUR


def is_hour_boundary(moment: datetime) -> bool:
    return moment.minute == 0 and moment.second == 0 and moment.microsecond == 0


def _require_aware(moment: datetime, field: str) -> None:
    if moment.tzinfo is None or moment.utcoffset() is None:
        raise ValidationException(
            f"{field} must include a timezone",
            details={field: moment.isoformat()},
        )


def compute_end_at(start_at: datetime, duration_hours: int) -> datetime:
    """
    End instant of a booking starting at ``start_at``.

    The addition is done on the UTC instant, so a booking spanning a DST change
    still lasts exactly ``duration_hours``. The result is expressed in the
    zone of ``start_at``.
    """
    _require_aware(start_at, "start_at")
    hours = validate_duration_hours(duration_hours)
    if not is_hour_boundary(start_at):
        raise ValidationException(
            "Reservations must start on the hour",
            details={"start_at": start_at.isoformat()},
        )
    end_utc = to_utc(start_at) + timedelta(hours=hours)
    return end_utc.astimezone(start_at.tzinfo)


def duration_hours_between(start_at: datetime, end_at: datetime) -> int:
    """Whole hours between two instants; anything else is a validation error."""
    _require_aware(start_at, "start_at")
    _require_aware(end_at, "end_at")
    delta = to_utc(end_at) - to_utc(start_at)
    seconds = int(delta.total_seconds())
    if delta.microseconds or seconds <= 0 or seconds % 3600:
        raise ValidationException(
            "Reservation window must be a positive whole number of hours",
            details={"start_at": start_at.isoformat(), "end_at": end_at.isoformat()},
        )
    return seconds // 3600


def intervals_overlap(
    first_start: datetime, first_end: datetime, second_start: datetime, second_end: datetime
) -> bool:
    """Half-open overlap: ``[a, b)`` and ``[c, d)`` collide iff ``a < d and c < b``."""
    return first_start < second_end and second_start < first_end


def validate_theme_choice(theme_id: Optional[str], custom_theme: Optional[str]) -> None:
    """Exactly one of a catalog theme or a custom theme must be given."""
    has_theme = bool(theme_id)
    has_custom = bool(custom_theme and custom_theme.strip())
    if has_theme == has_custom:
        raise ValidationException(
            "Choose either a catalog theme or a custom theme",
            details={"theme_id": theme_id, "custom_theme": custom_theme},
        )


def format_confirmation_id(year: int, sequence: int, prefix: Optional[str] = None) -> str:
    """``CONF-2025-0007``; sequences past 9999 keep every digit."""
    if sequence < 1:
        raise ValueError(f"Confirmation sequence must be positive, got {sequence}")
    return f"{prefix or settings.confirmation_code_prefix}-{year}-{sequence:04d}"


def parse_wall_clock(value: str) -> time:
    """Parse an ``HH:MM`` wall-clock string."""
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except (AttributeError, ValueError) as exc:
        raise ValidationException(
            "Time must be formatted as HH:MM",
            details={"value": value},
        ) from exc


def resolve_zone(tz_name: Optional[str] = None) -> pytz.BaseTzInfo:
    """pytz zone for ``tz_name`` (business zone when empty); unknown names are a ValidationException."""
    try:
        return get_zone(tz_name)
    except pytz.UnknownTimeZoneError as exc:
        raise ValidationException(
            "Unknown timezone", details={"timezone": tz_name}
        ) from exc


def localize_wall_clock(day: date, wall_clock: time, tz_name: Optional[str] = None) -> datetime:
    """
    Aware datetime for ``day`` at ``wall_clock`` in ``tz_name``.

    Wall-clock times skipped or repeated by a DST change are rejected rather
    than guessed.
    """
    zone = resolve_zone(tz_name)
    try:
        return zone.localize(datetime.combine(day, wall_clock), is_dst=None)
    except (pytz.NonExistentTimeError, pytz.AmbiguousTimeError) as exc:
        raise ValidationException(
            "Requested time does not exist or is ambiguous in that timezone",
            details={
                "date": day.isoformat(),
                "time": wall_clock.strftime("%H:%M"),
                "timezone": zone.zone,
            },
        ) from exc
