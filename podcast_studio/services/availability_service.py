# podcast_studio/services/availability_service.py
"""
Availability Service for the podcast studio.

Two layers:

- ``AvailabilityCalculator`` is pure: given a day, a duration, an
  ``AvailabilityConfig`` and the confirmed bookings for that day it returns the
  ordered candidate slots, each flagged available or blocked. It never reads
  storage, so tests can drive it with any configuration.
- ``AvailabilityService`` loads the stored configuration and the day's
  confirmed reservations, then calls the calculator. It also owns the
  administrative get/replace of the configuration.

Only ``confirmed`` reservations block a slot. Pending requests may overlap
freely; conflicts between them are settled when an admin confirms one.
"""

from datetime import date, datetime, time, timedelta
import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

from pydantic import ValidationError as PydanticValidationError

from ..core.config import settings
from ..core.exceptions import ConfigurationException, ValidationException
from ..core.timezone_utils import localize, to_utc
from ..models.reservation import ReservationStatus
from ..repositories.factory import RepositoryFactory
from ..schemas.availability import AvailabilityConfig, TimeSlot
from .base import BaseService
from .reservation_rules import MINUTES_PER_HOUR, intervals_overlap, validate_duration_minutes

logger = logging.getLogger(__name__)


class BookingWindow(Protocol):
    """Anything with an aware ``[start_at, end_at)`` window (reservations, test doubles)."""

    start_at: datetime
    end_at: datetime


def generate_candidate_starts(
    open_minute: int, close_minute: int, step_minutes: int, duration_minutes: int
) -> List[int]:
    """
    Candidate slot starts, in minutes after midnight.

    Starts at ``open_minute`` and advances by ``step_minutes``; a start whose
    slot would run past ``close_minute`` is not generated at all.
    """
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")

    starts: List[int] = []
    start = open_minute
    while start + duration_minutes <= close_minute:
        starts.append(start)
        start += step_minutes
    return starts


def _minute_to_time(minute_of_day: int) -> time:
    return time(minute_of_day // MINUTES_PER_HOUR, minute_of_day % MINUTES_PER_HOUR)


def _blocks_slots(booking: BookingWindow) -> bool:
    status = getattr(booking, "status", None)
    if status is None:
        return True
    return ReservationStatus(status) == ReservationStatus.CONFIRMED


class AvailabilityCalculator:
    """Pure slot computation; holds no state between calls."""

    def compute_slots(
        self,
        day: date,
        duration_minutes: int,
        config: AvailabilityConfig,
        confirmed_bookings: Iterable[BookingWindow],
        tz_name: Optional[str] = None,
    ) -> List[TimeSlot]:
        """
        Ordered slots for ``day``.

        Args:
            day: Calendar day (no time component)
            duration_minutes: Requested length, a positive multiple of 60
            config: Slot granularity and weekly opening hours
            confirmed_bookings: Confirmed reservations touching ``day``; entries
                carrying a non-confirmed ``status`` are ignored
            tz_name: Zone the opening hours are expressed in (business zone by default)

        Returns:
            Slots in ascending start order; empty when the studio is closed or
            the duration never fits

        Raises:
            ValidationException: Bad day or duration
            ConfigurationException: ``config`` has no entry for the weekday
        """
        if isinstance(day, datetime) or not isinstance(day, date):
            raise ValidationException(
                "Availability is computed for a calendar day",
                details={"date": str(day)},
            )
        validate_duration_minutes(duration_minutes)
        hours = config.hours_for(day)
        if hours.is_closed:
            return []

        candidates = generate_candidate_starts(
            hours.start_minute, hours.end_minute, config.slot_duration_min, duration_minutes
        )
        if not candidates:
            return []

        blocking = [booking for booking in confirmed_bookings if _blocks_slots(booking)]
        length = timedelta(minutes=duration_minutes)

        slots: List[TimeSlot] = []
        for start_minute in candidates:
            slot_start = to_utc(localize(day, _minute_to_time(start_minute), tz_name))
            slot_end = slot_start + length
            available = not any(
                intervals_overlap(slot_start, slot_end, to_utc(b.start_at), to_utc(b.end_at))
                for b in blocking
            )
            slots.append(
                TimeSlot(
                    start_time=_minute_to_time(start_minute),
                    end_time=_minute_to_time(start_minute + duration_minutes),
                    available=available,
                )
            )
        return slots


class AvailabilityService(BaseService):
    """Loads configuration and confirmed bookings, then delegates to the calculator."""

    def __init__(
        self,
        db: Any,
        calculator: Optional[AvailabilityCalculator] = None,
        reservation_repository: Any = None,
        config_repository: Any = None,
    ):
        super().__init__(db)
        self.calculator = calculator or AvailabilityCalculator()
        self.reservation_repository = (
            reservation_repository or RepositoryFactory.create_reservation_repository(db)
        )
        self.config_repository = (
            config_repository or RepositoryFactory.create_availability_config_repository(db)
        )

    @staticmethod
    def default_config() -> AvailabilityConfig:
        """
        Configuration used until an administrator stores one.

        Raises:
            ConfigurationException: The settings defaults cannot be parsed
        """
        try:
            return AvailabilityConfig.model_validate(
                {
                    "slot_duration_min": settings.default_slot_duration_min,
                    "opening_hours": settings.default_opening_hours,
                }
            )
        except PydanticValidationError as exc:
            logger.error(f"Default availability configuration is invalid: {exc}")
            raise ConfigurationException(
                "Default availability configuration is invalid",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc

    def get_config(self) -> AvailabilityConfig:
        """
        Current availability configuration.

        Raises:
            ConfigurationException: The stored row cannot be parsed
        """
        row = self.config_repository.get_current()
        if row is None:
            return self.default_config()
        try:
            return AvailabilityConfig.model_validate(
                {"slot_duration_min": row.slot_duration_min, "opening_hours": row.opening_hours}
            )
        except PydanticValidationError as exc:
            self.logger.error(f"Stored availability configuration is invalid: {exc}")
            raise ConfigurationException(
                "Stored availability configuration is invalid",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc

    @BaseService.measure_operation("replace_availability_config")
    def replace_config(
        self,
        config: Union[AvailabilityConfig, Dict[str, Any]],
        admin_id: Optional[str] = None,
    ) -> AvailabilityConfig:
        """
        Overwrite the stored configuration wholesale.

        All seven weekdays are required; there is no per-day patching.

        Raises:
            ValidationException: Malformed config or a weekday missing
        """
        if not isinstance(config, AvailabilityConfig):
            try:
                config = AvailabilityConfig.model_validate(config)
            except PydanticValidationError as exc:
                raise ValidationException(
                    "Invalid availability configuration",
                    details={"errors": exc.errors(include_url=False, include_context=False)},
                ) from exc

        missing = config.missing_weekdays
        if missing:
            raise ValidationException(
                "Opening hours are required for every day of the week",
                details={"missing_weekdays": missing},
            )

        dumped = config.model_dump(mode="json")
        with self.transaction():
            self.config_repository.replace(
                slot_duration_min=dumped["slot_duration_min"],
                opening_hours=dumped["opening_hours"],
                updated_by_admin_id=admin_id,
            )

        self.log_operation(
            "replace_availability_config",
            admin_id=admin_id,
            slot_duration_min=config.slot_duration_min,
        )
        return config

    @BaseService.measure_operation("get_available_slots")
    def get_available_slots(self, day: date, duration_minutes: int) -> List[TimeSlot]:
        """Slots for ``day`` against the stored config and confirmed reservations."""
        config = self.get_config()
        tz_name = settings.business_timezone
        bookings = self.reservation_repository.find_confirmed_by_date(day, tz_name)
        slots = self.calculator.compute_slots(day, duration_minutes, config, bookings, tz_name)
        self.logger.debug(
            f"Computed {len(slots)} slots for {day.isoformat()} "
            f"({sum(1 for s in slots if s.available)} available)"
        )
        return slots
