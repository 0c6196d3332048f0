# podcast_studio/schemas/availability.py
"""
Availability schemas.

``AvailabilityConfig`` is the value passed into every slot calculation; it is
loaded from storage (or settings) per query rather than held as process state.
"""

import datetime
from typing import Dict

from pydantic import Field, field_serializer, field_validator, model_validator

from ..core.config import WEEKDAY_NAMES
from ..core.exceptions import ConfigurationException
from ._strict_base import StrictModel

TimeType = datetime.time
DateType = datetime.date


class DayHours(StrictModel):
    """Opening window for one weekday; ``start == end`` means closed."""

    start: TimeType
    end: TimeType

    @model_validator(mode="after")
    def _validate_order(self) -> "DayHours":
        if self.end < self.start:
            raise ValueError("Closing time must not be before opening time")
        if self.start.second or self.end.second or self.start.microsecond or self.end.microsecond:
            raise ValueError("Opening hours are expressed as HH:MM")
        return self

    @field_serializer("start", "end")
    def _serialize_wall_clock(self, value: TimeType) -> str:
        return value.strftime("%H:%M")

    @property
    def is_closed(self) -> bool:
        return self.start == self.end

    @property
    def start_minute(self) -> int:
        return self.start.hour * 60 + self.start.minute

    @property
    def end_minute(self) -> int:
        return self.end.hour * 60 + self.end.minute


class AvailabilityConfig(StrictModel):
    """Slot granularity plus opening hours keyed by lowercase weekday name."""

    slot_duration_min: int = Field(gt=0, le=24 * 60)
    opening_hours: Dict[str, DayHours]

    @field_validator("opening_hours", mode="before")
    @classmethod
    def _normalize_weekdays(cls, value: object) -> object:
        if not isinstance(value, dict):
            return value
        normalized = {}
        for key, hours in value.items():
            day = str(key).strip().lower()
            if day not in WEEKDAY_NAMES:
                raise ValueError(f"Unknown weekday: {key}")
            normalized[day] = hours
        return normalized

    @property
    def missing_weekdays(self) -> list[str]:
        return [day for day in WEEKDAY_NAMES if day not in self.opening_hours]

    def hours_for(self, day: DateType) -> DayHours:
        """Opening window for the weekday of ``day``."""
        weekday = WEEKDAY_NAMES[day.weekday()]
        hours = self.opening_hours.get(weekday)
        if hours is None:
            raise ConfigurationException(
                f"Availability config has no opening hours for {weekday}",
                details={"weekday": weekday, "date": day.isoformat()},
            )
        return hours


class TimeSlot(StrictModel):
    """A candidate booking window; produced per query, never stored."""

    start_time: TimeType
    end_time: TimeType
    available: bool

    @field_serializer("start_time", "end_time")
    def _serialize_wall_clock(self, value: TimeType) -> str:
        return value.strftime("%H:%M")
