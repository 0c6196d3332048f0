"""Pydantic schemas for the scheduling core."""

from .availability import AvailabilityConfig, DayHours, TimeSlot
from .reservation import (
    ReservationCreate,
    ReservationFilters,
    ReservationResponse,
    RescheduleRequest,
    ScheduleAdjustment,
)

__all__ = [
    "AvailabilityConfig",
    "DayHours",
    "ReservationCreate",
    "ReservationFilters",
    "ReservationResponse",
    "RescheduleRequest",
    "ScheduleAdjustment",
    "TimeSlot",
]
