# podcast_studio/schemas/reservation.py
"""Reservation request and response schemas."""

import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..models.reservation import ReservationStatus
from ._strict_base import StrictRequestModel

DateType = datetime.date
TimeType = datetime.time
DateTimeType = datetime.datetime


class ReservationCreate(StrictRequestModel):
    """
    Client submission for a podcast session.

    Business rules (whole hours, theme choice, active references) are checked
    by the lifecycle service so they surface as domain errors.
    """

    requested_date: DateType
    requested_start_time: TimeType
    timezone: Optional[str] = None
    duration_hours: Optional[int] = None

    pack_offer_id: str
    decor_id: Optional[str] = None
    theme_id: Optional[str] = None
    custom_theme: Optional[str] = None
    podcast_description: Optional[str] = None
    supplement_ids: List[str] = Field(default_factory=list)

    customer_name: str
    customer_email: EmailStr
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ScheduleAdjustment(StrictRequestModel):
    """Admin override of the requested date/start time at confirmation."""

    final_date: Optional[DateType] = None
    final_start_time: Optional[TimeType] = None


class RescheduleRequest(StrictRequestModel):
    """Admin schedule edit; ``start_at`` must be timezone-aware."""

    start_at: DateTimeType
    duration_hours: Optional[int] = None
    timezone: Optional[str] = None
    reason: Optional[str] = None


class ReservationFilters(StrictRequestModel):
    """Listing filters; dates are inclusive local days."""

    status: Optional[ReservationStatus] = None
    date_from: Optional[DateType] = None
    date_to: Optional[DateType] = None
    search: Optional[str] = None
    skip: int = Field(default=0, ge=0)
    limit: int = Field(default=100, ge=1, le=500)


class ReservationResponse(BaseModel):
    """Read model of a reservation for outer layers."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    confirmation_id: Optional[str] = None
    status: ReservationStatus
    start_at: DateTimeType
    end_at: DateTimeType
    duration_hours: int
    timezone: str
    decor_id: Optional[str] = None
    pack_offer_id: Optional[str] = None
    theme_id: Optional[str] = None
    custom_theme: Optional[str] = None
    supplement_ids: List[str] = Field(default_factory=list)
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    total_price: Decimal
    assigned_admin_id: Optional[str] = None
    confirmed_by_admin_id: Optional[str] = None
    confirmed_at: Optional[DateTimeType] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="extra_data")
