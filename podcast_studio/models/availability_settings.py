# podcast_studio/models/availability_settings.py
"""Stored availability configuration (single row, replaced wholesale)."""

from sqlalchemy import JSON, CheckConstraint, Column, Integer, String

from ..database import Base
from .types import TimestampMixin

AVAILABILITY_SETTINGS_ROW_ID = 1


class AvailabilitySettings(TimestampMixin, Base):
    """
    Slot granularity and weekly opening hours for the studio.

    ``opening_hours`` maps weekday name to ``{"start": "HH:MM", "end": "HH:MM"}``.
    There is only ever one row (id 1); administrative updates overwrite it.
    """

    __tablename__ = "availability_settings"
    __table_args__ = (
        CheckConstraint("slot_duration_min > 0", name="ck_availability_settings_slot_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=False, default=AVAILABILITY_SETTINGS_ROW_ID)
    slot_duration_min = Column(Integer, nullable=False)
    opening_hours = Column(JSON, nullable=False)
    updated_by_admin_id = Column(String(26), nullable=True)

    def __repr__(self) -> str:
        return f"<AvailabilitySettings slot={self.slot_duration_min}min>"
