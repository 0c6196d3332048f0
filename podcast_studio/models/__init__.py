"""
Database models for the podcast studio scheduling core.

- Reservations and their supplement price snapshots
- Reference catalog (decors, pack offers, themes, supplements)
- Availability configuration and the per-year confirmation counter
- Status change audit trail
"""

from .availability_settings import AVAILABILITY_SETTINGS_ROW_ID, AvailabilitySettings
from .catalog import PodcastDecor, PodcastPackOffer, PodcastSupplement, PodcastTheme
from .confirmation_sequence import ConfirmationSequence
from .reservation import (
    TERMINAL_STATUSES,
    PodcastReservation,
    ReservationStatus,
    ReservationSupplement,
)
from .status_history import ReservationStatusHistory

__all__ = [
    "AVAILABILITY_SETTINGS_ROW_ID",
    "AvailabilitySettings",
    "ConfirmationSequence",
    "PodcastDecor",
    "PodcastPackOffer",
    "PodcastReservation",
    "PodcastSupplement",
    "PodcastTheme",
    "ReservationStatus",
    "ReservationStatusHistory",
    "ReservationSupplement",
    "TERMINAL_STATUSES",
]
