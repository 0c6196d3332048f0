# podcast_studio/models/reservation.py
"""
Podcast-room reservation model.

A reservation is created ``pending`` by a client request and only blocks the
room once an administrator confirms it. Start and end are stored as UTC
instants on exact hour boundaries; ``timezone`` records the zone the customer
booked in so the wall-clock view can be rebuilt.
"""

from enum import Enum
from typing import Any, List

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from ..core.config import settings
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import TimestampMixin, UTCDateTime


class ReservationStatus(str, Enum):
    """Reservation lifecycle statuses."""

    PENDING = "pending"  # Submitted by a client, holds no slot
    CONFIRMED = "confirmed"  # Accepted by an admin, blocks the room
    COMPLETED = "completed"  # Session took place
    CANCELLED = "cancelled"  # Withdrawn before the session
    REJECTED = "rejected"  # Declined by an admin

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {ReservationStatus.COMPLETED, ReservationStatus.CANCELLED, ReservationStatus.REJECTED}
)

_STATUS_VALUES_SQL = ", ".join(f"'{member.value}'" for member in ReservationStatus)


class PodcastReservation(TimestampMixin, Base):
    """
    A booking of the physical podcast room.

    Pricing is snapshotted at creation (pack base price plus the supplements
    selected at that moment) and never recomputed afterwards.
    """

    __tablename__ = "podcast_reservations"
    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES_SQL})", name="ck_podcast_reservations_status"),
        CheckConstraint("duration_hours >= 1", name="ck_podcast_reservations_duration_positive"),
        CheckConstraint("end_at > start_at", name="ck_podcast_reservations_time_order"),
        CheckConstraint("total_price >= 0", name="ck_podcast_reservations_price_non_negative"),
        Index("ix_podcast_reservations_status_start", "status", "start_at"),
    )

    id = Column(String(26), primary_key=True, default=generate_ulid)
    confirmation_id = Column(String(50), nullable=True, unique=True)
    status = Column(String(20), nullable=False, default=ReservationStatus.PENDING.value, index=True)

    # Schedule
    start_at = Column(UTCDateTime(), nullable=False)
    end_at = Column(UTCDateTime(), nullable=False)
    duration_hours = Column(Integer, nullable=False)
    timezone = Column(String(100), nullable=False, default=lambda: settings.business_timezone)

    # Reference data
    decor_id = Column(String(26), ForeignKey("podcast_decors.id"), nullable=True)
    pack_offer_id = Column(String(26), ForeignKey("podcast_pack_offers.id"), nullable=True)
    theme_id = Column(String(26), ForeignKey("podcast_themes.id"), nullable=True)
    custom_theme = Column(String(255), nullable=True)
    podcast_description = Column(Text, nullable=True)

    # Customer
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    extra_data = Column("metadata", JSON, nullable=True)

    total_price = Column(Numeric(10, 2), nullable=False)

    # Administration
    assigned_admin_id = Column(String(26), nullable=True)
    confirmed_by_admin_id = Column(String(26), nullable=True)
    confirmed_at = Column(UTCDateTime(), nullable=True)
    completed_at = Column(UTCDateTime(), nullable=True)
    cancelled_at = Column(UTCDateTime(), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    rejected_at = Column(UTCDateTime(), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    decor = relationship("PodcastDecor")
    pack_offer = relationship("PodcastPackOffer")
    theme = relationship("PodcastTheme")
    supplements = relationship(
        "ReservationSupplement",
        back_populates="reservation",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    status_history = relationship(
        "ReservationStatusHistory",
        back_populates="reservation",
        cascade="all, delete-orphan",
        order_by="ReservationStatusHistory.changed_at",
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = ReservationStatus.PENDING.value

    def __repr__(self) -> str:
        return (
            f"<PodcastReservation {self.id}: status={self.status}, "
            f"window={self.start_at}-{self.end_at}, confirmation={self.confirmation_id}>"
        )

    @property
    def status_enum(self) -> ReservationStatus:
        return ReservationStatus(self.status)

    @property
    def supplement_ids(self) -> List[str]:
        return [item.supplement_id for item in self.supplements]


class ReservationSupplement(Base):
    """A supplement attached to a reservation, with the price paid at booking time."""

    __tablename__ = "podcast_reservation_supplements"
    __table_args__ = (
        CheckConstraint(
            "price_at_booking >= 0", name="ck_podcast_reservation_supplements_price_non_negative"
        ),
    )

    id = Column(String(26), primary_key=True, default=generate_ulid)
    reservation_id = Column(
        String(26),
        ForeignKey("podcast_reservations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    supplement_id = Column(String(26), ForeignKey("podcast_supplements.id"), nullable=False)
    price_at_booking = Column(Numeric(10, 2), nullable=False)

    reservation = relationship("PodcastReservation", back_populates="supplements")
    supplement = relationship("PodcastSupplement")

    def __repr__(self) -> str:
        return f"<ReservationSupplement {self.supplement_id} @ {self.price_at_booking}>"
