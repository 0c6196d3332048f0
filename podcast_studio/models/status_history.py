# podcast_studio/models/status_history.py
"""Audit trail of reservation status changes."""

from sqlalchemy import Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from ..core.timezone_utils import utc_now
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


class ReservationStatusHistory(Base):
    """One status change; ``old_status`` is NULL for the creation entry."""

    __tablename__ = "reservation_status_history"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    reservation_id = Column(
        String(26),
        ForeignKey("podcast_reservations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    old_status = Column(String(20), nullable=True)
    new_status = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    changed_by = Column(String(26), nullable=True)
    changed_at = Column(UTCDateTime(), nullable=False, default=utc_now)

    reservation = relationship("PodcastReservation", back_populates="status_history")

    def __repr__(self) -> str:
        return (
            f"<ReservationStatusHistory {self.reservation_id}: "
            f"{self.old_status} -> {self.new_status}>"
        )
