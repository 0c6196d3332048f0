# podcast_studio/models/confirmation_sequence.py
"""Per-year counter behind CONF-<year>-<nnnn> confirmation codes."""

from sqlalchemy import CheckConstraint, Column, Integer

from ..core.timezone_utils import utc_now
from ..database import Base
from .types import UTCDateTime


class ConfirmationSequence(Base):
    """
    One row per calendar year.

    ``last_value`` is only ever advanced by a single atomic upsert, so the
    value handed out is unique even under concurrent confirmations. Gaps are
    allowed (a rolled-back confirmation consumes a number), duplicates are not.
    """

    __tablename__ = "confirmation_sequences"
    __table_args__ = (
        CheckConstraint("last_value >= 0", name="ck_confirmation_sequences_non_negative"),
    )

    year = Column(Integer, primary_key=True, autoincrement=False)
    last_value = Column(Integer, nullable=False, default=0)
    updated_at = Column(UTCDateTime(), nullable=False, default=utc_now, onupdate=utc_now)

    def __repr__(self) -> str:
        return f"<ConfirmationSequence {self.year}: {self.last_value}>"
