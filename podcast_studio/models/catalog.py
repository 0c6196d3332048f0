# podcast_studio/models/catalog.py
"""
Reference data the booking flow reads: decors, pack offers, themes and
supplements.

These rows are managed by the content back office; the scheduling core only
checks that they exist and are active, and snapshots prices from them.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, Numeric, String, Text

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import TimestampMixin


class CatalogItemMixin(TimestampMixin):
    """Columns shared by every catalog table."""

    id = Column(String(26), primary_key=True, default=generate_ulid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.id}: {self.name} active={self.is_active}>"


class PodcastDecor(CatalogItemMixin, Base):
    """A set dressing the room can be prepared with."""

    __tablename__ = "podcast_decors"

    image_url = Column(String(1024), nullable=True)


class PodcastTheme(CatalogItemMixin, Base):
    """A predefined podcast theme (alternative to a customer-written custom theme)."""

    __tablename__ = "podcast_themes"


class PodcastPackOffer(CatalogItemMixin, Base):
    """A bookable pack: base price and default session length."""

    __tablename__ = "podcast_pack_offers"
    __table_args__ = (
        CheckConstraint("base_price >= 0", name="ck_podcast_pack_offers_price_non_negative"),
        CheckConstraint("duration_min > 0", name="ck_podcast_pack_offers_duration_positive"),
    )

    base_price = Column(Numeric(10, 2), nullable=False)
    duration_min = Column(Integer, nullable=False)


class PodcastSupplement(CatalogItemMixin, Base):
    """An add-on service priced on top of the pack."""

    __tablename__ = "podcast_supplements"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_podcast_supplements_price_non_negative"),
    )

    price = Column(Numeric(10, 2), nullable=False)
