# podcast_studio/models/types.py
"""
Custom SQLAlchemy types that work across different database backends.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import Column, DateTime, TypeDecorator

from ..core.timezone_utils import utc_now

if TYPE_CHECKING:
    from sqlalchemy.sql.type_api import TypeDecorator as _TypeDecorator

    TypeDecoratorProtocol = _TypeDecorator[Any]
else:
    TypeDecoratorProtocol = TypeDecorator


class UTCDateTime(TypeDecoratorProtocol):
    """
    Timezone-aware timestamp stored as UTC.

    PostgreSQL keeps the offset natively; SQLite has no timestamp type, so the
    value is written as naive UTC and re-tagged with UTC on the way out. Either
    way callers always get aware datetimes back. Naive input is rejected.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("UTCDateTime requires timezone-aware datetimes")
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class TimestampMixin:
    """Mixin class for automatic timestamp tracking."""

    created_at = Column(UTCDateTime(), default=utc_now, nullable=False)
    updated_at = Column(UTCDateTime(), default=utc_now, onupdate=utc_now, nullable=False)
