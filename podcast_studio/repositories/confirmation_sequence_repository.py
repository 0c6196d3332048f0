# podcast_studio/repositories/confirmation_sequence_repository.py
"""
Per-year confirmation counter.

The counter is advanced with one ``INSERT ... ON CONFLICT (year) DO UPDATE
... RETURNING`` statement, so the increment and the read happen atomically in
the database and concurrent callers can never observe the same value.
"""

import logging
from typing import Any, Optional

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..core.timezone_utils import utc_now
from ..models.confirmation_sequence import ConfirmationSequence
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ConfirmationSequenceRepository(BaseRepository[ConfirmationSequence]):
    """Atomic increment-and-read on ``confirmation_sequences``."""

    def __init__(self, db: Session):
        super().__init__(db, ConfirmationSequence)

    def _upsert_statement(self, year: int) -> Any:
        dialect = self.dialect_name
        if dialect == "postgresql":
            insert_fn: Any = pg_insert
        elif dialect == "sqlite":
            insert_fn = sqlite_insert
        else:
            raise RepositoryException(
                f"Atomic sequence issuance is not supported on dialect '{dialect}'"
            )

        now = utc_now()
        stmt = insert_fn(ConfirmationSequence).values(year=year, last_value=1, updated_at=now)
        return stmt.on_conflict_do_update(
            index_elements=[ConfirmationSequence.year],
            set_={
                "last_value": ConfirmationSequence.last_value + 1,
                "updated_at": now,
            },
        ).returning(ConfirmationSequence.last_value)

    def next_value(self, year: int) -> int:
        """
        Advance the counter for ``year`` and return the new value (1 for a new year).

        Raises:
            RepositoryException: If the statement fails or the dialect has no upsert
        """
        stmt = self._upsert_statement(year)
        try:
            value = self.db.execute(stmt).scalar_one()
        except SQLAlchemyError as e:
            self.logger.error(f"Error advancing confirmation sequence for {year}: {str(e)}")
            raise RepositoryException(f"Failed to issue confirmation sequence: {str(e)}") from e
        return int(value)

    def current_value(self, year: int) -> Optional[int]:
        """Last value handed out for ``year`` (None if the year has not started)."""
        try:
            row = self.db.get(ConfirmationSequence, year, populate_existing=True)
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading confirmation sequence for {year}: {str(e)}")
            raise RepositoryException(f"Failed to read confirmation sequence: {str(e)}") from e
        return int(row.last_value) if row is not None else None
