# podcast_studio/repositories/availability_config_repository.py
"""Storage for the single availability settings row."""

import logging
from typing import Any, Dict, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.availability_settings import AVAILABILITY_SETTINGS_ROW_ID, AvailabilitySettings
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityConfigRepository(BaseRepository[AvailabilitySettings]):
    """Reads and wholesale-replaces the stored availability configuration."""

    def __init__(self, db: Session):
        super().__init__(db, AvailabilitySettings)

    def get_current(self) -> Optional[AvailabilitySettings]:
        try:
            return cast(
                Optional[AvailabilitySettings],
                self.db.get(AvailabilitySettings, AVAILABILITY_SETTINGS_ROW_ID),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading availability settings: {str(e)}")
            raise RepositoryException(f"Failed to load availability settings: {str(e)}")

    def replace(
        self,
        *,
        slot_duration_min: int,
        opening_hours: Dict[str, Any],
        updated_by_admin_id: Optional[str] = None,
    ) -> AvailabilitySettings:
        """
        Overwrite the stored configuration (creating the row on first use).

        Every field is replaced; nothing from the previous row is merged in.
        """
        try:
            row = self.get_current()
            if row is None:
                row = AvailabilitySettings(id=AVAILABILITY_SETTINGS_ROW_ID)
                self.db.add(row)
            row.slot_duration_min = slot_duration_min
            row.opening_hours = opening_hours
            row.updated_by_admin_id = updated_by_admin_id
            self.db.flush()
            return row
        except SQLAlchemyError as e:
            self.logger.error(f"Error replacing availability settings: {str(e)}")
            raise RepositoryException(f"Failed to replace availability settings: {str(e)}") from e
