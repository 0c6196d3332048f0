# podcast_studio/repositories/factory.py
"""
Repository Factory for the podcast studio.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .availability_config_repository import AvailabilityConfigRepository
    from .catalog_repository import CatalogRepository
    from .confirmation_sequence_repository import ConfirmationSequenceRepository
    from .reservation_repository import ReservationRepository
    from .status_history_repository import StatusHistoryRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_reservation_repository(db: Session) -> "ReservationRepository":
        """Create repository for reservation queries and status writes."""
        from .reservation_repository import ReservationRepository

        return ReservationRepository(db)

    @staticmethod
    def create_catalog_repository(db: Session) -> "CatalogRepository":
        """Create repository for reference catalog lookups."""
        from .catalog_repository import CatalogRepository

        return CatalogRepository(db)

    @staticmethod
    def create_confirmation_sequence_repository(db: Session) -> "ConfirmationSequenceRepository":
        """Create repository for the per-year confirmation counter."""
        from .confirmation_sequence_repository import ConfirmationSequenceRepository

        return ConfirmationSequenceRepository(db)

    @staticmethod
    def create_availability_config_repository(db: Session) -> "AvailabilityConfigRepository":
        """Create repository for the stored availability configuration."""
        from .availability_config_repository import AvailabilityConfigRepository

        return AvailabilityConfigRepository(db)

    @staticmethod
    def create_status_history_repository(db: Session) -> "StatusHistoryRepository":
        """Create repository for the reservation status audit trail."""
        from .status_history_repository import StatusHistoryRepository

        return StatusHistoryRepository(db)
