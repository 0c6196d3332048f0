"""
Repository layer for the podcast studio scheduling core.

Repositories own all SQL; services own transactions and business rules.
"""

from .availability_config_repository import AvailabilityConfigRepository
from .base_repository import BaseRepository, IRepository
from .catalog_repository import CatalogRepository
from .confirmation_sequence_repository import ConfirmationSequenceRepository
from .factory import RepositoryFactory
from .reservation_repository import ReservationRepository
from .status_history_repository import StatusHistoryRepository

__all__ = [
    "AvailabilityConfigRepository",
    "BaseRepository",
    "CatalogRepository",
    "ConfirmationSequenceRepository",
    "IRepository",
    "RepositoryFactory",
    "ReservationRepository",
    "StatusHistoryRepository",
]
