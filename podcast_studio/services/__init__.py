"""
Service layer for the podcast studio scheduling core.

Services own business rules and transactions; data access goes through
repositories created by ``RepositoryFactory``.
"""

from .availability_service import AvailabilityCalculator, AvailabilityService
from .base import BaseService
from .booking_lifecycle_service import BookingLifecycleManager
from .sequence_issuer import SequenceIssuer

__all__ = [
    "AvailabilityCalculator",
    "AvailabilityService",
    "BaseService",
    "BookingLifecycleManager",
    "SequenceIssuer",
]
