# podcast_studio/services/sequence_issuer.py
"""
Confirmation code issuance.

Codes look like ``CONF-2025-0007``. The number comes from a per-year counter
advanced by a single atomic upsert, so two confirmations running at the same
time can never receive the same code. A rolled-back confirmation may leave a
gap in the sequence; duplicates are impossible.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ValidationException
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .reservation_rules import format_confirmation_id

logger = logging.getLogger(__name__)


class SequenceIssuer(BaseService):
    """
    Hands out per-year confirmation sequence numbers and codes.

    Calls run in the caller's transaction; the issuer never commits, so the
    number is consumed together with the confirmation that uses it.
    """

    def __init__(
        self,
        db: Session,
        sequence_repository: Optional[object] = None,
        prefix: Optional[str] = None,
    ):
        super().__init__(db)
        self.sequence_repository = (
            sequence_repository or RepositoryFactory.create_confirmation_sequence_repository(db)
        )
        self.prefix = prefix or settings.confirmation_code_prefix

    @BaseService.measure_operation("next_confirmation_sequence")
    def next_sequence(self, year: int) -> int:
        """
        Next sequence number for ``year`` (1 for the first confirmation of a year).

        Raises:
            ValidationException: ``year`` is outside 1..9999
            RepositoryException: The counter could not be advanced
        """
        if isinstance(year, bool) or not isinstance(year, int) or not 1 <= year <= 9999:
            raise ValidationException("Invalid confirmation year", details={"year": year})
        value = self.sequence_repository.next_value(year)
        self.logger.debug(f"Issued confirmation sequence {value} for {year}")
        return value

    def issue_code(self, year: int) -> str:
        """Advance the counter for ``year`` and return the formatted code."""
        return format_confirmation_id(year, self.next_sequence(year), self.prefix)
