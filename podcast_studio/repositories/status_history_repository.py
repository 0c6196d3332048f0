# podcast_studio/repositories/status_history_repository.py
"""Audit trail rows for reservation status changes."""

from datetime import datetime
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.status_history import ReservationStatusHistory
from .base_repository import BaseRepository


class StatusHistoryRepository(BaseRepository[ReservationStatusHistory]):
    def __init__(self, db: Session):
        super().__init__(db, ReservationStatusHistory)

    def record(
        self,
        reservation_id: str,
        old_status: Optional[str],
        new_status: str,
        *,
        changed_at: datetime,
        changed_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ReservationStatusHistory:
        return self.create(
            reservation_id=reservation_id,
            old_status=old_status,
            new_status=new_status,
            changed_at=changed_at,
            changed_by=changed_by,
            notes=notes,
        )

    def list_for_reservation(self, reservation_id: str) -> List[ReservationStatusHistory]:
        try:
            return cast(
                List[ReservationStatusHistory],
                self.db.query(ReservationStatusHistory)
                .filter(ReservationStatusHistory.reservation_id == reservation_id)
                .order_by(ReservationStatusHistory.changed_at, ReservationStatusHistory.id)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting status history for {reservation_id}: {str(e)}")
            raise RepositoryException(f"Failed to get status history: {str(e)}")
