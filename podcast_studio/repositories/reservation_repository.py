# podcast_studio/repositories/reservation_repository.py
"""
Reservation Repository for the podcast studio.

Handles every query the scheduling core runs against ``podcast_reservations``:
confirmed-booking lookups used for overlap checks, listing and calendar views,
and the conditional status writes that keep confirmation race-free.

Overlap queries use the half-open rule ``start_at < end AND end_at > start``
so back-to-back reservations never collide.
"""

from datetime import date, datetime
import logging
from typing import Any, List, Optional, cast

from sqlalchemy import or_, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload
from sqlalchemy.orm.util import identity_key

from ..core.exceptions import RepositoryException
from ..core.timezone_utils import day_bounds
from ..models.reservation import PodcastReservation, ReservationStatus, ReservationSupplement
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

# Key for pg_advisory_xact_lock; the studio has a single room.
ROOM_LOCK_KEY = 734_221_901

# Matches no row; executing it makes SQLite take the RESERVED (write) lock.
SQLITE_WRITE_LOCK_SQL = "UPDATE confirmation_sequences SET last_value = last_value WHERE year = -1"


class ReservationRepository(BaseRepository[PodcastReservation]):
    """Data access for podcast-room reservations."""

    def __init__(self, db: Session):
        super().__init__(db, PodcastReservation)
        self.logger = logging.getLogger(__name__)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            selectinload(PodcastReservation.supplements),
            selectinload(PodcastReservation.pack_offer),
        )

    # Lookups

    def get_by_confirmation_id(self, confirmation_id: str) -> Optional[PodcastReservation]:
        try:
            query = self.db.query(PodcastReservation).filter(
                PodcastReservation.confirmation_id == confirmation_id
            )
            return cast(Optional[PodcastReservation], self._apply_eager_loading(query).first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting reservation by confirmation id: {str(e)}")
            raise RepositoryException(f"Failed to get reservation: {str(e)}")

    # Confirmed-booking queries (conflict sources)

    def find_confirmed_overlapping(
        self,
        start_at: datetime,
        end_at: datetime,
        exclude_reservation_id: Optional[str] = None,
    ) -> List[PodcastReservation]:
        """
        Confirmed reservations whose window overlaps ``[start_at, end_at)``.

        Args:
            start_at: Window start (aware)
            end_at: Window end (aware, exclusive)
            exclude_reservation_id: Reservation to ignore (the one being changed)

        Returns:
            Overlapping confirmed reservations ordered by start
        """
        try:
            query = self.db.query(PodcastReservation).filter(
                PodcastReservation.status == ReservationStatus.CONFIRMED.value,
                PodcastReservation.start_at < end_at,
                PodcastReservation.end_at > start_at,
            )
            if exclude_reservation_id:
                query = query.filter(PodcastReservation.id != exclude_reservation_id)

            return cast(
                List[PodcastReservation], query.order_by(PodcastReservation.start_at).all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding overlapping confirmed reservations: {str(e)}")
            raise RepositoryException(f"Failed to check overlapping reservations: {str(e)}")

    def find_confirmed_by_date(
        self, target_date: date, tz_name: Optional[str] = None
    ) -> List[PodcastReservation]:
        """Confirmed reservations overlapping the local day ``target_date``."""
        day_start, day_end = day_bounds(target_date, tz_name)
        return self.find_confirmed_overlapping(day_start, day_end)

    def find_confirmed_by_date_range(
        self, date_from: date, date_to: date, tz_name: Optional[str] = None
    ) -> List[PodcastReservation]:
        """Confirmed reservations overlapping the inclusive local-day range."""
        range_start, _ = day_bounds(date_from, tz_name)
        _, range_end = day_bounds(date_to, tz_name)
        return self.find_confirmed_overlapping(range_start, range_end)

    # Listing

    def find_by_status_in_range(
        self,
        status: ReservationStatus,
        date_from: date,
        date_to: date,
        tz_name: Optional[str] = None,
    ) -> List[PodcastReservation]:
        """Reservations in ``status`` starting inside the inclusive local-day range."""
        range_start, _ = day_bounds(date_from, tz_name)
        _, range_end = day_bounds(date_to, tz_name)
        try:
            query = self.db.query(PodcastReservation).filter(
                PodcastReservation.status == status.value,
                PodcastReservation.start_at >= range_start,
                PodcastReservation.start_at < range_end,
            )
            return cast(
                List[PodcastReservation],
                self._apply_eager_loading(query).order_by(PodcastReservation.start_at).all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {status.value} reservations for calendar: {str(e)}")
            raise RepositoryException(f"Failed to get calendar reservations: {str(e)}")

    def list_reservations(
        self,
        *,
        status: Optional[ReservationStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        search: Optional[str] = None,
        tz_name: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[PodcastReservation]:
        """
        Filtered reservation listing ordered by start time.

        ``search`` matches customer name, customer email or confirmation code
        (case-insensitive substring).
        """
        try:
            query = self.db.query(PodcastReservation)
            if status is not None:
                query = query.filter(PodcastReservation.status == status.value)
            if date_from is not None:
                range_start, _ = day_bounds(date_from, tz_name)
                query = query.filter(PodcastReservation.start_at >= range_start)
            if date_to is not None:
                _, range_end = day_bounds(date_to, tz_name)
                query = query.filter(PodcastReservation.start_at < range_end)
            if search:
                pattern = f"%{search.strip()}%"
                query = query.filter(
                    or_(
                        PodcastReservation.customer_name.ilike(pattern),
                        PodcastReservation.customer_email.ilike(pattern),
                        PodcastReservation.confirmation_id.ilike(pattern),
                    )
                )

            query = self._apply_eager_loading(query)
            return cast(
                List[PodcastReservation],
                query.order_by(PodcastReservation.start_at, PodcastReservation.id)
                .offset(skip)
                .limit(limit)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing reservations: {str(e)}")
            raise RepositoryException(f"Failed to list reservations: {str(e)}")

    # Writes

    def add_supplement(
        self, reservation: PodcastReservation, supplement_id: str, price_at_booking: Any
    ) -> ReservationSupplement:
        """Attach a supplement with its booking-time price snapshot."""
        item = ReservationSupplement(supplement_id=supplement_id, price_at_booking=price_at_booking)
        reservation.supplements.append(item)
        return item

    def lock_room(self) -> None:
        """
        Serialize slot-changing writes until the current transaction ends.

        Must be the first statement of the transaction. PostgreSQL takes a
        transaction-scoped advisory lock. SQLite has one writer per database,
        so a zero-row UPDATE opens the write transaction and holds that lock;
        a second confirmation waits (busy timeout) until the first commits.
        """
        try:
            if self.dialect_name == "postgresql":
                self.db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": ROOM_LOCK_KEY})
            elif self.dialect_name == "sqlite":
                self.db.execute(text(SQLITE_WRITE_LOCK_SQL))
        except SQLAlchemyError as e:
            self.logger.error(f"Error acquiring room lock: {str(e)}")
            raise RepositoryException(f"Failed to acquire room lock: {str(e)}")

    def transition_status(
        self,
        reservation_id: str,
        expected_status: ReservationStatus,
        new_status: ReservationStatus,
        **values: Any,
    ) -> bool:
        """
        Move a reservation to ``new_status`` only if it is still in ``expected_status``.

        Extra column values are written in the same ``UPDATE``. Returns False when
        the row is missing or another transaction changed its status first.

        Raises:
            SQLAlchemyError: Passed through unwrapped so the caller can tell an
                overlap-constraint violation or deadlock from other failures
        """
        try:
            stmt = (
                update(PodcastReservation)
                .where(
                    PodcastReservation.id == reservation_id,
                    PodcastReservation.status == expected_status.value,
                )
                .values(status=new_status.value, **values)
                .execution_options(synchronize_session=False)
            )
            result = self.db.execute(stmt)
            updated = bool(getattr(result, "rowcount", 0))
            if updated:
                self._expire_cached(reservation_id)
            return updated
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error moving reservation {reservation_id} to {new_status.value}: {str(e)}"
            )
            raise

    def _expire_cached(self, reservation_id: str) -> None:
        cached = self.db.identity_map.get(identity_key(PodcastReservation, reservation_id))
        if cached is not None:
            self.db.expire(cached)
