# podcast_studio/services/booking_lifecycle_service.py
"""
Booking lifecycle for the podcast room.

A client request creates a ``pending`` reservation that holds no slot; any
number of pending requests may overlap. An administrator then confirms one,
and confirmation is the single point where the room is allocated:

1. take the room lock (advisory lock on PostgreSQL),
2. lock the reservation row and check it is still ``pending``,
3. re-check the window against every other ``confirmed`` reservation,
4. issue the next confirmation code for the booking year,
5. flip the status with ``UPDATE ... WHERE status = 'pending'``,

all inside one transaction. The loser of two overlapping confirmations gets
``SlotNoLongerAvailableException``. On PostgreSQL the exclusion constraint
``podcast_reservations_no_overlap`` backs the same rule, and a violation of it
(or a deadlock) is reported as the same exception.

Every status change writes a ``reservation_status_history`` row in the same
transaction.
"""

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    InvalidStateTransitionException,
    ReferenceNotFoundException,
    ReservationNotFoundException,
    ServiceException,
    SlotNoLongerAvailableException,
    ValidationException,
)
from ..core.timezone_utils import to_zone, utc_now
from ..models.reservation import PodcastReservation, ReservationStatus
from ..models.status_history import ReservationStatusHistory
from ..repositories.factory import RepositoryFactory
from ..schemas.reservation import (
    ReservationCreate,
    ReservationFilters,
    RescheduleRequest,
    ScheduleAdjustment,
)
from .base import BaseService
from .reservation_rules import (
    compute_end_at,
    ensure_transition,
    intervals_overlap,
    localize_wall_clock,
    resolve_zone,
    validate_duration_hours,
    validate_duration_minutes,
    validate_theme_choice,
)
from .sequence_issuer import SequenceIssuer

logger = logging.getLogger(__name__)

OVERLAP_CONSTRAINT_NAME = "podcast_reservations_no_overlap"
CENTS = Decimal("0.01")


class BookingLifecycleManager(BaseService):
    """
    Owns the reservation state machine.

    Collaborators (repositories, sequence issuer, clock) are injected so tests
    can replace any of them; by default they are built from ``db``.
    """

    def __init__(
        self,
        db: Session,
        sequence_issuer: Optional[SequenceIssuer] = None,
        reservation_repository: Any = None,
        catalog_repository: Any = None,
        status_history_repository: Any = None,
        now_fn: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(db)
        self.sequence_issuer = sequence_issuer or SequenceIssuer(db)
        self.reservation_repository = (
            reservation_repository or RepositoryFactory.create_reservation_repository(db)
        )
        self.catalog_repository = (
            catalog_repository or RepositoryFactory.create_catalog_repository(db)
        )
        self.status_history_repository = (
            status_history_repository or RepositoryFactory.create_status_history_repository(db)
        )
        self._now = now_fn or utc_now

    # Error translation

    @staticmethod
    def _is_deadlock_error(exc: OperationalError) -> bool:
        orig = getattr(exc, "orig", None)
        pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
        if pgcode == "40P01":
            return True
        return "deadlock detected" in str(exc).lower()

    @staticmethod
    def _is_overlap_violation(exc: IntegrityError) -> bool:
        orig = getattr(exc, "orig", None)
        diag = getattr(orig, "diag", None)
        constraint_name = ""
        if diag is not None:
            constraint_name = getattr(diag, "constraint_name", "") or ""
        if constraint_name:
            return constraint_name == OVERLAP_CONSTRAINT_NAME
        text = str(orig if orig is not None else exc)
        return OVERLAP_CONSTRAINT_NAME in text or "exclusion constraint" in text.lower()

    @contextmanager
    def _slot_transaction(self, reservation_id: str) -> Iterator[None]:
        """
        Transaction for writes that allocate the room.

        Storage-level overlap rejections and deadlocks become
        ``SlotNoLongerAvailableException``; everything else propagates as is.
        """
        try:
            with self.transaction():
                yield
        except ServiceException as exc:
            cause = exc.__cause__
            lost_race = (
                isinstance(cause, IntegrityError) and self._is_overlap_violation(cause)
            ) or (isinstance(cause, OperationalError) and self._is_deadlock_error(cause))
            if not lost_race:
                raise
            self.logger.warning(
                f"Reservation {reservation_id} lost a confirmation race at the database level"
            )
            raise SlotNoLongerAvailableException(
                details={"reservation_id": reservation_id, "reason": "storage_conflict"}
            ) from cause

    # Helpers

    def _load(self, reservation_id: str, for_update: bool = False) -> PodcastReservation:
        reservation = self.reservation_repository.get_by_id(reservation_id, for_update=for_update)
        if reservation is None:
            raise ReservationNotFoundException(reservation_id)
        return reservation

    def _ensure_slot_free(
        self, reservation_id: str, start_at: datetime, end_at: datetime
    ) -> None:
        candidates = self.reservation_repository.find_confirmed_overlapping(
            start_at, end_at, exclude_reservation_id=reservation_id
        )
        conflicts = [
            other
            for other in candidates
            if intervals_overlap(start_at, end_at, other.start_at, other.end_at)
        ]
        if conflicts:
            self.logger.warning(
                f"Slot {start_at.isoformat()}-{end_at.isoformat()} for reservation "
                f"{reservation_id} overlaps confirmed reservation(s) "
                f"{', '.join(c.id for c in conflicts)}"
            )
            raise SlotNoLongerAvailableException(
                details={
                    "reservation_id": reservation_id,
                    "start_at": start_at.isoformat(),
                    "end_at": end_at.isoformat(),
                    "conflicting_reservation_ids": [c.id for c in conflicts],
                }
            )

    def _record_history(
        self,
        reservation_id: str,
        old_status: Optional[ReservationStatus],
        new_status: ReservationStatus,
        changed_at: datetime,
        changed_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> None:
        self.status_history_repository.record(
            reservation_id,
            old_status.value if old_status else None,
            new_status.value,
            changed_at=changed_at,
            changed_by=changed_by,
            notes=notes,
        )

    def _apply_transition(
        self,
        reservation: PodcastReservation,
        target: ReservationStatus,
        *,
        changed_by: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
        **values: Any,
    ) -> None:
        """Conditional status write plus its history row; caller owns the transaction."""
        reservation_id = reservation.id
        current = reservation.status_enum
        ensure_transition(current, target, reservation_id)
        now = now or self._now()
        if not self.reservation_repository.transition_status(
            reservation_id, current, target, **values
        ):
            self.db.refresh(reservation)
            raise InvalidStateTransitionException(reservation_id, reservation.status, target.value)
        self._record_history(reservation_id, current, target, now, changed_by, notes)

    @staticmethod
    def _coerce(model: Any, data: Any) -> Any:
        if data is None or isinstance(data, model):
            return data
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationException(
                f"Invalid {model.__name__} payload",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc

    # Creation

    def _resolve_duration_hours(self, data: ReservationCreate, pack_duration_min: int) -> int:
        if data.duration_hours is not None:
            return validate_duration_hours(data.duration_hours)
        return validate_duration_minutes(pack_duration_min)

    def _validate_customer(self, data: ReservationCreate) -> None:
        # Email syntax is enforced by the schema (EmailStr).
        if not data.customer_name:
            raise ValidationException("Customer name is required", details={"field": "customer_name"})

    def _price_reservation(
        self, data: ReservationCreate
    ) -> Tuple[Any, List[Any], Decimal]:
        """Load and check every referenced catalog item; return pack, supplements and total."""
        pack = self.catalog_repository.get_active_pack_offer(data.pack_offer_id)
        if pack is None:
            raise ReferenceNotFoundException("pack_offer", data.pack_offer_id)
        if data.decor_id and not self.catalog_repository.is_active_decor(data.decor_id):
            raise ReferenceNotFoundException("decor", data.decor_id)
        if data.theme_id and not self.catalog_repository.is_active_theme(data.theme_id):
            raise ReferenceNotFoundException("theme", data.theme_id)

        requested_ids = list(dict.fromkeys(data.supplement_ids))
        supplements = self.catalog_repository.get_active_supplements(requested_ids)
        found = {s.id for s in supplements}
        for supplement_id in requested_ids:
            if supplement_id not in found:
                raise ReferenceNotFoundException("supplement", supplement_id)

        total = Decimal(pack.base_price) + sum(
            (Decimal(s.price) for s in supplements), Decimal("0")
        )
        return pack, supplements, total.quantize(CENTS)

    @BaseService.measure_operation("create_reservation")
    def create(self, data: Union[ReservationCreate, Dict[str, Any]]) -> PodcastReservation:
        """
        Store a new ``pending`` reservation.

        No availability check happens here: overlapping pending requests are
        allowed and settled at confirmation time.

        Raises:
            ValidationException: Bad duration, theme choice, customer data or date
            ReferenceNotFoundException: Pack, decor, theme or supplement missing/inactive
        """
        data = self._coerce(ReservationCreate, data)
        validate_theme_choice(data.theme_id, data.custom_theme)
        self._validate_customer(data)

        pack, supplements, total_price = self._price_reservation(data)
        duration_hours = self._resolve_duration_hours(data, pack.duration_min)

        tz_name = data.timezone or settings.business_timezone
        start_at = localize_wall_clock(data.requested_date, data.requested_start_time, tz_name)
        end_at = compute_end_at(start_at, duration_hours)

        self.log_operation(
            "create_reservation",
            pack_offer_id=pack.id,
            start_at=start_at.isoformat(),
            duration_hours=duration_hours,
        )

        now = self._now()
        with self.transaction():
            reservation = self.reservation_repository.create(
                status=ReservationStatus.PENDING.value,
                start_at=start_at,
                end_at=end_at,
                duration_hours=duration_hours,
                timezone=tz_name,
                pack_offer_id=pack.id,
                decor_id=data.decor_id,
                theme_id=data.theme_id,
                custom_theme=data.custom_theme or None,
                podcast_description=data.podcast_description,
                customer_name=data.customer_name,
                customer_email=data.customer_email,
                customer_phone=data.customer_phone,
                notes=data.notes,
                extra_data=data.metadata,
                total_price=total_price,
            )
            for supplement in supplements:
                self.reservation_repository.add_supplement(reservation, supplement.id, supplement.price)
            self._record_history(
                reservation.id, None, ReservationStatus.PENDING, now, notes="Reservation requested"
            )

        self.logger.info(f"Created pending reservation {reservation.id} ({total_price})")
        return reservation

    # Confirmation

    def _resolve_confirmed_window(
        self, reservation: PodcastReservation, adjustment: Optional[ScheduleAdjustment]
    ) -> Tuple[datetime, datetime]:
        if adjustment is None or (
            adjustment.final_date is None and adjustment.final_start_time is None
        ):
            return reservation.start_at, reservation.end_at

        local_start = to_zone(reservation.start_at, reservation.timezone)
        day = adjustment.final_date or local_start.date()
        wall_clock = adjustment.final_start_time or local_start.time()
        start_at = localize_wall_clock(day, wall_clock, reservation.timezone)
        return start_at, compute_end_at(start_at, reservation.duration_hours)

    @BaseService.measure_operation("confirm_reservation")
    def confirm(
        self,
        reservation_id: str,
        admin_id: str,
        adjustment: Union[ScheduleAdjustment, Dict[str, Any], None] = None,
    ) -> PodcastReservation:
        """
        Confirm a pending reservation and allocate its slot.

        Args:
            reservation_id: Reservation to confirm
            admin_id: Confirming administrator
            adjustment: Optional final date/start time overriding the request

        Returns:
            The confirmed reservation with its confirmation code

        Raises:
            ReservationNotFoundException: Unknown id
            InvalidStateTransitionException: Reservation is not pending
            SlotNoLongerAvailableException: Window overlaps a confirmed reservation
        """
        adjustment = self._coerce(ScheduleAdjustment, adjustment)
        self.log_operation("confirm_reservation", reservation_id=reservation_id, admin_id=admin_id)

        with self._slot_transaction(reservation_id):
            self.reservation_repository.lock_room()
            reservation = self._load(reservation_id, for_update=True)
            ensure_transition(reservation.status_enum, ReservationStatus.CONFIRMED, reservation_id)

            start_at, end_at = self._resolve_confirmed_window(reservation, adjustment)
            self._ensure_slot_free(reservation_id, start_at, end_at)

            year = to_zone(start_at, reservation.timezone).year
            confirmation_id = self.sequence_issuer.issue_code(year)
            now = self._now()
            self._apply_transition(
                reservation,
                ReservationStatus.CONFIRMED,
                changed_by=admin_id,
                notes=f"Confirmed as {confirmation_id}",
                now=now,
                confirmation_id=confirmation_id,
                confirmed_by_admin_id=admin_id,
                confirmed_at=now,
                start_at=start_at,
                end_at=end_at,
            )

        self.logger.info(f"Reservation {reservation_id} confirmed as {confirmation_id}")
        return self._load(reservation_id)

    # Other transitions

    @BaseService.measure_operation("reject_reservation")
    def reject(
        self, reservation_id: str, admin_id: str, reason: Optional[str] = None
    ) -> PodcastReservation:
        """Decline a pending reservation."""
        self.log_operation("reject_reservation", reservation_id=reservation_id, admin_id=admin_id)
        with self.transaction():
            reservation = self._load(reservation_id, for_update=True)
            now = self._now()
            self._apply_transition(
                reservation,
                ReservationStatus.REJECTED,
                changed_by=admin_id,
                notes=reason,
                now=now,
                rejected_at=now,
                rejection_reason=reason,
            )
        return self._load(reservation_id)

    @BaseService.measure_operation("cancel_reservation")
    def cancel(
        self,
        reservation_id: str,
        reason: Optional[str] = None,
        cancelled_by: Optional[str] = None,
    ) -> PodcastReservation:
        """
        Cancel a pending or confirmed reservation.

        Cancelling a confirmed reservation frees its slot; a pending one never
        held a slot.
        """
        self.log_operation("cancel_reservation", reservation_id=reservation_id)
        with self.transaction():
            reservation = self._load(reservation_id, for_update=True)
            now = self._now()
            self._apply_transition(
                reservation,
                ReservationStatus.CANCELLED,
                changed_by=cancelled_by,
                notes=reason,
                now=now,
                cancelled_at=now,
                cancellation_reason=reason,
            )
        return self._load(reservation_id)

    @BaseService.measure_operation("complete_reservation")
    def complete(self, reservation_id: str, admin_id: Optional[str] = None) -> PodcastReservation:
        """Mark a confirmed reservation as having taken place."""
        self.log_operation("complete_reservation", reservation_id=reservation_id)
        with self.transaction():
            reservation = self._load(reservation_id, for_update=True)
            now = self._now()
            self._apply_transition(
                reservation,
                ReservationStatus.COMPLETED,
                changed_by=admin_id,
                now=now,
                completed_at=now,
            )
        return self._load(reservation_id)

    # Administrative edits

    @BaseService.measure_operation("reschedule_reservation")
    def reschedule(
        self,
        reservation_id: str,
        request: Union[RescheduleRequest, Dict[str, Any]],
        admin_id: Optional[str] = None,
    ) -> PodcastReservation:
        """
        Move a pending or confirmed reservation to a new window.

        A confirmed reservation is re-checked against the other confirmed
        reservations under the room lock; a pending one is only checked for
        shape. The price is left untouched. The move is written to the status
        history (status unchanged) with ``request.reason`` as its note.
        """
        request = self._coerce(RescheduleRequest, request)
        if request.start_at.tzinfo is None:
            raise ValidationException(
                "start_at must include a timezone",
                details={"start_at": request.start_at.isoformat()},
            )
        if request.timezone:
            resolve_zone(request.timezone)
        self.log_operation(
            "reschedule_reservation",
            reservation_id=reservation_id,
            admin_id=admin_id,
            start_at=request.start_at.isoformat(),
        )

        with self._slot_transaction(reservation_id):
            self.reservation_repository.lock_room()
            reservation = self._load(reservation_id, for_update=True)
            current = reservation.status_enum
            if current.is_terminal:
                raise InvalidStateTransitionException(reservation_id, current.value, "rescheduled")

            tz_name = request.timezone or reservation.timezone
            local_start = to_zone(request.start_at, tz_name)
            duration_hours = validate_duration_hours(
                request.duration_hours
                if request.duration_hours is not None
                else reservation.duration_hours
            )
            end_at = compute_end_at(local_start, duration_hours)

            if current == ReservationStatus.CONFIRMED:
                self._ensure_slot_free(reservation_id, local_start, end_at)

            if not self.reservation_repository.transition_status(
                reservation_id,
                current,
                current,
                start_at=local_start,
                end_at=end_at,
                duration_hours=duration_hours,
                timezone=tz_name,
            ):
                self.db.refresh(reservation)
                raise InvalidStateTransitionException(
                    reservation_id, reservation.status, "rescheduled"
                )
            self._record_history(
                reservation_id,
                current,
                current,
                changed_at=self._now(),
                changed_by=admin_id,
                notes=request.reason or f"Rescheduled to {local_start.isoformat()}",
            )

        self.logger.info(
            f"Reservation {reservation_id} rescheduled to {local_start.isoformat()} "
            f"({duration_hours}h)"
        )
        return self._load(reservation_id)

    @BaseService.measure_operation("assign_admin")
    def assign_admin(self, reservation_id: str, admin_id: str) -> PodcastReservation:
        """Set the administrator in charge of a non-terminal reservation."""
        with self.transaction():
            reservation = self._load(reservation_id, for_update=True)
            if reservation.status_enum.is_terminal:
                raise InvalidStateTransitionException(
                    reservation_id, reservation.status, "assigned"
                )
            self.reservation_repository.update(reservation_id, assigned_admin_id=admin_id)
        self.log_operation("assign_admin", reservation_id=reservation_id, admin_id=admin_id)
        return reservation

    # Queries

    def get(self, reservation_id: str) -> PodcastReservation:
        return self._load(reservation_id)

    def get_by_confirmation_id(self, confirmation_id: str) -> PodcastReservation:
        reservation = self.reservation_repository.get_by_confirmation_id(confirmation_id)
        if reservation is None:
            raise ReservationNotFoundException(confirmation_id)
        return reservation

    def list_reservations(
        self, filters: Union[ReservationFilters, Dict[str, Any], None] = None
    ) -> List[PodcastReservation]:
        """Filtered listing; date filters are local days in the business timezone."""
        filters = self._coerce(ReservationFilters, filters) or ReservationFilters()
        if filters.date_from and filters.date_to and filters.date_from > filters.date_to:
            raise ValidationException(
                "date_from must not be after date_to",
                details={
                    "date_from": filters.date_from.isoformat(),
                    "date_to": filters.date_to.isoformat(),
                },
            )
        return self.reservation_repository.list_reservations(
            status=filters.status,
            date_from=filters.date_from,
            date_to=filters.date_to,
            search=filters.search,
            tz_name=settings.business_timezone,
            skip=filters.skip,
            limit=filters.limit,
        )

    def calendar(
        self,
        date_from: date,
        date_to: date,
        status: ReservationStatus = ReservationStatus.PENDING,
    ) -> List[PodcastReservation]:
        """Pending or confirmed reservations starting within the inclusive day range."""
        status = ReservationStatus(status)
        if status not in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED):
            raise ValidationException(
                "Calendar is available for pending or confirmed reservations",
                details={"status": status.value},
            )
        if date_from > date_to:
            raise ValidationException(
                "date_from must not be after date_to",
                details={"date_from": date_from.isoformat(), "date_to": date_to.isoformat()},
            )
        return self.reservation_repository.find_by_status_in_range(
            status, date_from, date_to, settings.business_timezone
        )

    def status_history(self, reservation_id: str) -> List[ReservationStatusHistory]:
        self._load(reservation_id)
        return self.status_history_repository.list_for_reservation(reservation_id)
