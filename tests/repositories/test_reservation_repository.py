# tests/repositories/test_reservation_repository.py
"""Query tests for ReservationRepository against SQLite."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from podcast_studio.models import PodcastReservation, ReservationStatus
from podcast_studio.repositories.reservation_repository import ReservationRepository

DAY = date(2025, 6, 16)  # Europe/Paris is UTC+2


def _utc(hour: int, day: int = 16) -> datetime:
    return datetime(2025, 6, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def repository(db):
    return ReservationRepository(db)


@pytest.fixture
def add_reservation(db, catalog):
    def _add(start_hour, hours=1, status=ReservationStatus.CONFIRMED, day=16, **extra):
        reservation = PodcastReservation(
            status=status.value,
            start_at=_utc(start_hour, day),
            end_at=_utc(start_hour, day) + timedelta(hours=hours),
            duration_hours=hours,
            timezone="Europe/Paris",
            pack_offer_id=catalog.short_pack.id,
            customer_name=extra.pop("customer_name", "Grace Hopper"),
            customer_email=extra.pop("customer_email", "grace@example.com"),
            total_price=Decimal("80.00"),
            **extra,
        )
        db.add(reservation)
        db.commit()
        return reservation

    return _add


class TestConfirmedQueries:
    def test_only_confirmed_rows_overlap(self, repository, add_reservation):
        confirmed = add_reservation(8, 2)
        add_reservation(8, 2, status=ReservationStatus.PENDING)
        add_reservation(8, 2, status=ReservationStatus.CANCELLED)

        found = repository.find_confirmed_overlapping(_utc(9), _utc(10))
        assert [r.id for r in found] == [confirmed.id]

    def test_half_open_bounds(self, repository, add_reservation):
        add_reservation(8, 2)  # [08:00, 10:00) UTC
        assert repository.find_confirmed_overlapping(_utc(10), _utc(11)) == []
        assert repository.find_confirmed_overlapping(_utc(7), _utc(8)) == []
        assert len(repository.find_confirmed_overlapping(_utc(9), _utc(11))) == 1

    def test_exclude_reservation(self, repository, add_reservation):
        confirmed = add_reservation(8, 2)
        assert repository.find_confirmed_overlapping(
            _utc(8), _utc(10), exclude_reservation_id=confirmed.id
        ) == []

    def test_by_local_day(self, repository, add_reservation):
        # 23:00 UTC on the 15th is 01:00 on the 16th in Paris.
        early = add_reservation(23, 1, day=15)
        morning = add_reservation(8, 1)
        add_reservation(22, 1)  # 00:00 on the 17th in Paris

        found = repository.find_confirmed_by_date(DAY, "Europe/Paris")
        assert [r.id for r in found] == [early.id, morning.id]

    def test_by_date_range(self, repository, add_reservation):
        first = add_reservation(8, 1, day=16)
        second = add_reservation(8, 1, day=18)
        add_reservation(8, 1, day=20)

        found = repository.find_confirmed_by_date_range(
            date(2025, 6, 16), date(2025, 6, 18), "Europe/Paris"
        )
        assert [r.id for r in found] == [first.id, second.id]


class TestListing:
    def test_calendar_by_status(self, repository, add_reservation):
        pending = add_reservation(9, 1, status=ReservationStatus.PENDING)
        add_reservation(11, 1)
        found = repository.find_by_status_in_range(
            ReservationStatus.PENDING, DAY, DAY, "Europe/Paris"
        )
        assert [r.id for r in found] == [pending.id]

    def test_search_matches_name_email_and_code(self, repository, add_reservation):
        add_reservation(8, 1, customer_name="Alan Turing", customer_email="alan@example.com")
        coded = add_reservation(10, 1, confirmation_id="CONF-2025-0042")

        assert [r.customer_name for r in repository.list_reservations(search="turing")] == [
            "Alan Turing"
        ]
        assert len(repository.list_reservations(search="ALAN@")) == 1
        assert [r.id for r in repository.list_reservations(search="0042")] == [coded.id]

    def test_filters_and_pagination(self, repository, add_reservation):
        add_reservation(8, 1)
        add_reservation(10, 1, status=ReservationStatus.PENDING)
        add_reservation(12, 1)
        add_reservation(8, 1, day=20)

        confirmed = repository.list_reservations(status=ReservationStatus.CONFIRMED)
        assert len(confirmed) == 3
        assert repository.count(status=ReservationStatus.PENDING.value) == 1
        assert [r.start_at for r in confirmed] == sorted(r.start_at for r in confirmed)

        same_day = repository.list_reservations(
            date_from=DAY, date_to=DAY, tz_name="Europe/Paris"
        )
        assert len(same_day) == 3

        page = repository.list_reservations(skip=1, limit=2)
        assert len(page) == 2
        assert page[0].start_at == _utc(10)


class TestStatusWrites:
    def test_conditional_transition(self, repository, add_reservation, db):
        pending = add_reservation(8, 1, status=ReservationStatus.PENDING)

        assert repository.transition_status(
            pending.id,
            ReservationStatus.PENDING,
            ReservationStatus.CONFIRMED,
            confirmation_id="CONF-2025-0001",
        )
        db.commit()
        assert pending.status == ReservationStatus.CONFIRMED.value
        assert pending.confirmation_id == "CONF-2025-0001"

        assert not repository.transition_status(
            pending.id, ReservationStatus.PENDING, ReservationStatus.REJECTED
        )
        assert repository.get_by_confirmation_id("CONF-2025-0001").id == pending.id

    def test_lock_room_opens_write_transaction_on_sqlite(self, repository, db):
        repository.lock_room()
        assert db.in_transaction()
        assert db.connection().connection.dbapi_connection.in_transaction
        db.rollback()

    def test_datetimes_come_back_aware(self, repository, add_reservation, db):
        created = add_reservation(8, 1)
        db.expire_all()
        loaded = repository.get_by_id(created.id)
        assert loaded.start_at.tzinfo is not None
        assert loaded.start_at == _utc(8)
