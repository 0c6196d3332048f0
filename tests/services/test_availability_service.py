# tests/services/test_availability_service.py
from datetime import date, time

import pytest

from podcast_studio.core.config import settings
from podcast_studio.core.exceptions import ConfigurationException, ValidationException
from podcast_studio.models import AvailabilitySettings
from podcast_studio.services.availability_service import AvailabilityService

MONDAY = date(2025, 6, 16)
SUNDAY = date(2025, 6, 22)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _week(start="09:00", end="17:00", **overrides):
    hours = {day: {"start": start, "end": end} for day in WEEKDAYS}
    hours.update(overrides)
    return hours


def _starts(slots, available=None):
    return [
        s.start_time.strftime("%H:%M")
        for s in slots
        if available is None or s.available is available
    ]


class TestConfiguration:
    def test_default_config_until_stored(self, availability_service):
        config = availability_service.get_config()
        assert config.slot_duration_min == 60
        assert config.hours_for(MONDAY).start == time(9, 0)
        assert config.hours_for(SUNDAY).is_closed

    def test_replace_is_wholesale(self, availability_service, db):
        availability_service.replace_config(
            {"slot_duration_min": 30, "opening_hours": _week()}, admin_id="admin-1"
        )
        availability_service.replace_config(
            {"slot_duration_min": 60, "opening_hours": _week("10:00", "14:00")}
        )

        config = availability_service.get_config()
        assert config.slot_duration_min == 60
        assert config.hours_for(MONDAY).start == time(10, 0)

        row = db.get(AvailabilitySettings, 1)
        assert row.opening_hours["monday"] == {"start": "10:00", "end": "14:00"}
        assert row.updated_by_admin_id is None

    def test_missing_weekday_rejected(self, availability_service):
        hours = _week()
        del hours["sunday"]
        with pytest.raises(ValidationException) as exc_info:
            availability_service.replace_config({"slot_duration_min": 60, "opening_hours": hours})
        assert exc_info.value.details["missing_weekdays"] == ["sunday"]
        assert availability_service.get_config().slot_duration_min == 60

    @pytest.mark.parametrize(
        "payload",
        [
            {"slot_duration_min": 60, "opening_hours": _week("17:00", "09:00")},
            {"slot_duration_min": 0, "opening_hours": _week()},
            {"slot_duration_min": 60, "opening_hours": _week(funday={"start": "09:00", "end": "10:00"})},
            {"slot_duration_min": 60},
        ],
    )
    def test_malformed_config_rejected(self, availability_service, payload):
        with pytest.raises(ValidationException):
            availability_service.replace_config(payload)

    def test_unparseable_stored_row(self, availability_service, db):
        db.add(AvailabilitySettings(id=1, slot_duration_min=60, opening_hours={"monday": "all day"}))
        db.commit()
        with pytest.raises(ConfigurationException):
            availability_service.get_config()

    @pytest.mark.parametrize(
        "field,value",
        [
            ("default_opening_hours", {"monday": {"start": "17:00", "end": "09:00"}}),
            ("default_opening_hours", {"funday": {"start": "09:00", "end": "17:00"}}),
            ("default_slot_duration_min", 0),
        ],
    )
    def test_invalid_settings_defaults(self, availability_service, monkeypatch, field, value):
        monkeypatch.setattr(settings, field, value)
        with pytest.raises(ConfigurationException) as exc_info:
            availability_service.get_config()
        assert exc_info.value.details["errors"]
        with pytest.raises(ConfigurationException):
            AvailabilityService.default_config()

    def test_stored_row_missing_the_queried_weekday(self, availability_service, db):
        hours = _week()
        del hours["sunday"]
        db.add(AvailabilitySettings(id=1, slot_duration_min=60, opening_hours=hours))
        db.commit()

        assert availability_service.get_available_slots(MONDAY, 60)
        with pytest.raises(ConfigurationException):
            availability_service.get_available_slots(SUNDAY, 60)


class TestAvailableSlots:
    @pytest.fixture(autouse=True)
    def nine_to_five(self, availability_service):
        availability_service.replace_config({"slot_duration_min": 60, "opening_hours": _week()})

    def test_confirmed_booking_blocks_overlapping_slots(
        self, availability_service, lifecycle, make_reservation
    ):
        booked = make_reservation(start=time(10, 0), duration_hours=2)
        lifecycle.confirm(booked.id, "admin")
        make_reservation(start=time(14, 0), duration_hours=1)  # pending, blocks nothing

        slots = availability_service.get_available_slots(MONDAY, 60)
        assert _starts(slots) == [
            "09:00", "10:00", "11:00", "12:00", "13:00", "14:00", "15:00", "16:00",
        ]
        assert _starts(slots, available=False) == ["10:00", "11:00"]

    def test_two_hour_request(self, availability_service, lifecycle, make_reservation):
        booked = make_reservation(start=time(10, 0), duration_hours=2)
        lifecycle.confirm(booked.id, "admin")

        slots = availability_service.get_available_slots(MONDAY, 120)
        assert _starts(slots, available=True) == ["12:00", "13:00", "14:00", "15:00"]
        assert _starts(slots, available=False) == ["09:00", "10:00", "11:00"]

    def test_cancelled_booking_frees_slots(
        self, availability_service, lifecycle, make_reservation
    ):
        booked = make_reservation(start=time(10, 0))
        lifecycle.confirm(booked.id, "admin")
        lifecycle.cancel(booked.id)
        slots = availability_service.get_available_slots(MONDAY, 60)
        assert all(s.available for s in slots)

    def test_bookings_on_other_days_ignored(
        self, availability_service, lifecycle, make_reservation
    ):
        booked = make_reservation(day=date(2025, 6, 17), start=time(10, 0))
        lifecycle.confirm(booked.id, "admin")
        assert all(s.available for s in availability_service.get_available_slots(MONDAY, 60))

    def test_duration_longer_than_opening(self, availability_service):
        assert availability_service.get_available_slots(MONDAY, 540) == []

    def test_duration_must_be_whole_hours(self, availability_service):
        with pytest.raises(ValidationException):
            availability_service.get_available_slots(MONDAY, 90)

    def test_queries_are_measured(self, availability_service):
        availability_service.get_available_slots(MONDAY, 60)
        with pytest.raises(ValidationException):
            availability_service.get_available_slots(MONDAY, 0)

        metrics = availability_service.get_metrics()["get_available_slots"]
        assert metrics["count"] == 2
        assert metrics["failure_count"] == 1
