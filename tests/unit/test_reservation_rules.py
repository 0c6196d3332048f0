# tests/unit/test_reservation_rules.py
"""Unit tests for the shared scheduling rules."""

from datetime import date, datetime, time, timedelta, timezone

import pytest
import pytz

from podcast_studio.core.exceptions import InvalidStateTransitionException, ValidationException
from podcast_studio.models.reservation import ReservationStatus, TERMINAL_STATUSES
from podcast_studio.services.reservation_rules import (
    ALLOWED_TRANSITIONS,
    can_transition,
    compute_end_at,
    duration_hours_between,
    ensure_transition,
    format_confirmation_id,
    intervals_overlap,
    is_hour_boundary,
    localize_wall_clock,
    parse_wall_clock,
    resolve_zone,
    validate_duration_hours,
    validate_duration_minutes,
    validate_theme_choice,
)

PARIS = pytz.timezone("Europe/Paris")


def _utc(hour: int, minute: int = 0, day: int = 16) -> datetime:
    return datetime(2025, 6, day, hour, minute, tzinfo=timezone.utc)


class TestDurations:
    @pytest.mark.parametrize("hours", [1, 2, 3, 8, 24])
    def test_whole_hours_accepted(self, hours):
        assert validate_duration_hours(hours) == hours

    @pytest.mark.parametrize("bad", [0, -1, 1.5, "2", True, None])
    def test_non_whole_hours_rejected(self, bad):
        with pytest.raises(ValidationException) as exc_info:
            validate_duration_hours(bad)
        assert exc_info.value.code == "VALIDATION_ERROR"

    @pytest.mark.parametrize("minutes,hours", [(60, 1), (120, 2), (480, 8)])
    def test_minutes_convert_to_hours(self, minutes, hours):
        assert validate_duration_minutes(minutes) == hours

    @pytest.mark.parametrize("minutes", [0, -60, 30, 90, 61])
    def test_minutes_must_be_positive_multiple_of_60(self, minutes):
        with pytest.raises(ValidationException):
            validate_duration_minutes(minutes)

    def test_duration_between_instants(self):
        assert duration_hours_between(_utc(10), _utc(13)) == 3

    @pytest.mark.parametrize(
        "start,end",
        [(_utc(10), _utc(10)), (_utc(10), _utc(9)), (_utc(10), _utc(11, 30))],
    )
    def test_duration_between_rejects_partial_or_negative(self, start, end):
        with pytest.raises(ValidationException):
            duration_hours_between(start, end)


class TestEndAt:
    @pytest.mark.parametrize("hours", [1, 2, 5, 12])
    def test_end_minus_duration_returns_start(self, hours):
        start = PARIS.localize(datetime(2025, 6, 16, 9, 0))
        end = compute_end_at(start, hours)
        assert end - timedelta(hours=hours) == start
        assert end - start == timedelta(hours=hours)

    def test_dst_change_keeps_exact_length(self):
        # Europe/Paris springs forward at 02:00 on 2025-03-30.
        start = PARIS.localize(datetime(2025, 3, 30, 1, 0))
        end = compute_end_at(start, 2)
        assert end - start == timedelta(hours=2)
        assert end.hour == 4
        assert end.utcoffset() == timedelta(hours=2)

    def test_start_off_the_hour_rejected(self):
        with pytest.raises(ValidationException):
            compute_end_at(_utc(10, 30), 1)

    def test_naive_start_rejected(self):
        with pytest.raises(ValidationException):
            compute_end_at(datetime(2025, 6, 16, 10), 1)

    def test_hour_boundary(self):
        assert is_hour_boundary(_utc(10))
        assert not is_hour_boundary(_utc(10, 1))
        assert not is_hour_boundary(_utc(10).replace(second=5))
        assert not is_hour_boundary(_utc(10).replace(microsecond=1))


class TestOverlap:
    def test_back_to_back_windows_do_not_overlap(self):
        assert not intervals_overlap(_utc(10), _utc(12), _utc(12), _utc(13))
        assert not intervals_overlap(_utc(12), _utc(13), _utc(10), _utc(12))

    @pytest.mark.parametrize(
        "second",
        [
            (_utc(11), _utc(13)),  # straddles end
            (_utc(9), _utc(11)),  # straddles start
            (_utc(10), _utc(12)),  # identical
            (_utc(10), _utc(11)),  # contained
            (_utc(8), _utc(14)),  # contains
        ],
    )
    def test_overlapping_windows(self, second):
        assert intervals_overlap(_utc(10), _utc(12), *second)

    def test_disjoint_windows(self):
        assert not intervals_overlap(_utc(8), _utc(9), _utc(10), _utc(12))


class TestConfirmationCode:
    def test_zero_padded_to_four_digits(self):
        assert format_confirmation_id(2025, 7) == "CONF-2025-0007"
        assert format_confirmation_id(2025, 1) == "CONF-2025-0001"

    def test_large_sequences_are_not_truncated(self):
        assert format_confirmation_id(2025, 9999) == "CONF-2025-9999"
        assert format_confirmation_id(2025, 12345) == "CONF-2025-12345"

    def test_custom_prefix(self):
        assert format_confirmation_id(2026, 3, prefix="POD") == "POD-2026-0003"

    def test_sequence_must_be_positive(self):
        with pytest.raises(ValueError):
            format_confirmation_id(2025, 0)


class TestWallClock:
    def test_parse(self):
        assert parse_wall_clock("09:30") == time(9, 30)
        assert parse_wall_clock(" 18:00 ") == time(18, 0)

    @pytest.mark.parametrize("bad", ["9h", "25:00", "", "09:00:00"])
    def test_parse_rejects_bad_format(self, bad):
        with pytest.raises(ValidationException):
            parse_wall_clock(bad)

    def test_localize_in_zone(self):
        moment = localize_wall_clock(date(2025, 6, 16), time(10, 0), "Europe/Paris")
        assert moment.astimezone(timezone.utc) == _utc(8)

    def test_localize_rejects_skipped_time(self):
        with pytest.raises(ValidationException):
            localize_wall_clock(date(2025, 3, 30), time(2, 30), "Europe/Paris")

    def test_localize_rejects_unknown_zone(self):
        with pytest.raises(ValidationException):
            localize_wall_clock(date(2025, 6, 16), time(10, 0), "Mars/Olympus")

    def test_resolve_zone(self):
        assert resolve_zone("Europe/Paris").zone == "Europe/Paris"
        with pytest.raises(ValidationException) as exc_info:
            resolve_zone("Mars/Olympus")
        assert exc_info.value.details == {"timezone": "Mars/Olympus"}


class TestThemeChoice:
    def test_exactly_one_theme(self):
        validate_theme_choice("theme-id", None)
        validate_theme_choice(None, "Our own topic")

    @pytest.mark.parametrize("theme_id,custom", [(None, None), ("t", "custom"), (None, "   ")])
    def test_none_or_both_rejected(self, theme_id, custom):
        with pytest.raises(ValidationException):
            validate_theme_choice(theme_id, custom)


class TestTransitions:
    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(ReservationStatus)

    def test_terminal_statuses_have_no_exit(self):
        for status in TERMINAL_STATUSES:
            assert ALLOWED_TRANSITIONS[status] == frozenset()
            assert status.is_terminal

    @pytest.mark.parametrize(
        "current,target",
        [
            (ReservationStatus.PENDING, ReservationStatus.CONFIRMED),
            (ReservationStatus.PENDING, ReservationStatus.REJECTED),
            (ReservationStatus.PENDING, ReservationStatus.CANCELLED),
            (ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED),
            (ReservationStatus.CONFIRMED, ReservationStatus.COMPLETED),
        ],
    )
    def test_legal_moves(self, current, target):
        assert can_transition(current, target)
        ensure_transition(current, target, "r1")

    @pytest.mark.parametrize(
        "current,target",
        [
            (ReservationStatus.PENDING, ReservationStatus.COMPLETED),
            (ReservationStatus.CONFIRMED, ReservationStatus.REJECTED),
            (ReservationStatus.CONFIRMED, ReservationStatus.CONFIRMED),
            (ReservationStatus.COMPLETED, ReservationStatus.CANCELLED),
            (ReservationStatus.CANCELLED, ReservationStatus.CONFIRMED),
            (ReservationStatus.REJECTED, ReservationStatus.PENDING),
        ],
    )
    def test_illegal_moves(self, current, target):
        with pytest.raises(InvalidStateTransitionException) as exc_info:
            ensure_transition(current, target, "r1")
        assert exc_info.value.details == {
            "reservation_id": "r1",
            "current_status": current.value,
            "target_status": target.value,
        }
