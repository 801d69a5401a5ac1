"""Tests for drag-and-drop rescheduling."""

from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest
from models.schedule import BlockedSlot
from models.service import total_duration
from scheduling.errors import CompletionRequired, StaleConflict, ValidationError
from scheduling.reschedule import (
    DropCandidate,
    commit_drop,
    pixels_to_minutes,
    resolve_drop,
    validate_drop,
)
from tests.conftest import MONDAY, NOW


def test_pixels_to_minutes():
    assert pixels_to_minutes(120, 60) == 120
    assert pixels_to_minutes(30, 80) == 22.5

    with pytest.raises(ValidationError):
        pixels_to_minutes(30, 0)


class TestResolveDrop:
    """Pointer position to grid-aligned times."""

    def test_snaps_to_nearest_slot(self, make_appointment):
        appointment = make_appointment(1, duration=90)

        candidate = resolve_drop(appointment, 9 * 60 + 14, date(2030, 6, 4))
        assert candidate.start == datetime(2030, 6, 4, 9, 0)
        assert candidate.end == datetime(2030, 6, 4, 10, 30)

        candidate = resolve_drop(appointment, 9 * 60 + 15, date(2030, 6, 4))
        assert candidate.start == datetime(2030, 6, 4, 9, 30)

    def test_clamps_to_the_day(self, make_appointment):
        appointment = make_appointment(1)

        assert resolve_drop(appointment, -50, MONDAY).start == datetime(2030, 6, 3, 0, 0)
        assert resolve_drop(appointment, 2000, MONDAY).start == datetime(2030, 6, 3, 23, 30)


class TestValidateDrop:
    """Conflict detection and the retroactive rule."""

    def test_free_slot(self, make_appointment):
        appointment = make_appointment(1)
        candidate = DropCandidate(datetime(2030, 6, 3, 14, 0), datetime(2030, 6, 3, 15, 0))
        assert validate_drop(appointment, candidate, [], [appointment], now=NOW) == []

    def test_overlap_with_itself_is_ignored(self, make_appointment):
        appointment = make_appointment(1, start='10:00')
        candidate = DropCandidate(datetime(2030, 6, 3, 10, 30), datetime(2030, 6, 3, 11, 30))
        assert validate_drop(appointment, candidate, [], [appointment], now=NOW) == []

    def test_conflict(self, make_appointment):
        moving = make_appointment(1, start='10:00')
        other = make_appointment(2, start='14:00')
        candidate = DropCandidate(datetime(2030, 6, 3, 13, 30), datetime(2030, 6, 3, 14, 30))

        with pytest.raises(StaleConflict) as excinfo:
            validate_drop(moving, candidate, [], [moving, other], now=NOW)
        assert excinfo.value.conflicts == ['14:00']

        overridden = validate_drop(moving, candidate, [], [moving, other], now=NOW, allow_override=True)
        assert overridden == ['14:00']

    def test_blocked_slot(self, make_appointment):
        appointment = make_appointment(1)
        blocked = [BlockedSlot(id=9, date=MONDAY, is_full_day=True)]
        candidate = DropCandidate(datetime(2030, 6, 3, 14, 0), datetime(2030, 6, 3, 15, 0))

        with pytest.raises(StaleConflict):
            validate_drop(appointment, candidate, blocked, [appointment], now=NOW)

    def test_past_drop(self, make_appointment):
        appointment = make_appointment(1)
        candidate = DropCandidate(datetime(2030, 5, 31, 14, 0), datetime(2030, 5, 31, 15, 0))

        with pytest.raises(CompletionRequired):
            validate_drop(appointment, candidate, [], [appointment], now=NOW)

    def test_closed_appointment(self, make_appointment):
        appointment = make_appointment(1, status='completed')
        candidate = DropCandidate(datetime(2030, 6, 3, 14, 0), datetime(2030, 6, 3, 15, 0))

        with pytest.raises(ValidationError):
            validate_drop(appointment, candidate, [], [appointment], now=NOW)


def test_commit_drop(make_appointment):
    appointment = make_appointment(1, status='confirmed')
    candidate = DropCandidate(datetime(2030, 6, 4, 16, 0), datetime(2030, 6, 4, 17, 0))

    event = commit_drop(appointment, candidate, now=NOW)

    assert event.kind == 'updated'
    assert event.appointment.datetime == candidate.start
    assert event.appointment.end_time == candidate.end
    assert event.appointment.status == 'confirmed'
    assert event.appointment.duration_minutes == total_duration(event.appointment.services)


def test_drop_span_comes_from_services(make_appointment):
    """A stored span that disagrees with the services is not carried along."""
    appointment = make_appointment(1, duration=30)
    stretched = replace(appointment, end_time=appointment.datetime + timedelta(minutes=180))

    candidate = resolve_drop(stretched, 14 * 60, MONDAY)
    assert candidate.end == datetime(2030, 6, 3, 14, 30)

    oversized = DropCandidate(datetime(2030, 6, 3, 14, 0), datetime(2030, 6, 3, 17, 0))
    moved = commit_drop(stretched, oversized, now=NOW).appointment
    assert moved.end_time == datetime(2030, 6, 3, 14, 30)
    assert moved.duration_minutes == total_duration(moved.services) == 30
