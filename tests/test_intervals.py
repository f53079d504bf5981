"""
Tests for time-of-day interval arithmetic.
"""

from datetime import time

import pendulum
import pytest

from barberslots.domain.intervals import at_time, covers, enumerate_slots, overlaps

MONDAY = pendulum.date(2024, 11, 25)


def _labels(slots):
    return [slot.format("HH:mm") for slot in slots]


class TestEnumerateSlots:
    """Tests for candidate start generation."""

    def test_steps_through_window(self):
        slots = enumerate_slots(MONDAY, time(9, 0), time(11, 0), 30, 30)

        assert _labels(slots) == ["09:00", "09:30", "10:00", "10:30"]

    def test_service_must_fit_before_close(self):
        """With a 45 minute service the 17:30 start would end after 18:00."""
        slots = _labels(enumerate_slots(MONDAY, time(9, 0), time(18, 0), 30, 45))

        assert slots[0] == "09:00"
        assert slots[-1] == "17:00"
        assert "17:30" not in slots

    def test_last_start_ends_exactly_at_close(self):
        slots = _labels(enumerate_slots(MONDAY, time(9, 0), time(18, 0), 15, 45))

        assert slots[-1] == "17:15"

    def test_window_shorter_than_service(self):
        assert enumerate_slots(MONDAY, time(9, 0), time(9, 30), 30, 45) == []

    def test_sequence_is_restartable(self):
        """Every call yields a fresh, identical list."""
        first = enumerate_slots(MONDAY, time(9, 0), time(12, 0), 30, 60)
        second = enumerate_slots(MONDAY, time(9, 0), time(12, 0), 30, 60)
        first.clear()

        assert _labels(second) == ["09:00", "09:30", "10:00", "10:30", "11:00"]
        assert _labels(enumerate_slots(MONDAY, time(9, 0), time(12, 0), 30, 60)) == _labels(second)

    def test_slots_fall_on_the_given_day(self):
        slots = enumerate_slots(MONDAY, time(9, 0), time(10, 0), 30, 30)

        assert all(slot.date() == MONDAY for slot in slots)

    @pytest.mark.parametrize("step, duration", [(0, 30), (30, 0), (-15, 30)])
    def test_non_positive_arguments(self, step, duration):
        with pytest.raises(ValueError):
            enumerate_slots(MONDAY, time(9, 0), time(10, 0), step, duration)


class TestOverlaps:
    """Tests for the strict overlap test."""

    def test_touching_intervals_do_not_overlap(self):
        """A booking ending at 10:00 leaves a 10:00 slot free."""
        booking = at_time(MONDAY, time(9, 0))
        slot = at_time(MONDAY, time(10, 0))

        assert not overlaps(slot, 30, booking, 60)
        assert not overlaps(booking, 60, slot, 30)

    def test_partial_overlap(self):
        a = at_time(MONDAY, time(9, 45))
        b = at_time(MONDAY, time(10, 0))

        assert overlaps(a, 30, b, 45)
        assert overlaps(b, 45, a, 30)

    def test_contained_interval(self):
        outer = at_time(MONDAY, time(9, 0))
        inner = at_time(MONDAY, time(10, 0))

        assert overlaps(outer, 180, inner, 15)

    def test_disjoint_intervals(self):
        assert not overlaps(at_time(MONDAY, time(9, 0)), 30, at_time(MONDAY, time(11, 0)), 30)


class TestCovers:
    """Tests for window coverage."""

    def test_covers_inside_and_at_edges(self):
        start = at_time(MONDAY, time(9, 0))
        end = at_time(MONDAY, time(12, 0))

        assert covers(start, end, at_time(MONDAY, time(9, 0)), 30)
        assert covers(start, end, at_time(MONDAY, time(11, 30)), 30)
        assert not covers(start, end, at_time(MONDAY, time(11, 45)), 30)
        assert not covers(start, end, at_time(MONDAY, time(8, 45)), 30)
