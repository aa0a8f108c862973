"""
Tests for slot generation and conflict detection.
"""

import pytest

from slotbooker.domain.models import TimeRange
from slotbooker.domain.slot_calculator import SlotCalculator, generate_slots, has_conflict


def _starts(ranges):
    return [str(r).split("-")[0] for r in ranges]


class TestGenerateSlots:
    """Tests for generate_slots."""

    def test_hourly_service_in_morning(self):
        open_range = TimeRange.from_strings("09:00", "12:00")

        candidates = generate_slots(open_range, duration_minutes=60)

        assert _starts(candidates) == ["09:00", "09:30", "10:00", "10:30", "11:00"]
        assert all(c.duration_minutes() == 60 for c in candidates)

    def test_last_slot_ends_at_closing_time(self):
        open_range = TimeRange.from_strings("09:00", "10:00")

        candidates = generate_slots(open_range, duration_minutes=30)

        assert [str(c) for c in candidates] == ["09:00-09:30", "09:30-10:00"]

    def test_duration_longer_than_open_interval(self):
        open_range = TimeRange.from_strings("09:00", "10:00")
        assert generate_slots(open_range, duration_minutes=90) == []

    def test_custom_step(self):
        open_range = TimeRange.from_strings("09:00", "10:00")

        candidates = generate_slots(open_range, duration_minutes=30, step_minutes=15)

        assert _starts(candidates) == ["09:00", "09:15", "09:30"]

    def test_restartable(self):
        open_range = TimeRange.from_strings("08:00", "18:00")
        assert generate_slots(open_range, 45) == generate_slots(open_range, 45)

    @pytest.mark.parametrize("open_start, open_end", [(540, 720), (480, 1080), (600, 615), (0, 1440)])
    @pytest.mark.parametrize("duration", [15, 30, 45, 60, 90])
    @pytest.mark.parametrize("step", [10, 30, 60])
    def test_candidate_count(self, open_start, open_end, duration, step):
        open_range = TimeRange(start=open_start, end=open_end)

        candidates = generate_slots(open_range, duration, step)

        if duration > open_end - open_start:
            assert candidates == []
        else:
            assert len(candidates) == (open_end - open_start - duration) // step + 1
            assert all(c.start <= open_end - duration for c in candidates)

    @pytest.mark.parametrize("duration, step", [(0, 30), (-30, 30), (30, 0)])
    def test_invalid_arguments(self, duration, step):
        with pytest.raises(ValueError):
            generate_slots(TimeRange.from_strings("09:00", "12:00"), duration, step)


class TestHasConflict:
    """Tests for has_conflict."""

    def test_no_existing_reservations(self):
        assert not has_conflict(TimeRange.from_strings("09:00", "10:00"), [])

    def test_conflict_with_any_reservation(self):
        existing = [
            TimeRange.from_strings("08:00", "09:00"),
            TimeRange.from_strings("10:30", "11:30"),
        ]
        assert has_conflict(TimeRange.from_strings("10:00", "11:00"), existing)

    def test_back_to_back_is_not_a_conflict(self):
        existing = [
            TimeRange.from_strings("08:00", "09:00"),
            TimeRange.from_strings("10:00", "11:00"),
        ]
        assert not has_conflict(TimeRange.from_strings("09:00", "10:00"), existing)


class TestSlotCalculator:
    """Tests for SlotCalculator."""

    def test_marks_conflicting_slots_unavailable(self):
        calculator = SlotCalculator()

        slots = calculator.find_slots(
            open_range=TimeRange.from_strings("09:00", "12:00"),
            duration_minutes=60,
            busy_ranges=[TimeRange.from_strings("10:00", "11:00")],
        )

        assert [(s.start, s.available) for s in slots] == [
            ("09:00", True),
            ("09:30", False),
            ("10:00", False),
            ("10:30", False),
            ("11:00", True),
        ]

    def test_closed_day_has_no_slots(self):
        calculator = SlotCalculator()
        assert calculator.find_slots(None, 30, []) == []

    def test_step_is_configurable(self):
        calculator = SlotCalculator(step_minutes=60)

        slots = calculator.find_slots(TimeRange.from_strings("09:00", "12:00"), 60, [])

        assert [s.start for s in slots] == ["09:00", "10:00", "11:00"]
        assert all(s.available for s in slots)

    def test_invalid_step(self):
        with pytest.raises(ValueError):
            SlotCalculator(step_minutes=0)

    def test_is_bookable(self):
        calculator = SlotCalculator()
        open_range = TimeRange.from_strings("09:00", "12:00")
        busy = [TimeRange.from_strings("10:00", "11:00")]

        assert calculator.is_bookable(open_range, TimeRange.from_strings("09:00", "10:00"), busy)
        assert not calculator.is_bookable(open_range, TimeRange.from_strings("10:30", "11:30"), busy)
        assert not calculator.is_bookable(open_range, TimeRange.from_strings("11:30", "12:30"), busy)
        assert not calculator.is_bookable(None, TimeRange.from_strings("09:00", "10:00"), [])
