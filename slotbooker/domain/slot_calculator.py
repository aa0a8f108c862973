"""
Core business logic for calculating bookable time slots.

Pure domain logic without any external dependencies (no database, no I/O).
"""

from typing import Iterable, List

from .models import Slot, TimeRange

DEFAULT_STEP_MINUTES = 30


def generate_slots(
    open_range: TimeRange,
    duration_minutes: int,
    step_minutes: int = DEFAULT_STEP_MINUTES,
) -> List[TimeRange]:
    """
    Produce the candidate appointment ranges inside an open interval.

    Candidates start at ``open_range.start`` and advance by ``step_minutes``
    as long as the whole service still fits before closing time.

    Example:
    Open: 09:00 - 12:00, duration 60, step 30
    Result: [09:00-10:00, 09:30-10:30, 10:00-11:00, 10:30-11:30, 11:00-12:00]
    """
    if duration_minutes <= 0:
        raise ValueError(f"Duration must be positive, got {duration_minutes}")
    if step_minutes <= 0:
        raise ValueError(f"Step must be positive, got {step_minutes}")

    candidates: List[TimeRange] = []
    start = open_range.start

    while start + duration_minutes <= open_range.end:
        candidates.append(TimeRange.starting_at(start, duration_minutes))
        start += step_minutes

    return candidates


def has_conflict(candidate: TimeRange, existing: Iterable[TimeRange]) -> bool:
    """Check if the candidate overlaps any of the existing ranges."""
    return any(candidate.overlaps(busy) for busy in existing)


class SlotCalculator:
    """
    Calculates the slots of one business day and their availability.

    Algorithm:
    1. Generate candidate ranges on a fixed step inside the open interval
    2. Mark every candidate that overlaps an active reservation as unavailable
    3. Keep chronological order
    """

    def __init__(self, step_minutes: int = DEFAULT_STEP_MINUTES):
        if step_minutes <= 0:
            raise ValueError(f"Step must be positive, got {step_minutes}")
        self.step_minutes = step_minutes

    def find_slots(
        self,
        open_range: TimeRange | None,
        duration_minutes: int,
        busy_ranges: Iterable[TimeRange],
    ) -> List[Slot]:
        """
        Find all slots for a day.

        Args:
            open_range: Business hours of the day, None when closed
            duration_minutes: Length of the requested service
            busy_ranges: Ranges of the day's active reservations

        Returns:
            List of Slot objects in chronological order
        """
        if open_range is None:
            return []

        busy = sorted(busy_ranges, key=lambda r: r.start)

        return [
            Slot(time_range=candidate, available=not has_conflict(candidate, busy))
            for candidate in generate_slots(open_range, duration_minutes, self.step_minutes)
        ]

    def is_bookable(
        self,
        open_range: TimeRange | None,
        requested: TimeRange,
        busy_ranges: Iterable[TimeRange],
    ) -> bool:
        """Check a requested range against business hours and active reservations."""
        if open_range is None or not open_range.contains(requested):
            return False
        return not has_conflict(requested, busy_ranges)
