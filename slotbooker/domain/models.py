"""
Domain models for time ranges, services and reservations.

Times of day are kept as integer minutes since midnight; a business day never
crosses midnight, so every range lives inside ``[0, 1440]``.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, Optional

import pendulum
from pendulum import Date, DateTime

MINUTES_PER_DAY = 24 * 60


def parse_clock_time(value: str) -> int:
    """
    Parse an ``HH:MM`` string into minutes since midnight.

    ``24:00`` is accepted as the end of the day.

    Raises:
        ValueError: If the string is not a valid time of day
    """
    if not isinstance(value, str):
        raise ValueError(f"Time must be a string in HH:MM format, got {value!r}")

    parts = value.strip().split(":")
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        raise ValueError(f"Time must be in HH:MM format, got {value!r}")

    hour, minute = int(parts[0]), int(parts[1])
    if not 0 <= minute <= 59 or not 0 <= hour <= 24 or (hour == 24 and minute):
        raise ValueError(f"Time out of range: {value!r}")

    return hour * 60 + minute


def format_clock_time(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    hour, minute = divmod(minutes, 60)
    return f"{hour:02d}:{minute:02d}"


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time-of-day range ``[start, end)``.

    Invariant: start must be before end, both within one day.
    """
    start: int
    end: int

    def __post_init__(self):
        if not 0 <= self.start < self.end <= MINUTES_PER_DAY:
            raise ValueError(
                f"Start time {format_clock_time(self.start)} must be before "
                f"end time {format_clock_time(self.end)} within one day"
            )

    @classmethod
    def from_strings(cls, start: str, end: str) -> "TimeRange":
        """Build a range from two ``HH:MM`` strings."""
        return cls(start=parse_clock_time(start), end=parse_clock_time(end))

    @classmethod
    def starting_at(cls, start: int, duration_minutes: int) -> "TimeRange":
        """Build a range of the given length beginning at ``start``."""
        return cls(start=start, end=start + duration_minutes)

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end - self.start

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching ranges do not."""
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeRange") -> bool:
        """Check if ``other`` lies completely inside this range."""
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{format_clock_time(self.start)}-{format_clock_time(self.end)}"


@dataclass(frozen=True)
class Service:
    """A bookable service offered by a company."""
    id: str
    company_id: str
    duration_minutes: int
    price: Decimal
    name: str = ""
    active: bool = True

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise ValueError(f"Service duration must be positive, got {self.duration_minutes}")
        if self.price < 0:
            raise ValueError(f"Service price must not be negative, got {self.price}")


class ReservationStatus(str, Enum):
    """Lifecycle states of a reservation."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @property
    def is_active(self) -> bool:
        """Active reservations count against availability."""
        return self in ACTIVE_STATUSES

    def can_transition_to(self, target: "ReservationStatus") -> bool:
        return target in ALLOWED_TRANSITIONS[self]


ACTIVE_STATUSES: FrozenSet[ReservationStatus] = frozenset(
    {ReservationStatus.PENDING, ReservationStatus.CONFIRMED}
)

ALLOWED_TRANSITIONS: Dict[ReservationStatus, FrozenSet[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.COMPLETED}),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.COMPLETED: frozenset(),
}


@dataclass(frozen=True)
class Reservation:
    """
    A client's booking of a company service on a given date.

    Everything except status and ``updated_at`` is fixed at creation time.
    """
    id: str
    client_id: str
    company_id: str
    service_id: str
    date: Date
    time_range: TimeRange
    price: Decimal
    status: ReservationStatus = ReservationStatus.PENDING
    notes: Optional[str] = None
    created_at: DateTime = field(default_factory=lambda: pendulum.now("UTC"))
    updated_at: DateTime = field(default_factory=lambda: pendulum.now("UTC"))

    @property
    def start_time(self) -> str:
        return format_clock_time(self.time_range.start)

    @property
    def end_time(self) -> str:
        return format_clock_time(self.time_range.end)

    def with_status(self, status: ReservationStatus, at: DateTime | None = None) -> "Reservation":
        """Return a copy carrying a new status and update timestamp."""
        return replace(self, status=status, updated_at=at or pendulum.now("UTC"))

    def to_dict(self) -> Dict[str, object]:
        """JSON-friendly representation."""
        return {
            "id": self.id,
            "client_id": self.client_id,
            "company_id": self.company_id,
            "service_id": self.service_id,
            "date": self.date.to_date_string(),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "status": self.status.value,
            "price": str(self.price),
            "notes": self.notes,
            "created_at": self.created_at.to_iso8601_string(),
            "updated_at": self.updated_at.to_iso8601_string(),
        }

    def format_display(self) -> str:
        """
        Format the reservation for display.
        Format: DD.MM.YYYY | HH:MM – HH:MM (status)
        """
        date_str = self.date.format("DD.MM.YYYY")
        return f"{date_str} | {self.start_time} – {self.end_time} ({self.status.value})"


@dataclass(frozen=True)
class Slot:
    """A candidate start time with its computed end and availability flag."""
    time_range: TimeRange
    available: bool

    @property
    def start(self) -> str:
        return format_clock_time(self.time_range.start)

    @property
    def end(self) -> str:
        return format_clock_time(self.time_range.end)

    def to_dict(self) -> Dict[str, object]:
        return {"start": self.start, "end": self.end, "available": self.available}
