"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    BookingError,
    ConfigurationError,
    InvalidStateTransitionError,
    NotFoundError,
    SlotUnavailableError,
)
from .models import Reservation, ReservationStatus, Service, Slot, TimeRange
from .schedule import WeeklySchedule, resolve_business_hours
from .slot_calculator import SlotCalculator, generate_slots, has_conflict

__all__ = [
    "BookingError",
    "ConfigurationError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "SlotUnavailableError",
    "Reservation",
    "ReservationStatus",
    "Service",
    "Slot",
    "TimeRange",
    "WeeklySchedule",
    "resolve_business_hours",
    "SlotCalculator",
    "generate_slots",
    "has_conflict",
]
