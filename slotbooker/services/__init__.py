"""
Service layer helpers that orchestrate repositories and domain logic.
"""

from .repositories import ReservationRepository, ScheduleRepository, ServiceRepository
from .scheduling import SchedulingService

__all__ = [
    "ReservationRepository",
    "ScheduleRepository",
    "ServiceRepository",
    "SchedulingService",
]
