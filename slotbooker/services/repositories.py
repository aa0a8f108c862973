"""
Repository protocols describing the persistence behaviour the engine needs.

Concrete stores live in ``slotbooker.adapters``; any object matching these
protocols can be injected into ``SchedulingService``.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Protocol

from pendulum import DateTime

from ..domain.models import Reservation, ReservationStatus, Service, TimeRange
from ..domain.schedule import WeeklySchedule


class ServiceRepository(Protocol):
    """Read access to the service catalogue."""

    def get_service(self, service_id: str) -> Service:
        """Return an active service or raise NotFoundError."""


class ScheduleRepository(Protocol):
    """Read access to company opening hours."""

    def get_weekly_schedule(self, company_id: str) -> WeeklySchedule:
        """Return the company's schedule or raise NotFoundError."""


class ReservationRepository(Protocol):
    """Reservation storage with an atomic conflict-checked insert."""

    def list_active_reservations(self, company_id: str, day: date) -> List[TimeRange]:
        """Return the ranges of pending/confirmed reservations for a company and date."""

    def insert_reservation(self, reservation: Reservation) -> Reservation:
        """
        Check for overlapping active reservations and insert as one atomic unit.

        Raises SlotUnavailableError without writing when a conflict exists.
        """

    def get_reservation(self, reservation_id: str) -> Reservation:
        """Return a reservation or raise NotFoundError."""

    def update_reservation_status(
        self,
        reservation_id: str,
        expected: ReservationStatus,
        status: ReservationStatus,
        updated_at: DateTime,
    ) -> Reservation:
        """
        Set a new status if the stored one still equals ``expected``.

        Raises InvalidStateTransitionError if the status changed meanwhile.
        """

    def list_reservations(
        self,
        *,
        client_id: Optional[str] = None,
        company_id: Optional[str] = None,
        status: Optional[ReservationStatus] = None,
    ) -> List[Reservation]:
        """Return matching reservations ordered by date and start time."""
