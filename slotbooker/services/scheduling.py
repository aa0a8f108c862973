"""
Application services for availability queries and bookings.

The service coordinates the repositories and delegates the slot arithmetic to
the domain-level ``SlotCalculator``. Repositories are injected, which keeps
the engine free of hidden global clients and lets tests plug in the
in-memory store.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import List, Optional

import pendulum
from pendulum import Date

from ..domain.exceptions import InvalidStateTransitionError, NotFoundError, SlotUnavailableError
from ..domain.models import (
    Reservation,
    ReservationStatus,
    Service,
    Slot,
    TimeRange,
    parse_clock_time,
)
from ..domain.schedule import resolve_business_hours
from ..domain.slot_calculator import SlotCalculator
from .repositories import ReservationRepository, ScheduleRepository, ServiceRepository

logger = logging.getLogger(__name__)


def coerce_date(value: date | str) -> Date:
    """
    Normalize a ``YYYY-MM-DD`` string or a date object to a pendulum Date.

    Raises:
        ValueError: If the string is not a valid date
    """
    if isinstance(value, str):
        try:
            return pendulum.from_format(value.strip(), "YYYY-MM-DD").date()
        except ValueError as exc:
            raise ValueError(f"Date must be in YYYY-MM-DD format, got {value!r}") from exc
    return pendulum.date(value.year, value.month, value.day)


def coerce_status(value: ReservationStatus | str) -> ReservationStatus:
    """Normalize a status value, raising ValueError for unknown names."""
    if isinstance(value, ReservationStatus):
        return value
    try:
        return ReservationStatus(value.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(status.value for status in ReservationStatus)
        raise ValueError(f"Unknown reservation status {value!r}; expected one of: {allowed}") from exc


class SchedulingService:
    """
    Orchestrates availability reads, reservation writes and status changes.

    Every call is an independent unit of work; all state lives in the
    repositories.
    """

    def __init__(
        self,
        services: ServiceRepository,
        schedules: ScheduleRepository,
        reservations: ReservationRepository,
        slot_calculator: SlotCalculator | None = None,
    ) -> None:
        self._services = services
        self._schedules = schedules
        self._reservations = reservations
        self._slot_calculator = slot_calculator or SlotCalculator()

    def get_available_slots(
        self,
        company_id: str,
        day: date | str,
        service_id: str,
    ) -> List[Slot]:
        """
        Compute the slots of a day for a service, flagged with availability.

        A closed day yields an empty list.
        """
        day = coerce_date(day)
        service = self._get_company_service(company_id, service_id)
        schedule = self._schedules.get_weekly_schedule(company_id)

        open_range = resolve_business_hours(schedule, day)
        if open_range is None:
            logger.debug("Company %s is closed on %s", company_id, day)
            return []

        busy_ranges = self._reservations.list_active_reservations(company_id, day)

        slots = self._slot_calculator.find_slots(
            open_range=open_range,
            duration_minutes=service.duration_minutes,
            busy_ranges=busy_ranges,
        )
        logger.debug(
            "Company %s on %s: %d slot(s), %d available",
            company_id,
            day,
            len(slots),
            sum(1 for slot in slots if slot.available),
        )
        return slots

    def create_reservation(
        self,
        client_id: str,
        company_id: str,
        service_id: str,
        day: date | str,
        start_time: str,
        notes: Optional[str] = None,
    ) -> Reservation:
        """
        Book a service for a client, re-validating the slot at write time.

        Raises:
            NotFoundError: If the service is missing, inactive or owned by another company
            SlotUnavailableError: If the interval is outside business hours or taken
            ValueError: If the date or start time cannot be parsed
        """
        day = coerce_date(day)
        service = self._get_company_service(company_id, service_id)
        start = parse_clock_time(start_time)
        try:
            requested = TimeRange.starting_at(start, service.duration_minutes)
        except ValueError as exc:
            raise SlotUnavailableError(f"{start_time} leaves no room for the service: {exc}") from exc

        open_range = resolve_business_hours(self._schedules.get_weekly_schedule(company_id), day)
        busy_ranges = self._reservations.list_active_reservations(company_id, day)
        if not self._slot_calculator.is_bookable(open_range, requested, busy_ranges):
            raise SlotUnavailableError(
                f"{requested} on {day.to_date_string()} is not available at company {company_id}"
            )

        now = pendulum.now("UTC")
        draft = Reservation(
            id=str(uuid.uuid4()),
            client_id=client_id,
            company_id=company_id,
            service_id=service.id,
            date=day,
            time_range=requested,
            price=service.price,
            status=ReservationStatus.PENDING,
            notes=notes or None,
            created_at=now,
            updated_at=now,
        )

        # The store repeats the conflict check under its own lock.
        reservation = self._reservations.insert_reservation(draft)
        logger.info(
            "Reservation %s created for company %s on %s %s",
            reservation.id,
            company_id,
            day,
            requested,
        )
        return reservation

    def update_reservation_status(
        self,
        reservation_id: str,
        new_status: ReservationStatus | str,
    ) -> Reservation:
        """
        Move a reservation forward in its lifecycle.

        Raises:
            NotFoundError: If the reservation does not exist
            InvalidStateTransitionError: If the transition is not allowed
        """
        target = coerce_status(new_status)
        current = self._reservations.get_reservation(reservation_id)

        if not current.status.can_transition_to(target):
            raise InvalidStateTransitionError(
                f"Reservation {reservation_id} cannot move from "
                f"{current.status.value} to {target.value}"
            )

        updated = self._reservations.update_reservation_status(
            reservation_id,
            expected=current.status,
            status=target,
            updated_at=pendulum.now("UTC"),
        )
        logger.info(
            "Reservation %s: %s -> %s", reservation_id, current.status.value, target.value
        )
        return updated

    def list_client_reservations(
        self,
        client_id: str,
        status: ReservationStatus | str | None = None,
    ) -> List[Reservation]:
        """All reservations of a client, ordered by date and start time."""
        return self._reservations.list_reservations(
            client_id=client_id,
            status=coerce_status(status) if status is not None else None,
        )

    def list_company_reservations(
        self,
        company_id: str,
        status: ReservationStatus | str | None = None,
    ) -> List[Reservation]:
        """All reservations of a company, optionally filtered by status."""
        return self._reservations.list_reservations(
            company_id=company_id,
            status=coerce_status(status) if status is not None else None,
        )

    def _get_company_service(self, company_id: str, service_id: str) -> Service:
        service = self._services.get_service(service_id)
        if service.company_id != company_id:
            raise NotFoundError(f"Service {service_id} not found for company {company_id}")
        return service
