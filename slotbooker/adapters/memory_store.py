"""
In-memory booking store for demos and tests.
"""

import json
import logging
import threading
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from pendulum import DateTime

from ..domain.exceptions import (
    InvalidStateTransitionError,
    NotFoundError,
    SlotUnavailableError,
)
from ..domain.models import Reservation, ReservationStatus, Service, TimeRange
from ..domain.schedule import WeeklySchedule
from ..domain.slot_calculator import has_conflict
from .records import reservation_from_record, service_from_record

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "sample_data.json"


class InMemoryBookingStore:
    """
    Store keeping companies, services and reservations in dictionaries.

    A single lock guards every write, so the conflict check and the insert
    of ``insert_reservation`` happen as one step even across threads.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._schedules: Dict[str, WeeklySchedule] = {}
        self._services: Dict[str, Service] = {}
        self._reservations: Dict[str, Reservation] = {}

    @classmethod
    def from_json(cls, data_file: Path | None = None) -> "InMemoryBookingStore":
        """
        Load companies, services and reservations from a JSON file.

        Args:
            data_file: Path to the data file, defaults to the bundled sample data

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file content is invalid
        """
        path = data_file or DEFAULT_DATA_FILE
        if not path.exists():
            raise FileNotFoundError(f"Data file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid JSON in {path}: {exc}") from exc

        store = cls()
        store.load(data)
        logger.debug(
            "Loaded %d companies, %d services, %d reservations from %s",
            len(store._schedules),
            len(store._services),
            len(store._reservations),
            path,
        )
        return store

    def load(self, data: Dict[str, Any]) -> None:
        """Add the records of a ``companies/services/reservations`` document."""
        if not isinstance(data, dict):
            raise ValueError("Data must contain a mapping at the root level.")

        try:
            for company in data.get("companies", []):
                self.add_company(
                    company["id"],
                    company.get("weekly_schedule"),
                    name=company.get("name", ""),
                )
            for service in data.get("services", []):
                self.add_service(service_from_record(service))
            for record in data.get("reservations", []):
                self.add_reservation(reservation_from_record(record))
        except KeyError as exc:
            raise ValueError(f"Missing field in data file: {exc}") from exc

    def add_company(self, company_id: str, weekly_schedule: Any, name: str = "") -> None:
        """Register a company by its opening hours; the name is not kept."""
        schedule = (
            weekly_schedule
            if isinstance(weekly_schedule, WeeklySchedule)
            else WeeklySchedule.from_mapping(weekly_schedule)
        )
        with self._lock:
            self._schedules[company_id] = schedule

    def add_service(self, service: Service) -> None:
        with self._lock:
            self._services[service.id] = service

    def add_reservation(self, reservation: Reservation) -> None:
        """Store a reservation as-is, without any conflict check (seeding only)."""
        with self._lock:
            self._reservations[reservation.id] = reservation

    def get_service(self, service_id: str) -> Service:
        service = self._services.get(service_id)
        if service is None or not service.active:
            raise NotFoundError(f"Service {service_id} not found")
        return service

    def get_weekly_schedule(self, company_id: str) -> WeeklySchedule:
        schedule = self._schedules.get(company_id)
        if schedule is None:
            raise NotFoundError(f"Company {company_id} not found")
        return schedule

    def list_active_reservations(self, company_id: str, day: date) -> List[TimeRange]:
        with self._lock:
            return self._active_ranges(company_id, day)

    def insert_reservation(self, reservation: Reservation) -> Reservation:
        with self._lock:
            if reservation.company_id not in self._schedules:
                raise NotFoundError(f"Company {reservation.company_id} not found")

            busy = self._active_ranges(reservation.company_id, reservation.date)
            if has_conflict(reservation.time_range, busy):
                raise SlotUnavailableError(
                    f"{reservation.time_range} on {reservation.date.to_date_string()} "
                    f"is already taken"
                )

            self._reservations[reservation.id] = reservation
            return reservation

    def get_reservation(self, reservation_id: str) -> Reservation:
        reservation = self._reservations.get(reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        return reservation

    def update_reservation_status(
        self,
        reservation_id: str,
        expected: ReservationStatus,
        status: ReservationStatus,
        updated_at: DateTime,
    ) -> Reservation:
        with self._lock:
            current = self.get_reservation(reservation_id)
            if current.status != expected:
                raise InvalidStateTransitionError(
                    f"Reservation {reservation_id} is {current.status.value}, "
                    f"expected {expected.value}"
                )
            updated = current.with_status(status, at=updated_at)
            self._reservations[reservation_id] = updated
            return updated

    def list_reservations(
        self,
        *,
        client_id: Optional[str] = None,
        company_id: Optional[str] = None,
        status: Optional[ReservationStatus] = None,
    ) -> List[Reservation]:
        with self._lock:
            matches = [
                r for r in self._reservations.values()
                if (client_id is None or r.client_id == client_id)
                and (company_id is None or r.company_id == company_id)
                and (status is None or r.status == status)
            ]
        return sorted(matches, key=lambda r: (r.date, r.time_range.start))

    def _active_ranges(self, company_id: str, day: date) -> List[TimeRange]:
        return [
            r.time_range for r in self._reservations.values()
            if r.company_id == company_id and r.date == day and r.status.is_active
        ]

