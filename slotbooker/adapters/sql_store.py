"""
SQLAlchemy-backed booking store.

Reservations for one company are written one transaction at a time: every
insert first bumps ``companies.booking_version``, which takes the company
row's write lock, and only then checks for overlapping active reservations.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime
from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from ..domain.exceptions import (
    InvalidStateTransitionError,
    NotFoundError,
    SlotUnavailableError,
)
from ..domain.models import ACTIVE_STATUSES, Reservation, ReservationStatus, Service, TimeRange
from ..domain.schedule import WeeklySchedule
from ..domain.slot_calculator import has_conflict
from .records import reservation_from_record, service_from_record

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class CompanyRow(Base):
    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), default="")
    weekly_schedule: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    booking_version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class ServiceRow(Base):
    __tablename__ = "services"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    company_id: Mapped[str] = mapped_column(ForeignKey("companies.id"), index=True)
    name: Mapped[str] = mapped_column(String(200), default="")
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class ReservationRow(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        Index("ix_reservations_company_date", "company_id", "booking_date"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    client_id: Mapped[str] = mapped_column(String(64), index=True)
    company_id: Mapped[str] = mapped_column(ForeignKey("companies.id"))
    service_id: Mapped[str] = mapped_column(ForeignKey("services.id"))
    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_minute: Mapped[int] = mapped_column(Integer, nullable=False)
    end_minute: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    updated_at: Mapped[datetime] = mapped_column(nullable=False)

    def to_domain(self) -> Reservation:
        return Reservation(
            id=self.id,
            client_id=self.client_id,
            company_id=self.company_id,
            service_id=self.service_id,
            date=pendulum.date(self.booking_date.year, self.booking_date.month, self.booking_date.day),
            time_range=TimeRange(start=self.start_minute, end=self.end_minute),
            price=Decimal(self.price),
            status=ReservationStatus(self.status),
            notes=self.notes,
            created_at=_as_utc(self.created_at),
            updated_at=_as_utc(self.updated_at),
        )


def _as_utc(value: datetime) -> DateTime:
    # Naive values are stored as UTC; SQLite drops the offset.
    if value.tzinfo is None:
        return pendulum.instance(value, tz="UTC")
    return pendulum.instance(value).in_timezone("UTC")


def _plain_date(value: date) -> date:
    return date(value.year, value.month, value.day)


def _to_naive_utc(value: DateTime) -> datetime:
    return value.in_timezone("UTC").naive()


class SqlBookingStore:
    """
    Booking store on any SQLAlchemy-supported database.

    On PostgreSQL the company row update blocks concurrent writers until
    commit; SQLite serializes all writers at the database level.
    """

    def __init__(self, engine: Engine):
        self._engine = engine

    @classmethod
    def from_url(cls, database_url: str) -> "SqlBookingStore":
        return cls(create_engine(database_url))

    def create_schema(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(self._engine)

    def add_company(self, company_id: str, weekly_schedule: Any, name: str = "") -> None:
        """Insert or replace a company and its opening hours."""
        if isinstance(weekly_schedule, WeeklySchedule):
            schedule_data = weekly_schedule.to_mapping()
        else:
            # Validate keys before storing.
            schedule_data = WeeklySchedule.from_mapping(weekly_schedule).to_mapping()

        with Session(self._engine) as session, session.begin():
            row = session.get(CompanyRow, company_id)
            if row is None:
                session.add(CompanyRow(id=company_id, name=name, weekly_schedule=schedule_data))
            else:
                row.name = name
                row.weekly_schedule = schedule_data

    def add_service(self, service: Service) -> None:
        with Session(self._engine) as session, session.begin():
            session.merge(
                ServiceRow(
                    id=service.id,
                    company_id=service.company_id,
                    name=service.name,
                    duration_minutes=service.duration_minutes,
                    price=service.price,
                    active=service.active,
                )
            )

    def add_reservation(self, reservation: Reservation) -> None:
        """Store a reservation as-is, without any conflict check (seeding only)."""
        with Session(self._engine) as session, session.begin():
            session.merge(self._to_row(reservation))

    def load(self, data: Dict[str, Any]) -> None:
        """Add the records of a ``companies/services/reservations`` document."""
        try:
            for company in data.get("companies", []):
                self.add_company(company["id"], company.get("weekly_schedule"), name=company.get("name", ""))
            for record in data.get("services", []):
                self.add_service(service_from_record(record))
            for record in data.get("reservations", []):
                self.add_reservation(reservation_from_record(record))
        except KeyError as exc:
            raise ValueError(f"Missing field in data: {exc}") from exc

    def get_service(self, service_id: str) -> Service:
        with Session(self._engine) as session:
            row = session.get(ServiceRow, service_id)
            if row is None or not row.active:
                raise NotFoundError(f"Service {service_id} not found")
            return Service(
                id=row.id,
                company_id=row.company_id,
                name=row.name,
                duration_minutes=row.duration_minutes,
                price=Decimal(row.price),
                active=row.active,
            )

    def get_weekly_schedule(self, company_id: str) -> WeeklySchedule:
        with Session(self._engine) as session:
            row = session.get(CompanyRow, company_id)
            if row is None:
                raise NotFoundError(f"Company {company_id} not found")
            return WeeklySchedule.from_mapping(row.weekly_schedule)

    def list_active_reservations(self, company_id: str, day: date) -> List[TimeRange]:
        with Session(self._engine) as session:
            return self._active_ranges(session, company_id, day)

    def insert_reservation(self, reservation: Reservation) -> Reservation:
        with Session(self._engine) as session, session.begin():
            locked = session.execute(
                update(CompanyRow)
                .where(CompanyRow.id == reservation.company_id)
                .values(booking_version=CompanyRow.booking_version + 1)
            )
            if locked.rowcount == 0:
                raise NotFoundError(f"Company {reservation.company_id} not found")

            busy = self._active_ranges(session, reservation.company_id, reservation.date)
            if has_conflict(reservation.time_range, busy):
                # Leaving the block with an exception rolls the version bump back.
                raise SlotUnavailableError(
                    f"{reservation.time_range} on {reservation.date.to_date_string()} "
                    f"is already taken"
                )

            session.add(self._to_row(reservation))

        logger.debug("Inserted reservation %s", reservation.id)
        return reservation

    def get_reservation(self, reservation_id: str) -> Reservation:
        with Session(self._engine) as session:
            row = session.get(ReservationRow, reservation_id)
            if row is None:
                raise NotFoundError(f"Reservation {reservation_id} not found")
            return row.to_domain()

    def update_reservation_status(
        self,
        reservation_id: str,
        expected: ReservationStatus,
        status: ReservationStatus,
        updated_at: DateTime,
    ) -> Reservation:
        with Session(self._engine) as session, session.begin():
            result = session.execute(
                update(ReservationRow)
                .where(ReservationRow.id == reservation_id)
                .where(ReservationRow.status == expected.value)
                .values(status=status.value, updated_at=_to_naive_utc(updated_at))
            )
            if result.rowcount == 0:
                row = session.get(ReservationRow, reservation_id)
                if row is None:
                    raise NotFoundError(f"Reservation {reservation_id} not found")
                raise InvalidStateTransitionError(
                    f"Reservation {reservation_id} is {row.status}, expected {expected.value}"
                )

        return self.get_reservation(reservation_id)

    def list_reservations(
        self,
        *,
        client_id: Optional[str] = None,
        company_id: Optional[str] = None,
        status: Optional[ReservationStatus] = None,
    ) -> List[Reservation]:
        query = select(ReservationRow)
        if client_id is not None:
            query = query.where(ReservationRow.client_id == client_id)
        if company_id is not None:
            query = query.where(ReservationRow.company_id == company_id)
        if status is not None:
            query = query.where(ReservationRow.status == status.value)
        query = query.order_by(ReservationRow.booking_date, ReservationRow.start_minute)

        with Session(self._engine) as session:
            return [row.to_domain() for row in session.scalars(query)]

    @staticmethod
    def _active_ranges(session: Session, company_id: str, day: date) -> List[TimeRange]:
        rows = session.execute(
            select(ReservationRow.start_minute, ReservationRow.end_minute)
            .where(ReservationRow.company_id == company_id)
            .where(ReservationRow.booking_date == _plain_date(day))
            .where(ReservationRow.status.in_([s.value for s in ACTIVE_STATUSES]))
            .order_by(ReservationRow.start_minute)
        )
        return [TimeRange(start=start, end=end) for start, end in rows]

    @staticmethod
    def _to_row(reservation: Reservation) -> ReservationRow:
        return ReservationRow(
            id=reservation.id,
            client_id=reservation.client_id,
            company_id=reservation.company_id,
            service_id=reservation.service_id,
            booking_date=_plain_date(reservation.date),
            start_minute=reservation.time_range.start,
            end_minute=reservation.time_range.end,
            status=reservation.status.value,
            price=reservation.price,
            notes=reservation.notes,
            created_at=_to_naive_utc(reservation.created_at),
            updated_at=_to_naive_utc(reservation.updated_at),
        )
