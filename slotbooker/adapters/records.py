"""
Conversion of plain JSON/YAML records into domain objects.
"""

from decimal import Decimal
from typing import Any, Dict

import pendulum

from ..domain.models import Reservation, ReservationStatus, Service, TimeRange


def service_from_record(record: Dict[str, Any]) -> Service:
    """Build a Service from a plain record."""
    return Service(
        id=record["id"],
        company_id=record["company_id"],
        name=record.get("name", ""),
        duration_minutes=int(record["duration_minutes"]),
        price=Decimal(str(record["price"])),
        active=bool(record.get("active", True)),
    )


def reservation_from_record(record: Dict[str, Any]) -> Reservation:
    """Build a Reservation from a plain record with ``HH:MM`` times."""
    created_at = pendulum.parse(record["created_at"]) if record.get("created_at") else pendulum.now("UTC")
    updated_at = pendulum.parse(record["updated_at"]) if record.get("updated_at") else created_at
    return Reservation(
        id=record["id"],
        client_id=record["client_id"],
        company_id=record["company_id"],
        service_id=record["service_id"],
        date=pendulum.from_format(record["date"], "YYYY-MM-DD").date(),
        time_range=TimeRange.from_strings(record["start_time"], record["end_time"]),
        price=Decimal(str(record.get("price", "0"))),
        status=ReservationStatus(record.get("status", "pending")),
        notes=record.get("notes"),
        created_at=created_at,
        updated_at=updated_at,
    )
