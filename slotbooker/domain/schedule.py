"""
Weekly business hours and their resolution for a calendar date.
"""

from dataclasses import dataclass, field
from datetime import date as date_type
from typing import Any, Dict, Mapping

from .exceptions import ConfigurationError
from .models import TimeRange

# 0=Monday, 6=Sunday (matches date.weekday())
WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

# Day keys used by the marketplace's stored "horario_funcionamento" documents
PORTUGUESE_WEEKDAY_NAMES = ("segunda", "terca", "quarta", "quinta", "sexta", "sabado", "domingo")

CLOSED_MARKERS = frozenset({"closed", "fechado", ""})

_WEEKDAY_KEYS: Dict[str, int] = {
    **{name: index for index, name in enumerate(WEEKDAY_NAMES)},
    **{name: index for index, name in enumerate(PORTUGUESE_WEEKDAY_NAMES)},
    "terça": 1,
    "sábado": 5,
}


def _weekday_index(key: Any) -> int:
    if isinstance(key, bool):
        raise ConfigurationError(f"Invalid weekday key: {key!r}")
    if isinstance(key, int):
        if key in range(7):
            return key
        raise ConfigurationError(f"Weekday index must be between 0 and 6, got {key}")
    if isinstance(key, str):
        normalized = key.strip().lower()
        if normalized.isdigit() and int(normalized) in range(7):
            return int(normalized)
        if normalized in _WEEKDAY_KEYS:
            return _WEEKDAY_KEYS[normalized]
    raise ConfigurationError(f"Unknown weekday key: {key!r}")


@dataclass(frozen=True)
class WeeklySchedule:
    """
    A company's opening hours keyed by weekday index.

    Entries are stored raw and only parsed when a date is resolved, so a
    malformed entry for one day does not affect the others.
    """
    entries: Dict[int, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[Any, Any] | None) -> "WeeklySchedule":
        """
        Build a schedule from a mapping of weekday keys to entries.

        Keys may be English or Portuguese day names or indexes 0-6.

        Raises:
            ConfigurationError: If the mapping or one of its keys is invalid
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigurationError("Weekly schedule must be a mapping of weekday to hours.")

        entries: Dict[int, Any] = {}
        for key, value in data.items():
            index = _weekday_index(key)
            if index in entries:
                raise ConfigurationError(f"Duplicate entry for {WEEKDAY_NAMES[index]}")
            entries[index] = value
        return cls(entries=entries)

    def to_mapping(self) -> Dict[str, Any]:
        """Serialize back to a mapping keyed by English day names."""
        return {WEEKDAY_NAMES[index]: value for index, value in sorted(self.entries.items())}

    def hours_for_weekday(self, weekday: int) -> TimeRange | None:
        """
        Parse the entry for a weekday.
        Returns None if the business is closed that day.
        """
        return parse_hours_entry(self.entries.get(weekday))


def parse_hours_entry(entry: Any) -> TimeRange | None:
    """
    Interpret one day's entry.

    Accepts ``"09:00-18:00"``, ``{"start": "09:00", "end": "18:00"}`` or a
    closed marker (``None``, ``"closed"``, ``"fechado"``, ``{"closed": true}``).

    Raises:
        ConfigurationError: If the entry cannot be parsed
    """
    if entry is None:
        return None

    if isinstance(entry, str):
        text = entry.strip()
        if text.lower() in CLOSED_MARKERS:
            return None
        start, separator, end = text.partition("-")
        if not separator:
            raise ConfigurationError(f"Business hours must look like HH:MM-HH:MM, got {entry!r}")
    elif isinstance(entry, Mapping):
        if entry.get("closed"):
            return None
        start, end = entry.get("start"), entry.get("end")
        if start is None or end is None:
            raise ConfigurationError(f"Business hours need both 'start' and 'end': {dict(entry)!r}")
    else:
        raise ConfigurationError(f"Unsupported business hours entry: {entry!r}")

    try:
        return TimeRange.from_strings(start, end)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid business hours {entry!r}: {exc}") from exc


def resolve_business_hours(schedule: WeeklySchedule, day: date_type) -> TimeRange | None:
    """
    Get the open interval of a business for a specific date.
    Returns None if the business is closed on that weekday.
    """
    return schedule.hours_for_weekday(day.weekday())
