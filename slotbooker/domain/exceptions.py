"""
Domain-specific exception hierarchy for the booking engine.
"""


class BookingError(Exception):
    """Base class for all application-level errors."""


class NotFoundError(BookingError):
    """Raised when a company, service or reservation does not exist."""


class ConfigurationError(BookingError):
    """Raised when stored schedule data cannot be interpreted."""


class SlotUnavailableError(BookingError):
    """Raised when the requested interval is taken or outside business hours."""


class InvalidStateTransitionError(BookingError):
    """Raised when a reservation status change is not allowed."""
