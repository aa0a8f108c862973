"""
Adapters layer - Storage backends for the booking engine.
"""

from .memory_store import InMemoryBookingStore
from .sql_store import SqlBookingStore

__all__ = ["InMemoryBookingStore", "SqlBookingStore"]
