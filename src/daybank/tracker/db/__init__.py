"""Database module for challenge and deposit storage."""

from .models import Base, coerce_id, utc_now_iso
from .sqlite import Database, get_db, open_database, reset_db

__all__ = [
    "Base",
    "coerce_id",
    "utc_now_iso",
    "Database",
    "get_db",
    "open_database",
    "reset_db",
]
