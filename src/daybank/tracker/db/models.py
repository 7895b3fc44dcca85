"""Declarative base shared by all daybank tables.

Tables (defined in their feature packages):
- challenges: one 200-day savings challenge per row
- deposits: one funded day per row, unique per (challenge_id, day_number)
- audit_logs: audit trail of challenge/deposit changes
"""

from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase

from ..errors import NotFoundError


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def utc_now_iso() -> str:
    """Current UTC instant as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def coerce_id(value, label: str = "ID") -> int:
    """Turn an int or decimal string into a row id.

    Raises:
        NotFoundError: If the value cannot name a row
    """
    if isinstance(value, bool):
        raise NotFoundError(f"Invalid {label}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise NotFoundError(f"Invalid {label}")
