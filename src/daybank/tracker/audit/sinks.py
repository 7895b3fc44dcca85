"""Audit sinks.

Sinks are fire-and-forget: ``record`` never raises. A failing sink logs the
problem and the audited operation carries on unaffected.
"""

import logging
from typing import Optional

from sqlalchemy import select

from ..db.sqlite import Database
from .models import AuditLog
from .schemas import AuditEvent

logger = logging.getLogger(__name__)


class AuditSink:
    """Base class for audit sinks."""

    def record(self, event: AuditEvent) -> None:
        """Deliver an event, swallowing any failure."""
        try:
            self.write(event)
        except Exception:
            logger.exception(
                "Failed to record audit event %s for %s",
                event.name,
                event.user_id,
            )

    def write(self, event: AuditEvent) -> None:
        """Deliver an event. Subclasses may raise; ``record`` contains it."""
        raise NotImplementedError


class NullAuditSink(AuditSink):
    """Discards every event."""

    def write(self, event: AuditEvent) -> None:
        pass


class LoggingAuditSink(AuditSink):
    """Writes events as structured log lines."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logging.getLogger("daybank.audit")

    def write(self, event: AuditEvent) -> None:
        self.log.info(
            "Audit log: %s user=%s entity=%s amount=%s metadata=%s",
            event.name,
            event.user_id,
            event.entity_id,
            event.amount,
            event.metadata,
        )


class DatabaseAuditSink(LoggingAuditSink):
    """Persists events to ``audit_logs`` and also logs them.

    Uses its own session so a failed audit write cannot roll back the
    audited change.
    """

    def __init__(self, db: Database, log: Optional[logging.Logger] = None):
        super().__init__(log)
        self.db = db

    def write(self, event: AuditEvent) -> None:
        with self.db.get_session() as session:
            entry = AuditLog(
                user_id=event.user_id,
                entity_type=event.entity_type.value,
                entity_id=event.entity_id,
                action=event.action.value,
                amount=event.amount,
                created_at=event.occurred_at.isoformat(),
            )
            entry.set_details(event.metadata)
            session.add(entry)
        super().write(event)

    def history(self, user_id: str, limit: int = 50) -> list[AuditLog]:
        """Most recent audit entries of a user."""
        with self.db.get_session() as session:
            stmt = (
                select(AuditLog)
                .where(AuditLog.user_id == user_id)
                .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
                .limit(limit)
            )
            entries = session.execute(stmt).scalars().all()
            for entry in entries:
                session.expunge(entry)
            return list(entries)


def make_audit_sink(mode: str, db: Optional[Database] = None) -> AuditSink:
    """Build the sink selected by ``DAYBANK_AUDIT`` (``none``, ``log``, ``db``)."""
    if mode == "none":
        return NullAuditSink()
    if mode == "db":
        if db is None:
            raise ValueError("Database audit sink needs a database")
        return DatabaseAuditSink(db)
    return LoggingAuditSink()
