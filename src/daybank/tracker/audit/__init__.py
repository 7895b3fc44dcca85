"""Audit trail for challenge and deposit changes."""

from .models import AuditLog
from .schemas import AuditAction, AuditEvent, EntityType
from .sinks import (
    AuditSink,
    DatabaseAuditSink,
    LoggingAuditSink,
    NullAuditSink,
    make_audit_sink,
)

__all__ = [
    "AuditLog",
    "AuditAction",
    "AuditEvent",
    "EntityType",
    "AuditSink",
    "DatabaseAuditSink",
    "LoggingAuditSink",
    "NullAuditSink",
    "make_audit_sink",
]
