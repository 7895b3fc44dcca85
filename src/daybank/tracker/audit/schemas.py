"""Pydantic schemas for audit events."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class EntityType(str, Enum):
    """Kind of entity an audit event is about."""

    CHALLENGE = "challenge"
    DEPOSIT = "deposit"


class AuditAction(str, Enum):
    """What happened to the entity."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class AuditEvent(BaseModel):
    """A single auditable change."""

    entity_type: EntityType
    action: AuditAction
    user_id: str
    entity_id: int
    amount: Optional[int] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def name(self) -> str:
        """Event name, e.g. ``deposit_created``."""
        return f"{self.entity_type.value}_{self.action.value}"
