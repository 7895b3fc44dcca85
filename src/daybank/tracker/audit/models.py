"""SQLAlchemy model for the audit trail.

Tables:
- audit_logs: one row per audited challenge/deposit change
"""

import json
from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, utc_now_iso


class AuditLog(Base):
    """Audit log entry."""

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)  # challenge, deposit
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)  # created, updated, deleted
    amount: Mapped[Optional[int]] = mapped_column(Integer)
    details: Mapped[Optional[str]] = mapped_column(Text)  # JSON

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso, index=True)

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, {self.entity_type}/{self.entity_id} {self.action})>"

    def get_details(self) -> dict:
        """Get details as dict."""
        if self.details:
            return json.loads(self.details)
        return {}

    def set_details(self, details: dict) -> None:
        """Set details from dict."""
        self.details = json.dumps(details) if details else None
