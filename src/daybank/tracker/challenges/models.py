"""SQLAlchemy model for savings challenges.

Tables:
- challenges: one 200-day window per row, owned by a single user
"""

from datetime import date, datetime

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, utc_now_iso


class Challenge(Base):
    """Challenge model - a user's 200-day savings commitment."""

    __tablename__ = "challenges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Window, ISO dates; end_date is always start_date + 199 days
    start_date: Mapped[str] = mapped_column(String(10), nullable=False)
    end_date: Mapped[str] = mapped_column(String(10), nullable=False)

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso)

    # Active-window lookups filter on both columns
    __table_args__ = (Index("ix_challenges_user_end", "user_id", "end_date"),)

    def __repr__(self) -> str:
        return f"<Challenge(id={self.id}, user_id='{self.user_id}', start={self.start_date})>"

    @property
    def start(self) -> date:
        """Start date as a date."""
        return date.fromisoformat(self.start_date)

    @property
    def end(self) -> date:
        """Last day of the window as a date."""
        return date.fromisoformat(self.end_date)

    @property
    def created(self) -> datetime:
        """Creation instant as a datetime."""
        return datetime.fromisoformat(self.created_at)
