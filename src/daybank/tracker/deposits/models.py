"""SQLAlchemy model for challenge deposits.

Tables:
- deposits: one funded day per row
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, utc_now_iso


class Deposit(Base):
    """Deposit model - confirms that day N of a challenge was funded."""

    __tablename__ = "deposits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    challenge_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("challenges.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Day 1..200; amount always equals day_number
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    # Timestamps
    deposited_at: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso)

    # A day can only be funded once per challenge
    __table_args__ = (
        UniqueConstraint("challenge_id", "day_number", name="uq_deposit_day"),
        CheckConstraint("day_number BETWEEN 1 AND 200", name="ck_deposit_day_range"),
        CheckConstraint("amount = day_number", name="ck_deposit_amount"),
    )

    # Set by the ledger after an upsert; not persisted
    was_created = False

    def __repr__(self) -> str:
        return f"<Deposit(id={self.id}, challenge_id={self.challenge_id}, day={self.day_number})>"

    @property
    def deposited(self) -> datetime:
        """Deposit instant as a datetime."""
        return datetime.fromisoformat(self.deposited_at)

    @property
    def created(self) -> datetime:
        """Creation instant as a datetime."""
        return datetime.fromisoformat(self.created_at)
