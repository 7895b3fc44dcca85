"""Pydantic schemas for deposits."""

from datetime import datetime

from pydantic import BaseModel

from .models import Deposit


class DepositResponse(BaseModel):
    """Wire form of a deposit."""

    id: int
    challenge_id: int
    day_number: int
    amount: int
    deposited_at: datetime
    created_at: datetime

    @classmethod
    def from_model(cls, deposit: Deposit) -> "DepositResponse":
        """Build the response from an ORM row."""
        return cls(
            id=deposit.id,
            challenge_id=deposit.challenge_id,
            day_number=deposit.day_number,
            amount=deposit.amount,
            deposited_at=deposit.deposited,
            created_at=deposit.created,
        )

    def to_wire(self) -> dict:
        """JSON-ready dict with ISO 8601 strings."""
        return self.model_dump(mode="json")
