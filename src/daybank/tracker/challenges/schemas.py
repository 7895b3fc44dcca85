"""Pydantic schemas for savings challenges."""

from datetime import datetime, time, timezone

from pydantic import BaseModel

from .models import Challenge


class ChallengeResponse(BaseModel):
    """Wire form of a challenge.

    ``start_date`` is rendered as UTC midnight of the start date.
    """

    id: int
    start_date: datetime
    user_id: str
    created_at: datetime

    @classmethod
    def from_model(cls, challenge: Challenge) -> "ChallengeResponse":
        """Build the response from an ORM row."""
        return cls(
            id=challenge.id,
            start_date=datetime.combine(challenge.start, time(), tzinfo=timezone.utc),
            user_id=challenge.user_id,
            created_at=challenge.created,
        )

    def to_wire(self) -> dict:
        """JSON-ready dict with ISO 8601 strings."""
        return self.model_dump(mode="json")
