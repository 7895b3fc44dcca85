"""Pydantic schemas for challenge progress."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..challenges.schemas import ChallengeResponse


class ProgressSnapshot(BaseModel):
    """Derived, read-only summary of a challenge at a point in time.

    Field names are snake_case in Python and camelCase on the wire.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    challenge: ChallengeResponse
    current_day: int
    start_date: datetime
    end_date: date
    total_deposited: int
    days_completed: int
    days_remaining: int
    expected_total: int
    final_expected_total: int
    progress_percent: float
    amount_progress_percent: float
    deposited_days: list[int]
    is_active: bool
    is_completed: bool

    @property
    def amount_remaining(self) -> int:
        """Units still to deposit to finish the challenge."""
        return self.final_expected_total - self.total_deposited

    @property
    def behind_by(self) -> int:
        """How far total deposits trail the ideal total up to today (0 if ahead)."""
        return max(0, self.expected_total - self.total_deposited)

    def to_wire(self) -> dict:
        """JSON-ready camelCase dict."""
        return self.model_dump(mode="json", by_alias=True)


class DayCell(BaseModel):
    """One day of the 200-day calendar grid."""

    day_number: int
    calendar_date: date
    amount: int
    is_deposited: bool
    is_today: bool
