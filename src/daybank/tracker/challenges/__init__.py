"""Savings challenges module.

Provides functionality for:
- Starting a 200-day challenge (one unfinished challenge per user)
- Looking up a user's current and past challenges
- Moving a challenge's start date
"""

from .models import Challenge
from .registry import ChallengeRegistry
from .schemas import ChallengeResponse

__all__ = [
    "Challenge",
    "ChallengeRegistry",
    "ChallengeResponse",
]
