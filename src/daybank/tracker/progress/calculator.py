"""Progress calculation for a challenge.

Everything here is a pure function of a challenge, its deposits and "now":
no storage access, no caching. Callers that need challenge and deposits
to be mutually consistent must read both in one session.
"""

from datetime import datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ..challenges.models import Challenge
from ..challenges.schemas import ChallengeResponse
from ..days import (
    CHALLENGE_DAYS,
    FINAL_EXPECTED_TOTAL,
    DateLike,
    ZoneLike,
    clamp_day,
    day_for_date,
    is_within_window,
    normalize_day,
    to_local_date,
    window_end,
)
from ..deposits.models import Deposit
from .schemas import DayCell, ProgressSnapshot

_CENT = Decimal("0.01")


def round2(value: Decimal) -> float:
    """Round to 2 decimal places, halves away from zero."""
    return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def percent(part: int, whole: int) -> float:
    """``part / whole * 100`` rounded to 2 places."""
    return round2(Decimal(part) * 100 / Decimal(whole))


def triangular(n: int) -> int:
    """Sum of 1..n."""
    return n * (n + 1) // 2


def compute_progress(
    challenge: Challenge,
    deposits: Iterable[Deposit],
    now: DateLike,
    tz: ZoneLike = None,
) -> ProgressSnapshot:
    """Summarize a challenge's progress as of ``now``.

    Args:
        challenge: The challenge
        deposits: All deposits of the challenge
        now: Evaluation instant; only its calendar date in ``tz`` matters
        tz: Time zone for day boundaries (process local zone if None)

    Returns:
        ProgressSnapshot
    """
    deposits = list(deposits)
    start = to_local_date(challenge.start_date, tz)
    today = to_local_date(now, tz)
    end = window_end(start)

    current_day = clamp_day(normalize_day(today, start))

    total_deposited = sum(d.amount for d in deposits)
    days_completed = len(deposits)

    return ProgressSnapshot(
        challenge=ChallengeResponse.from_model(challenge),
        current_day=current_day,
        start_date=datetime.combine(start, time(), tzinfo=timezone.utc),
        end_date=end,
        total_deposited=total_deposited,
        days_completed=days_completed,
        days_remaining=CHALLENGE_DAYS - days_completed,
        expected_total=triangular(current_day),
        final_expected_total=FINAL_EXPECTED_TOTAL,
        progress_percent=percent(days_completed, CHALLENGE_DAYS),
        amount_progress_percent=percent(total_deposited, FINAL_EXPECTED_TOTAL),
        deposited_days=sorted({d.day_number for d in deposits}),
        is_active=is_within_window(start, today),
        is_completed=days_completed == CHALLENGE_DAYS,
    )


def build_day_grid(
    challenge: Challenge,
    deposits: Iterable[Deposit],
    now: DateLike,
    tz: ZoneLike = None,
) -> list[DayCell]:
    """All 200 days of a challenge with their dates and funded state.

    ``is_today`` is set only when ``now`` falls inside the window.
    """
    start = to_local_date(challenge.start_date, tz)
    today_day = day_for_date(start, to_local_date(now, tz))
    funded = {d.day_number for d in deposits}

    return [
        DayCell(
            day_number=day,
            calendar_date=start + timedelta(days=day - 1),
            amount=day,
            is_deposited=day in funded,
            is_today=day == today_day,
        )
        for day in range(1, CHALLENGE_DAYS + 1)
    ]
