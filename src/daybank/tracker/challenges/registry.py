"""Challenge registry - owns the challenge lifecycle."""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, func, insert, literal, select

from ..config import get_config
from ..days import DateLike, ZoneLike, parse_date, to_local_date, window_end
from ..db.models import coerce_id, utc_now_iso
from ..db.sqlite import Database, get_db
from ..deposits.models import Deposit
from ..errors import ConflictError, NotFoundError, ValidationError
from .models import Challenge

logger = logging.getLogger(__name__)


class ChallengeRegistry:
    """Creates, looks up and re-anchors challenges.

    A user may hold at most one challenge whose window has not ended yet.
    """

    def __init__(self, db: Optional[Database] = None, tz: ZoneLike = None):
        """Initialize challenge registry.

        Args:
            db: Database instance
            tz: Time zone for day boundaries (configured zone if None)
        """
        self.db = db or get_db()
        self.tz = tz if tz is not None else get_config().tzinfo()

    def create(
        self,
        user_id: str,
        start_date: DateLike,
        now: Optional[datetime] = None,
    ) -> Challenge:
        """Start a new challenge for a user.

        The "no unfinished challenge" check and the insert run as a single
        ``INSERT ... SELECT ... WHERE NOT EXISTS`` statement, so two
        concurrent calls cannot both succeed.

        Args:
            user_id: Owner identity
            start_date: First day of the challenge
            now: Evaluation instant (default: current time)

        Returns:
            Created challenge

        Raises:
            ValidationError: If user_id is empty or start_date is unparseable
            ConflictError: If the user already has an unfinished challenge
        """
        if not isinstance(user_id, str) or not user_id.strip():
            raise ValidationError("user_id is required")

        start = parse_date(start_date, self.tz, field="start_date")
        end = window_end(start)
        today = to_local_date(now or datetime.now(timezone.utc), self.tz)

        unfinished = select(Challenge.id).where(
            Challenge.user_id == user_id,
            Challenge.end_date >= today.isoformat(),
        )
        source = select(
            literal(user_id, String),
            literal(start.isoformat(), String),
            literal(end.isoformat(), String),
            literal(utc_now_iso(), String),
        ).where(~unfinished.exists())

        table = Challenge.__table__
        stmt = (
            insert(table)
            .from_select(["user_id", "start_date", "end_date", "created_at"], source)
            .returning(table.c.id)
        )

        with self.db.get_session() as session:
            new_id = session.execute(stmt).scalar_one_or_none()
            if new_id is None:
                raise ConflictError("You already have an active challenge")

            challenge = session.get(Challenge, new_id)
            session.expunge(challenge)

        logger.info(
            "Challenge created: id=%s user=%s start=%s end=%s",
            challenge.id,
            user_id,
            challenge.start_date,
            challenge.end_date,
        )
        return challenge

    def get(self, challenge_id) -> Challenge:
        """Get a challenge by ID.

        Raises:
            NotFoundError: If the challenge does not exist
        """
        challenge_id = coerce_id(challenge_id)
        with self.db.get_session() as session:
            challenge = session.get(Challenge, challenge_id)
            if not challenge:
                raise NotFoundError("Challenge not found")
            session.expunge(challenge)
            return challenge

    def get_for_user(self, user_id: str) -> Optional[Challenge]:
        """Most recently created challenge of a user, or None."""
        with self.db.get_session() as session:
            stmt = (
                select(Challenge)
                .where(Challenge.user_id == user_id)
                .order_by(Challenge.created_at.desc(), Challenge.id.desc())
                .limit(1)
            )
            challenge = session.execute(stmt).scalar_one_or_none()
            if challenge:
                session.expunge(challenge)
            return challenge

    def list_for_user(self, user_id: str) -> list[Challenge]:
        """All challenges of a user, newest first."""
        with self.db.get_session() as session:
            stmt = (
                select(Challenge)
                .where(Challenge.user_id == user_id)
                .order_by(Challenge.created_at.desc(), Challenge.id.desc())
            )
            challenges = session.execute(stmt).scalars().all()
            for c in challenges:
                session.expunge(c)
            return list(challenges)

    def update_start_date(self, challenge_id, new_start_date: DateLike) -> Challenge:
        """Move a challenge to a new start date.

        Recorded deposits keep their day numbers, so after a move each
        deposit refers to a different calendar date than when it was made.

        Raises:
            NotFoundError: If the challenge does not exist
            ValidationError: If the new date is unparseable
        """
        challenge_id = coerce_id(challenge_id)
        start = parse_date(new_start_date, self.tz, field="start_date")

        with self.db.get_session() as session:
            challenge = session.get(Challenge, challenge_id)
            if not challenge:
                raise NotFoundError("Challenge not found")

            previous = challenge.start_date
            challenge.start_date = start.isoformat()
            challenge.end_date = window_end(start).isoformat()
            session.flush()

            deposit_count = session.execute(
                select(func.count()).where(Deposit.challenge_id == challenge_id)
            ).scalar() or 0

            session.expunge(challenge)

        if deposit_count and previous != challenge.start_date:
            logger.warning(
                "Challenge %s moved from %s to %s with %d recorded deposits; "
                "their day numbers now map to different dates",
                challenge_id,
                previous,
                challenge.start_date,
                deposit_count,
            )
        else:
            logger.info("Challenge %s start date set to %s", challenge_id, challenge.start_date)
        return challenge
