"""Deposit ledger - owns the deposit lifecycle."""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select

from ..challenges.models import Challenge
from ..days import DateLike, parse_datetime, validate_day_number
from ..db.models import coerce_id, utc_now_iso
from ..db.sqlite import Database, get_db
from ..errors import NotFoundError, ValidationError
from .models import Deposit

logger = logging.getLogger(__name__)


class DepositLedger:
    """Records, removes and lists the funded days of a challenge."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize deposit ledger.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    def record_deposit(
        self,
        challenge_id,
        day_number,
        deposited_at: Optional[DateLike] = None,
        amount: Optional[int] = None,
    ) -> Deposit:
        """Fund a day of a challenge, or refresh an already funded day.

        Runs as one ``INSERT ... ON CONFLICT (challenge_id, day_number) DO
        UPDATE`` statement. Repeating the call for the same day keeps a
        single row with a stable id and overwrites its amount and
        deposited_at.

        Args:
            challenge_id: Owning challenge
            day_number: Day to fund, 1..200
            deposited_at: Deposit instant (default: now)
            amount: Ignored; the stored amount is always ``day_number``

        Returns:
            The stored deposit, with ``was_created`` telling insert from update

        Raises:
            ValidationError: If the day is out of range, the date is
                unparseable or the challenge does not exist
        """
        day = validate_day_number(day_number)
        try:
            cid = coerce_id(challenge_id, "challenge_id")
        except NotFoundError as e:
            raise ValidationError("Invalid challenge_id") from e

        if deposited_at is None:
            moment = datetime.now(timezone.utc)
        else:
            moment = parse_datetime(deposited_at, field="deposit date")

        if amount is not None and amount != day:
            logger.debug("Ignoring caller amount %r for day %d", amount, day)

        stamp = utc_now_iso()
        table = Deposit.__table__
        stmt = self.db.insert(table).values(
            challenge_id=cid,
            day_number=day,
            amount=day,
            deposited_at=moment.isoformat(),
            created_at=stamp,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.challenge_id, table.c.day_number],
            set_={
                "amount": stmt.excluded.amount,
                "deposited_at": stmt.excluded.deposited_at,
            },
        ).returning(table.c.id, table.c.created_at)

        with self.db.get_session() as session:
            if session.get(Challenge, cid) is None:
                raise ValidationError("Challenge not found")

            row = session.execute(stmt).one()
            deposit = session.get(Deposit, row.id)
            session.expunge(deposit)

        # created_at only matches our stamp when this statement inserted the row
        deposit.was_created = row.created_at == stamp
        logger.info(
            "Deposit %s: challenge=%s day=%d id=%s",
            "created" if deposit.was_created else "updated",
            cid,
            day,
            deposit.id,
        )
        return deposit

    def remove_deposit(self, deposit_id) -> None:
        """Delete a deposit by id.

        Raises:
            NotFoundError: If no such deposit exists
        """
        deposit_id = coerce_id(deposit_id)
        with self.db.get_session() as session:
            result = session.execute(delete(Deposit).where(Deposit.id == deposit_id))
            if result.rowcount == 0:
                raise NotFoundError("Deposit not found")
        logger.info("Deposit removed: id=%s", deposit_id)

    def get(self, deposit_id) -> Deposit:
        """Get a deposit by id.

        Raises:
            NotFoundError: If no such deposit exists
        """
        deposit_id = coerce_id(deposit_id)
        with self.db.get_session() as session:
            deposit = session.get(Deposit, deposit_id)
            if not deposit:
                raise NotFoundError("Deposit not found")
            session.expunge(deposit)
            return deposit

    def find_by_day(self, challenge_id, day_number) -> Optional[Deposit]:
        """Deposit for a given day of a challenge, or None."""
        day = validate_day_number(day_number)
        cid = coerce_id(challenge_id, "challenge_id")
        with self.db.get_session() as session:
            stmt = select(Deposit).where(
                Deposit.challenge_id == cid,
                Deposit.day_number == day,
            )
            deposit = session.execute(stmt).scalar_one_or_none()
            if deposit:
                session.expunge(deposit)
            return deposit

    def list_deposits(self, challenge_id) -> list[Deposit]:
        """Deposits of a challenge, ascending by day number."""
        cid = coerce_id(challenge_id, "challenge_id")
        with self.db.get_session() as session:
            stmt = (
                select(Deposit)
                .where(Deposit.challenge_id == cid)
                .order_by(Deposit.day_number.asc())
            )
            deposits = session.execute(stmt).scalars().all()
            for deposit in deposits:
                session.expunge(deposit)
            return list(deposits)

    list = list_deposits
