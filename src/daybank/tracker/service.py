"""Savings service - the request-scoped entry point.

Each public method is one unit of work: resolve the caller, check
ownership once, run the registry/ledger operation, raise audit events, and
return fresh state. Deposit mutations return the ProgressSnapshot read right
after the write, so callers never need a delayed re-read.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import select

from .audit import AuditAction, AuditEvent, AuditSink, EntityType, make_audit_sink
from .auth import (
    ConfigIdentityProvider,
    IdentityEqualityGuard,
    IdentityProvider,
    OwnershipGuard,
    check_owner,
    require_identity,
)
from .challenges import Challenge, ChallengeRegistry
from .config import get_config
from .days import DateLike, ZoneLike
from .db.models import coerce_id
from .db.sqlite import Database, get_db
from .deposits import Deposit, DepositLedger
from .errors import NotFoundError
from .progress import DayCell, ProgressSnapshot, build_day_grid, compute_progress

logger = logging.getLogger(__name__)


@dataclass
class DepositOutcome:
    """Result of recording a deposit."""

    deposit: Deposit
    progress: ProgressSnapshot

    @property
    def created(self) -> bool:
        return self.deposit.was_created


class SavingsService:
    """Challenge and deposit operations on behalf of the current caller."""

    def __init__(
        self,
        db: Optional[Database] = None,
        identity: Optional[IdentityProvider] = None,
        guard: Optional[OwnershipGuard] = None,
        audit: Optional[AuditSink] = None,
        tz: ZoneLike = None,
        large_deposit_threshold: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize savings service.

        Args:
            db: Database instance
            identity: Caller identity source (DAYBANK_USER if None)
            guard: Ownership check (identity equality if None)
            audit: Audit sink (from DAYBANK_AUDIT if None)
            tz: Time zone for day boundaries (configured zone if None)
            large_deposit_threshold: Amount at which deposits are flagged
            clock: Returns "now"; defaults to the current UTC time
        """
        config = get_config()
        self.db = db or get_db()
        self.tz = tz if tz is not None else config.tzinfo()
        self.identity = identity or ConfigIdentityProvider(config)
        self.guard = guard or IdentityEqualityGuard()
        self.audit = audit or make_audit_sink(config.audit_mode, self.db)
        self.large_deposit_threshold = (
            large_deposit_threshold
            if large_deposit_threshold is not None
            else config.large_deposit_threshold
        )
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.challenges = ChallengeRegistry(self.db, self.tz)
        self.deposits = DepositLedger(self.db)

    # -------------------------------------------------------------------------
    # Challenges
    # -------------------------------------------------------------------------

    def start_challenge(self, start_date: DateLike, user_id: Optional[str] = None) -> Challenge:
        """Start a challenge for ``user_id`` (default: the caller)."""
        caller = require_identity(self.identity)
        owner = user_id or caller
        check_owner(self.guard, caller, owner)

        challenge = self.challenges.create(owner, start_date, now=self.clock())
        self._emit(EntityType.CHALLENGE, AuditAction.CREATED, owner, challenge.id)
        return challenge

    def current_challenge(self, user_id: Optional[str] = None) -> Optional[Challenge]:
        """Most recent challenge of ``user_id`` (default: the caller)."""
        caller = require_identity(self.identity)
        owner = user_id or caller
        check_owner(self.guard, caller, owner)
        return self.challenges.get_for_user(owner)

    def list_challenges(self, user_id: Optional[str] = None) -> list[Challenge]:
        """All challenges of ``user_id`` (default: the caller), newest first."""
        caller = require_identity(self.identity)
        owner = user_id or caller
        check_owner(self.guard, caller, owner)
        return self.challenges.list_for_user(owner)

    def get_challenge(self, challenge_id) -> Challenge:
        """A challenge owned by the caller."""
        caller = require_identity(self.identity)
        challenge = self.challenges.get(challenge_id)
        check_owner(self.guard, caller, challenge.user_id)
        return challenge

    def edit_start_date(self, challenge_id, new_start_date: DateLike) -> Challenge:
        """Move a challenge owned by the caller to a new start date."""
        caller = require_identity(self.identity)
        existing = self.challenges.get(challenge_id)
        check_owner(self.guard, caller, existing.user_id)

        challenge = self.challenges.update_start_date(existing.id, new_start_date)
        self._emit(
            EntityType.CHALLENGE,
            AuditAction.UPDATED,
            challenge.user_id,
            challenge.id,
            metadata={"previous_start_date": existing.start_date, "start_date": challenge.start_date},
        )
        return challenge

    # -------------------------------------------------------------------------
    # Deposits
    # -------------------------------------------------------------------------

    def record_deposit(
        self,
        challenge_id,
        day_number,
        deposited_at: Optional[DateLike] = None,
    ) -> DepositOutcome:
        """Fund a day of a caller-owned challenge and return fresh progress."""
        caller = require_identity(self.identity)
        challenge = self.challenges.get(challenge_id)
        check_owner(self.guard, caller, challenge.user_id)

        deposit = self._record(challenge, day_number, deposited_at)
        return DepositOutcome(deposit=deposit, progress=self._snapshot(challenge.id))

    def remove_deposit(self, deposit_id) -> ProgressSnapshot:
        """Delete a deposit of a caller-owned challenge and return fresh progress."""
        caller = require_identity(self.identity)
        deposit = self.deposits.get(deposit_id)
        challenge = self.challenges.get(deposit.challenge_id)
        check_owner(self.guard, caller, challenge.user_id)

        self._remove(challenge, deposit)
        return self._snapshot(challenge.id)

    def toggle_day(
        self,
        challenge_id,
        day_number,
        deposited_at: Optional[DateLike] = None,
    ) -> ProgressSnapshot:
        """Fund a day if it is unfunded, otherwise remove its deposit."""
        caller = require_identity(self.identity)
        challenge = self.challenges.get(challenge_id)
        check_owner(self.guard, caller, challenge.user_id)

        existing = self.deposits.find_by_day(challenge.id, day_number)
        if existing:
            try:
                self._remove(challenge, existing)
            except NotFoundError:
                # Removed concurrently; the day is unfunded either way
                logger.info("Deposit %s already removed", existing.id)
        else:
            self._record(challenge, day_number, deposited_at)
        return self._snapshot(challenge.id)

    def list_deposits(self, challenge_id) -> list[Deposit]:
        """Deposits of a caller-owned challenge, ascending by day."""
        caller = require_identity(self.identity)
        challenge = self.challenges.get(challenge_id)
        check_owner(self.guard, caller, challenge.user_id)
        return self.deposits.list(challenge.id)

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    def get_progress(self, challenge_id) -> ProgressSnapshot:
        """Progress snapshot of a caller-owned challenge as of now."""
        caller = require_identity(self.identity)
        challenge, deposits = self._load(challenge_id)
        check_owner(self.guard, caller, challenge.user_id)
        return compute_progress(challenge, deposits, self.clock(), self.tz)

    def day_grid(self, challenge_id) -> list[DayCell]:
        """The 200-day calendar of a caller-owned challenge."""
        caller = require_identity(self.identity)
        challenge, deposits = self._load(challenge_id)
        check_owner(self.guard, caller, challenge.user_id)
        return build_day_grid(challenge, deposits, self.clock(), self.tz)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _record(self, challenge: Challenge, day_number, deposited_at) -> Deposit:
        deposit = self.deposits.record_deposit(challenge.id, day_number, deposited_at)

        metadata = {"challenge_id": challenge.id, "day_number": deposit.day_number}
        if deposit.amount >= self.large_deposit_threshold:
            metadata["large_deposit"] = True
            logger.warning(
                "Large deposit detected: user=%s challenge=%s amount=%d",
                challenge.user_id,
                challenge.id,
                deposit.amount,
            )

        self._emit(
            EntityType.DEPOSIT,
            AuditAction.CREATED if deposit.was_created else AuditAction.UPDATED,
            challenge.user_id,
            deposit.id,
            amount=deposit.amount,
            metadata=metadata,
        )
        return deposit

    def _remove(self, challenge: Challenge, deposit: Deposit) -> None:
        self.deposits.remove_deposit(deposit.id)
        self._emit(
            EntityType.DEPOSIT,
            AuditAction.DELETED,
            challenge.user_id,
            deposit.id,
            amount=deposit.amount,
            metadata={"challenge_id": challenge.id, "day_number": deposit.day_number},
        )

    def _load(self, challenge_id) -> tuple[Challenge, list[Deposit]]:
        """Read a challenge and its deposits in one session."""
        challenge_id = coerce_id(challenge_id)
        with self.db.get_session() as session:
            challenge = session.get(Challenge, challenge_id)
            if not challenge:
                raise NotFoundError("Challenge not found")
            deposits = list(
                session.execute(
                    select(Deposit)
                    .where(Deposit.challenge_id == challenge_id)
                    .order_by(Deposit.day_number.asc())
                ).scalars()
            )
            session.expunge(challenge)
            for deposit in deposits:
                session.expunge(deposit)
        return challenge, deposits

    def _snapshot(self, challenge_id: int) -> ProgressSnapshot:
        challenge, deposits = self._load(challenge_id)
        return compute_progress(challenge, deposits, self.clock(), self.tz)

    def _emit(
        self,
        entity_type: EntityType,
        action: AuditAction,
        user_id: str,
        entity_id: int,
        amount: Optional[int] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        self.audit.record(
            AuditEvent(
                entity_type=entity_type,
                action=action,
                user_id=user_id,
                entity_id=entity_id,
                amount=amount,
                metadata=metadata or {},
            )
        )
