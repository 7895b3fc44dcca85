"""Tests for SavingsService."""

import logging
from datetime import datetime, timezone

import pytest

from daybank.tracker.audit import AuditAction, AuditSink, EntityType
from daybank.tracker.auth import StaticIdentityProvider
from daybank.tracker.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from daybank.tracker.progress import ProgressSnapshot
from daybank.tracker.service import DepositOutcome, SavingsService


class ExplodingAuditSink(AuditSink):
    """Fails on every write."""

    def write(self, event) -> None:
        raise RuntimeError("audit backend down")


class CountingGuard:
    """Identity-equality guard that counts its calls."""

    def __init__(self):
        self.calls = 0

    def is_owner(self, caller_identity, resource_user_id):
        self.calls += 1
        return caller_identity == resource_user_id


class TestChallenges:
    """Tests for challenge operations."""

    def test_start(self, service: SavingsService, audit_sink):
        challenge = service.start_challenge("2024-01-01")

        assert challenge.user_id == "alice"
        assert audit_sink.names == ["challenge_created"]
        assert audit_sink.events[0].entity_id == challenge.id

    def test_start_conflict(self, service: SavingsService, audit_sink):
        service.start_challenge("2024-01-01")
        with pytest.raises(ConflictError):
            service.start_challenge("2024-01-02")

        assert audit_sink.names == ["challenge_created"]

    def test_start_for_other_user_rejected(self, service: SavingsService):
        with pytest.raises(AuthorizationError):
            service.start_challenge("2024-01-01", user_id="bob")

    def test_unauthenticated(self, make_service):
        service = make_service(user=None)
        with pytest.raises(AuthenticationError):
            service.start_challenge("2024-01-01")

    def test_current_and_list(self, service: SavingsService):
        assert service.current_challenge() is None

        challenge = service.start_challenge("2024-01-01")

        assert service.current_challenge().id == challenge.id
        assert [c.id for c in service.list_challenges()] == [challenge.id]

    def test_get_challenge_other_owner(self, service, make_service):
        challenge = service.start_challenge("2024-01-01")

        with pytest.raises(AuthorizationError):
            make_service(user="bob").get_challenge(challenge.id)

    def test_get_missing(self, service: SavingsService):
        with pytest.raises(NotFoundError):
            service.get_challenge(99)

    def test_edit_start_date(self, service: SavingsService, audit_sink):
        challenge = service.start_challenge("2024-01-01")
        updated = service.edit_start_date(challenge.id, "2024-01-15")

        assert updated.start_date == "2024-01-15"
        event = audit_sink.events[-1]
        assert event.name == "challenge_updated"
        assert event.metadata == {"previous_start_date": "2024-01-01", "start_date": "2024-01-15"}

    def test_edit_by_other_user(self, service, make_service):
        challenge = service.start_challenge("2024-01-01")

        with pytest.raises(AuthorizationError):
            make_service(user="bob").edit_start_date(challenge.id, "2024-02-01")

        assert service.get_challenge(challenge.id).start_date == "2024-01-01"


class TestDeposits:
    """Tests for deposit operations."""

    @pytest.fixture
    def challenge(self, service: SavingsService):
        return service.start_challenge("2024-01-01")

    def test_record_returns_fresh_progress(self, service, challenge):
        outcome = service.record_deposit(challenge.id, 1)

        assert isinstance(outcome, DepositOutcome)
        assert outcome.created is True
        assert outcome.deposit.amount == 1
        assert isinstance(outcome.progress, ProgressSnapshot)
        assert outcome.progress.total_deposited == 1
        assert outcome.progress.deposited_days == [1]

    def test_record_twice_is_update(self, service, challenge, audit_sink):
        first = service.record_deposit(challenge.id, 4)
        second = service.record_deposit(challenge.id, 4)

        assert second.deposit.id == first.deposit.id
        assert second.created is False
        assert second.progress.days_completed == 1
        assert audit_sink.names[-2:] == ["deposit_created", "deposit_updated"]

    def test_record_unknown_challenge(self, service):
        with pytest.raises(NotFoundError):
            service.record_deposit(777, 1)

    def test_record_out_of_range(self, service, challenge):
        with pytest.raises(ValidationError):
            service.record_deposit(challenge.id, 201)

    def test_record_by_other_user(self, challenge, make_service):
        with pytest.raises(AuthorizationError):
            make_service(user="bob").record_deposit(challenge.id, 1)

    def test_guard_called_once(self, make_service):
        guard = CountingGuard()
        service = make_service(guard=guard)
        challenge = service.start_challenge("2024-01-01")
        guard.calls = 0

        service.record_deposit(challenge.id, 1)
        assert guard.calls == 1

        service.get_progress(challenge.id)
        assert guard.calls == 2

    def test_audit_event_fields(self, service, challenge, audit_sink):
        outcome = service.record_deposit(challenge.id, 12)
        event = audit_sink.events[-1]

        assert event.entity_type == EntityType.DEPOSIT
        assert event.action == AuditAction.CREATED
        assert event.user_id == "alice"
        assert event.entity_id == outcome.deposit.id
        assert event.amount == 12
        assert event.metadata == {"challenge_id": challenge.id, "day_number": 12}

    def test_large_deposit_flagged(self, service, challenge, audit_sink, caplog):
        with caplog.at_level(logging.WARNING, logger="daybank"):
            service.record_deposit(challenge.id, 150)

        assert audit_sink.events[-1].metadata["large_deposit"] is True
        assert any("Large deposit" in r.getMessage() for r in caplog.records)

    def test_large_deposit_threshold_configurable(self, make_service, audit_sink):
        service = make_service(large_deposit_threshold=10)
        challenge = service.start_challenge("2024-01-01")

        service.record_deposit(challenge.id, 9)
        assert "large_deposit" not in audit_sink.events[-1].metadata
        service.record_deposit(challenge.id, 10)
        assert audit_sink.events[-1].metadata["large_deposit"] is True

    def test_failing_audit_does_not_break(self, make_service, caplog):
        service = make_service(audit=ExplodingAuditSink())
        challenge = service.start_challenge("2024-01-01")

        with caplog.at_level(logging.ERROR, logger="daybank"):
            outcome = service.record_deposit(challenge.id, 1)

        assert outcome.progress.total_deposited == 1
        assert any("Failed to record audit event" in r.getMessage() for r in caplog.records)

    def test_remove(self, service, challenge, audit_sink):
        outcome = service.record_deposit(challenge.id, 3)
        progress = service.remove_deposit(outcome.deposit.id)

        assert progress.total_deposited == 0
        assert progress.deposited_days == []
        assert audit_sink.names[-1] == "deposit_deleted"

    def test_remove_missing(self, service):
        with pytest.raises(NotFoundError):
            service.remove_deposit(5)

    def test_remove_by_other_user(self, service, challenge, make_service):
        outcome = service.record_deposit(challenge.id, 3)

        with pytest.raises(AuthorizationError):
            make_service(user="bob").remove_deposit(outcome.deposit.id)

        assert len(service.list_deposits(challenge.id)) == 1

    def test_toggle(self, service, challenge):
        on = service.toggle_day(challenge.id, 5)
        assert on.deposited_days == [5]

        off = service.toggle_day(challenge.id, 5)
        assert off.deposited_days == []

    def test_list_deposits(self, service, challenge):
        for day in (8, 2):
            service.record_deposit(challenge.id, day)
        assert [d.day_number for d in service.list_deposits(challenge.id)] == [2, 8]


class TestProgress:
    """Tests for progress reads."""

    def test_progress_uses_clock(self, make_service):
        service = make_service(now=datetime(2024, 1, 10, 12, tzinfo=timezone.utc))
        challenge = service.start_challenge("2024-01-01")
        service.record_deposit(challenge.id, 1)

        progress = service.get_progress(challenge.id)

        assert progress.current_day == 10
        assert progress.expected_total == 55
        assert progress.total_deposited == 1
        assert progress.challenge.id == challenge.id

    def test_progress_other_user(self, service, make_service):
        challenge = service.start_challenge("2024-01-01")

        with pytest.raises(AuthorizationError):
            make_service(user="bob").get_progress(challenge.id)

    def test_day_grid(self, service):
        challenge = service.start_challenge("2024-01-01")
        service.record_deposit(challenge.id, 1)

        cells = service.day_grid(challenge.id)

        assert len(cells) == 200
        assert cells[0].is_deposited and cells[0].is_today

    def test_defaults_from_config(self, db, monkeypatch):
        from daybank.tracker.config import reset_config

        monkeypatch.setenv("DAYBANK_USER", "carol")
        monkeypatch.setenv("DAYBANK_LARGE_DEPOSIT", "50")
        reset_config()

        service = SavingsService(db=db)

        assert service.identity.current_identity() == "carol"
        assert service.large_deposit_threshold == 50

    def test_explicit_identity_wins(self, db, monkeypatch):
        monkeypatch.setenv("DAYBANK_USER", "carol")

        service = SavingsService(db=db, identity=StaticIdentityProvider("dave"))
        assert service.current_challenge() is None
        assert service.identity.current_identity() == "dave"
