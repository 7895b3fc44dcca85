"""Pytest configuration and shared fixtures.

This module provides fixtures for testing the daybank tracker: a temporary
SQLite database per test, a recording audit sink, and a service whose clock
is pinned to a fixed instant.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

import pytest

from daybank.tracker.audit import AuditSink
from daybank.tracker.auth import StaticIdentityProvider
from daybank.tracker.challenges import ChallengeRegistry
from daybank.tracker.config import reset_config
from daybank.tracker.db.sqlite import Database, reset_db
from daybank.tracker.deposits import DepositLedger
from daybank.tracker.service import SavingsService

# Noon UTC: same calendar date in any zone within +/-11h
FIXED_NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class RecordingAuditSink(AuditSink):
    """Keeps every event in memory."""

    def __init__(self):
        self.events = []

    def write(self, event) -> None:
        self.events.append(event)

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.events]


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path(tmp_path: Path) -> Path:
    """Path of a fresh database file."""
    return tmp_path / "daybank.db"


@pytest.fixture(scope="function")
def db(temp_db_path: Path, monkeypatch) -> Generator[Database, None, None]:
    """Create a test database instance."""
    # Reset any global state
    reset_db()
    reset_config()

    monkeypatch.setenv("DAYBANK_DB_PATH", str(temp_db_path))
    monkeypatch.setenv("DAYBANK_TIMEZONE", "UTC")
    monkeypatch.setenv("DAYBANK_AUDIT", "none")
    monkeypatch.delenv("DAYBANK_USER", raising=False)

    database = Database(str(temp_db_path))
    database.create_tables()
    yield database

    # Cleanup
    database.close()
    reset_db()
    reset_config()


# ============================================================================
# Component Fixtures
# ============================================================================


@pytest.fixture
def registry(db: Database) -> ChallengeRegistry:
    """Challenge registry on the test database."""
    return ChallengeRegistry(db, tz="UTC")


@pytest.fixture
def ledger(db: Database) -> DepositLedger:
    """Deposit ledger on the test database."""
    return DepositLedger(db)


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    """Audit sink that records events for assertions."""
    return RecordingAuditSink()


@pytest.fixture
def make_service(db: Database, audit_sink: RecordingAuditSink):
    """Factory for services acting as a given user at FIXED_NOW."""

    def _make(user="alice", now=FIXED_NOW, **kwargs) -> SavingsService:
        kwargs.setdefault("audit", audit_sink)
        return SavingsService(
            db=db,
            identity=StaticIdentityProvider(user),
            tz="UTC",
            clock=lambda: now,
            **kwargs,
        )

    return _make


@pytest.fixture
def service(make_service) -> SavingsService:
    """Service acting as ``alice`` at FIXED_NOW."""
    return make_service()


@pytest.fixture
def challenge(registry: ChallengeRegistry):
    """A challenge for ``alice`` starting 2024-01-01."""
    return registry.create("alice", "2024-01-01", now=FIXED_NOW)
