"""Tests for identity and ownership collaborators."""

import pytest

from daybank.tracker.auth import (
    ConfigIdentityProvider,
    IdentityEqualityGuard,
    IdentityProvider,
    OwnershipGuard,
    StaticIdentityProvider,
    check_owner,
    require_identity,
)
from daybank.tracker.config import Config, reset_config
from daybank.tracker.errors import AuthenticationError, AuthorizationError


class TestIdentityEqualityGuard:
    """Tests for the default ownership guard."""

    def test_owner(self):
        assert IdentityEqualityGuard().is_owner("alice", "alice")

    def test_not_owner(self):
        assert not IdentityEqualityGuard().is_owner("alice", "bob")

    def test_empty_identity_never_owns(self):
        assert not IdentityEqualityGuard().is_owner("", "")

    def test_satisfies_protocol(self):
        assert isinstance(IdentityEqualityGuard(), OwnershipGuard)


class TestIdentityProviders:
    """Tests for identity providers."""

    def test_static(self):
        provider = StaticIdentityProvider("alice")
        assert provider.current_identity() == "alice"
        assert isinstance(provider, IdentityProvider)

    def test_config(self, monkeypatch):
        monkeypatch.setenv("DAYBANK_USER", "carol")
        reset_config()
        try:
            assert ConfigIdentityProvider().current_identity() == "carol"
        finally:
            reset_config()

    def test_config_explicit(self, tmp_path):
        config = Config(
            db_path=tmp_path / "x.db",
            db_timeout=1.0,
            timezone=None,
            user="erin",
            log_level="WARNING",
            audit_mode="none",
            large_deposit_threshold=100,
        )
        assert ConfigIdentityProvider(config).current_identity() == "erin"


class TestChecks:
    """Tests for require_identity / check_owner."""

    def test_require_identity(self):
        assert require_identity(StaticIdentityProvider("alice")) == "alice"

    @pytest.mark.parametrize("identity", [None, ""])
    def test_require_identity_missing(self, identity):
        with pytest.raises(AuthenticationError, match="Not authenticated"):
            require_identity(StaticIdentityProvider(identity))

    def test_check_owner_passes(self):
        check_owner(IdentityEqualityGuard(), "alice", "alice")

    def test_check_owner_rejects(self):
        with pytest.raises(AuthorizationError, match="Unauthorized"):
            check_owner(IdentityEqualityGuard(), "alice", "bob")
