"""Caller identity and resource ownership checks."""

from .guard import (
    ConfigIdentityProvider,
    IdentityEqualityGuard,
    IdentityProvider,
    OwnershipGuard,
    StaticIdentityProvider,
    check_owner,
    require_identity,
)

__all__ = [
    "ConfigIdentityProvider",
    "IdentityEqualityGuard",
    "IdentityProvider",
    "OwnershipGuard",
    "StaticIdentityProvider",
    "check_owner",
    "require_identity",
]
