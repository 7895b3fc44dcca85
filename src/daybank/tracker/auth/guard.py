"""Identity and ownership collaborators.

The tracker never inspects identities; it only asks an ``IdentityProvider``
who is calling and an ``OwnershipGuard`` whether that caller owns a
resource. Both are single-method interfaces so tests can swap in doubles.
"""

from typing import Optional, Protocol, runtime_checkable

from ..config import Config, get_config
from ..errors import AuthenticationError, AuthorizationError


@runtime_checkable
class OwnershipGuard(Protocol):
    """Decides whether a caller owns a resource."""

    def is_owner(self, caller_identity: str, resource_user_id: str) -> bool:
        ...


@runtime_checkable
class IdentityProvider(Protocol):
    """Supplies the authenticated caller identity, or None."""

    def current_identity(self) -> Optional[str]:
        ...


class IdentityEqualityGuard:
    """Owner iff the caller identity equals the resource's user id."""

    def is_owner(self, caller_identity: str, resource_user_id: str) -> bool:
        return bool(caller_identity) and caller_identity == resource_user_id


class StaticIdentityProvider:
    """Always returns the identity it was built with."""

    def __init__(self, identity: Optional[str]):
        self.identity = identity

    def current_identity(self) -> Optional[str]:
        return self.identity


class ConfigIdentityProvider:
    """Reads the identity from ``DAYBANK_USER``."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config

    def current_identity(self) -> Optional[str]:
        config = self.config or get_config()
        return config.user


def require_identity(provider: IdentityProvider) -> str:
    """Return the caller identity.

    Raises:
        AuthenticationError: If there is no authenticated caller
    """
    identity = provider.current_identity()
    if not identity:
        raise AuthenticationError("Not authenticated")
    return identity


def check_owner(guard: OwnershipGuard, caller_identity: str, resource_user_id: str) -> None:
    """Accept or reject a whole operation.

    Raises:
        AuthorizationError: If the caller does not own the resource
    """
    if not guard.is_owner(caller_identity, resource_user_id):
        raise AuthorizationError("Unauthorized")
