"""Exceptions raised by the savings tracker.

Every error a caller can see derives from ``DaybankError``. Storage failures
that are not one of the classified cases surface as ``InternalError`` with a
generic message; the original exception is logged, never exposed.
"""


class DaybankError(Exception):
    """Base exception for savings tracker errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(DaybankError):
    """Raised for malformed input: bad dates, out-of-range days, missing fields."""

    pass


class NotFoundError(DaybankError):
    """Raised when a challenge or deposit id does not resolve."""

    pass


class ConflictError(DaybankError):
    """Raised when the write conflicts with current state.

    Retryable once the conflicting state has changed, e.g. after the
    existing challenge window has ended.
    """

    pass


class AuthenticationError(DaybankError):
    """Raised when no caller identity is available."""

    pass


class AuthorizationError(DaybankError):
    """Raised when the caller does not own the resource."""

    pass


class InternalError(DaybankError):
    """Opaque wrapper for unclassified storage failures."""

    pass
