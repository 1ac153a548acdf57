"""Typed failures shared by the governance services."""
from __future__ import annotations


class GovernanceError(RuntimeError):
    """Base exception for governance service errors."""

    kind = "governance_error"


class NotFoundError(GovernanceError):
    """Raised when an identifier does not resolve to an entity in scope."""

    kind = "not_found"


class ForbiddenError(GovernanceError):
    """Raised when the principal is authenticated but not authorized."""

    kind = "forbidden"


class ConflictError(GovernanceError):
    """Raised when a uniqueness or state-transition invariant would be violated."""

    kind = "conflict"


class InvalidInputError(GovernanceError):
    """Raised when a required field is missing or malformed."""

    kind = "invalid_input"


class StorageFailureError(GovernanceError):
    """Raised for unexpected persistence errors.

    The message is always generic; the underlying exception is chained and
    logged but never shown to callers.
    """

    kind = "storage_failure"

    def __init__(self, message: str = "The request could not be completed. Please try again.") -> None:
        super().__init__(message)


__all__ = [
    "ConflictError",
    "ForbiddenError",
    "GovernanceError",
    "InvalidInputError",
    "NotFoundError",
    "StorageFailureError",
]
