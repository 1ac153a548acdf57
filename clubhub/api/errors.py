"""Translation of service failures into HTTP responses."""
from __future__ import annotations

from fastapi import HTTPException, status

from clubhub.core.errors import (
    ConflictError,
    ForbiddenError,
    GovernanceError,
    InvalidInputError,
    NotFoundError,
    StorageFailureError,
)

_STATUS_CODES: tuple[tuple[type[GovernanceError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (StorageFailureError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def http_error(exc: GovernanceError) -> HTTPException:
    """Map a governance failure onto the matching HTTP status."""

    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(StorageFailureError()))


__all__ = ["http_error"]
