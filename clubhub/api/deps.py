"""Common dependencies for API routes."""
from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime

from fastapi import Depends
from sqlalchemy.orm import Session

from clubhub.db.session import SessionLocal
from clubhub.services.elections import ElectionService, utcnow


def get_db_session() -> Iterator[Session]:
    """Yield a database session for FastAPI dependencies."""

    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_clock() -> Callable[[], datetime]:
    """Time source used to derive election statuses."""
    return utcnow


def get_election_service(
    session: Session = Depends(get_db_session),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ElectionService:
    return ElectionService(session, clock=clock)


__all__ = ["get_clock", "get_db_session", "get_election_service"]
