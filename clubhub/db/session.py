"""SQLAlchemy session management."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from clubhub.core.config import get_settings
from clubhub.core.errors import ConflictError, StorageFailureError
from clubhub.obs import instrument_sqlalchemy_engine

LOGGER = logging.getLogger(__name__)

settings = get_settings()
engine = create_engine(settings.database_url, pool_pre_ping=True)
if settings.enable_tracing:
    instrument_sqlalchemy_engine(engine)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_session() -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""
    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def _translate(session: Session, exc: SQLAlchemyError, conflict_message: str) -> Exception:
    session.rollback()
    if isinstance(exc, IntegrityError):
        return ConflictError(conflict_message)
    LOGGER.error("storage failure, transaction rolled back", exc_info=exc)
    return StorageFailureError()


@contextmanager
def atomic(session: Session, *, conflict_message: str = "Conflicting record already exists") -> Iterator[Session]:
    """Commit everything done inside the block or nothing at all.

    A uniqueness violation surfaces as ``ConflictError``; any other storage
    error rolls back and surfaces as a generic ``StorageFailureError``.
    """

    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        raise _translate(session, exc, conflict_message) from exc
    except Exception:
        session.rollback()
        raise


def commit(session: Session, *, conflict_message: str = "Conflicting record already exists") -> None:
    """Commit pending changes with the same error mapping as ``atomic``."""

    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise _translate(session, exc, conflict_message) from exc


__all__ = ["SessionLocal", "atomic", "commit", "engine", "get_session"]
