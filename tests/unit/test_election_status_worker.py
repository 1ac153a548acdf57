from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import timedelta

from sqlalchemy.orm import Session

from clubhub.models import Club, Election, ElectionStatus
from clubhub.services.elections import ElectionService
from workers.election_status.main import run_once


def test_sweep_advances_due_elections(
    db_session: Session,
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    clock,
) -> None:
    club = make_club()
    upcoming = make_election(club, starts_in=timedelta(hours=1))
    active = make_election(club, lasts=timedelta(hours=2))
    untouched = make_election(club, starts_in=timedelta(days=7))

    clock.advance(hours=2)
    advanced = asyncio.run(run_once(ElectionService(db_session, clock=clock)))

    assert advanced == 2
    db_session.expire_all()
    assert db_session.get(Election, upcoming.id).status == ElectionStatus.ACTIVE
    assert db_session.get(Election, active.id).status == ElectionStatus.COMPLETED
    assert db_session.get(Election, untouched.id).status == ElectionStatus.UPCOMING


def test_sweep_is_idempotent(
    db_session: Session,
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    clock,
) -> None:
    make_election(make_club(), starts_in=timedelta(hours=1), lasts=timedelta(hours=1))
    service = ElectionService(db_session, clock=clock)
    clock.advance(hours=3)

    assert asyncio.run(run_once(service)) == 1
    assert asyncio.run(run_once(service)) == 0
