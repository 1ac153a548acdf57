from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from clubhub.core.errors import ConflictError, ForbiddenError, NotFoundError
from clubhub.models import Club, Election, User, Vote
from clubhub.services.policy import Principal
from clubhub.services.voting import cast_vote, has_voted


def _ballot_box(
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    **election_kwargs,
) -> tuple[User, Election]:
    alice = make_user("Alice")
    bob = make_user("Bob")
    voter = make_user("Voter")
    club = make_club(members=(alice, bob, voter))
    election = make_election(club, candidates=((alice, "President"), (bob, "Treasurer")), **election_kwargs)
    return voter, election


def test_member_votes_once_per_election(
    db_session: Session,
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    principal_for: Callable[[User], Principal],
    clock,
) -> None:
    voter, election = _ballot_box(make_user, make_club, make_election)
    first, second = election.candidates
    principal = principal_for(voter)
    assert not has_voted(db_session, principal, election_id=election.id)

    vote = cast_vote(db_session, principal, election_id=election.id, candidate_id=first.id, clock=clock)

    assert vote.voter_id == voter.id
    assert has_voted(db_session, principal, election_id=election.id)
    # A second ballot for a different position is still a second ballot.
    with pytest.raises(ConflictError, match="already voted"):
        cast_vote(db_session, principal, election_id=election.id, candidate_id=second.id, clock=clock)
    assert db_session.scalar(select(func.count()).select_from(Vote)) == 1


def test_vote_rejected_outside_active_window(
    db_session: Session,
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    principal_for: Callable[[User], Principal],
    clock,
) -> None:
    voter, election = _ballot_box(make_user, make_club, make_election, starts_in=timedelta(hours=1))
    candidate_id = election.candidates[0].id

    with pytest.raises(ConflictError, match="not currently active"):
        cast_vote(db_session, principal_for(voter), election_id=election.id, candidate_id=candidate_id, clock=clock)

    clock.advance(days=2)
    with pytest.raises(ConflictError, match="not currently active"):
        cast_vote(db_session, principal_for(voter), election_id=election.id, candidate_id=candidate_id, clock=clock)


def test_non_member_cannot_vote(
    db_session: Session,
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    principal_for: Callable[[User], Principal],
    clock,
) -> None:
    _, election = _ballot_box(make_user, make_club, make_election)
    outsider = make_user()

    with pytest.raises(ForbiddenError):
        cast_vote(
            db_session,
            principal_for(outsider),
            election_id=election.id,
            candidate_id=election.candidates[0].id,
            clock=clock,
        )


def test_candidate_must_belong_to_election(
    db_session: Session,
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    principal_for: Callable[[User], Principal],
    clock,
) -> None:
    voter, election = _ballot_box(make_user, make_club, make_election)
    other = make_election(db_session.get(Club, election.club_id), candidates=((voter, "Secretary"),))

    with pytest.raises(NotFoundError):
        cast_vote(
            db_session,
            principal_for(voter),
            election_id=election.id,
            candidate_id=other.candidates[0].id,
            clock=clock,
        )
    with pytest.raises(NotFoundError):
        cast_vote(db_session, principal_for(voter), election_id="missing", candidate_id="x", clock=clock)
