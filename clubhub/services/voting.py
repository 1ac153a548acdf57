"""Voting ledger: one ballot per voter per election."""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from clubhub.core.errors import ConflictError, ForbiddenError, NotFoundError
from clubhub.db.session import atomic
from clubhub.models import Candidate, ElectionStatus, Vote
from clubhub.obs.metrics import VOTES_CAST_COUNTER
from clubhub.services.elections import ElectionService
from clubhub.services.membership import find_approved_membership
from clubhub.services.policy import Principal

LOGGER = logging.getLogger(__name__)

_ALREADY_VOTED = "You have already voted in this election"


def cast_vote(
    session: Session,
    principal: Principal,
    *,
    election_id: str,
    candidate_id: str,
    clock: Callable[[], datetime] | None = None,
) -> Vote:
    """Record the principal's ballot.

    The ballot covers the whole election, not one position: a second vote is
    refused whichever candidate it names.
    """

    election = ElectionService(session, clock=clock).load(election_id)
    if election.status != ElectionStatus.ACTIVE:
        raise ConflictError("This election is not currently active")
    if find_approved_membership(session, club_id=election.club_id, user_id=principal.id) is None:
        raise ForbiddenError("You must be a member of this club to vote")

    candidate = session.get(Candidate, candidate_id)
    if candidate is None or candidate.election_id != election.id:
        raise NotFoundError("Candidate not found in this election")
    if has_voted(session, principal, election_id=election.id):
        raise ConflictError(_ALREADY_VOTED)

    vote = Vote(election_id=election.id, candidate_id=candidate.id, voter_id=principal.id)
    with atomic(session, conflict_message=_ALREADY_VOTED):
        session.add(vote)

    VOTES_CAST_COUNTER.inc()
    LOGGER.info("vote recorded", extra={"election_id": election.id, "vote_id": vote.id})
    return vote


def has_voted(session: Session, principal: Principal, *, election_id: str) -> bool:
    return (
        session.scalar(
            select(Vote.id).where(Vote.election_id == election_id, Vote.voter_id == principal.id)
        )
        is not None
    )


__all__ = ["cast_vote", "has_voted"]
