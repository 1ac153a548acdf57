"""Election, candidacy and voting endpoints."""
from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from clubhub.api.auth import get_current_principal
from clubhub.api.deps import get_clock, get_db_session, get_election_service
from clubhub.api.errors import http_error
from clubhub.core.errors import GovernanceError
from clubhub.schemas.election import (
    ApplicationDecision,
    CandidateApplicationCreate,
    CandidateApplicationRead,
    CandidateCreate,
    CandidateRead,
    ElectionCreate,
    ElectionDetail,
    ElectionRead,
    ElectionRoleCreate,
    ElectionRoleRead,
)
from clubhub.schemas.vote import CandidateTally, ElectionResults, HasVotedRead, VoteCreate, VoteRead
from clubhub.services import voting
from clubhub.services.elections import ElectionService
from clubhub.services.policy import Principal

router = APIRouter(prefix="/elections")


@router.get("", response_model=list[ElectionRead])
def list_elections(
    club_id: str | None = Query(default=None),
    service: ElectionService = Depends(get_election_service),
) -> list[ElectionRead]:
    return [ElectionRead.model_validate(election) for election in service.list_elections(club_id=club_id)]


@router.get("/{election_id}", response_model=ElectionDetail)
def get_election(election_id: str, service: ElectionService = Depends(get_election_service)) -> ElectionDetail:
    try:
        return ElectionDetail.model_validate(service.load(election_id))
    except GovernanceError as exc:
        raise http_error(exc) from exc


@router.post("", response_model=ElectionRead, status_code=status.HTTP_201_CREATED)
def create_election(
    payload: ElectionCreate,
    service: ElectionService = Depends(get_election_service),
    principal: Principal = Depends(get_current_principal),
) -> ElectionRead:
    try:
        election = service.create_election(
            principal,
            club_id=payload.club_id,
            title=payload.title,
            description=payload.description,
            start_date=payload.start_date,
            end_date=payload.end_date,
        )
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return ElectionRead.model_validate(election)


@router.get("/{election_id}/roles", response_model=list[ElectionRoleRead])
def list_roles(
    election_id: str,
    service: ElectionService = Depends(get_election_service),
    principal: Principal = Depends(get_current_principal),
) -> list[ElectionRoleRead]:
    try:
        return [ElectionRoleRead.model_validate(role) for role in service.list_roles(election_id=election_id)]
    except GovernanceError as exc:
        raise http_error(exc) from exc


@router.post("/{election_id}/roles", response_model=ElectionRoleRead, status_code=status.HTTP_201_CREATED)
def add_role(
    election_id: str,
    payload: ElectionRoleCreate,
    service: ElectionService = Depends(get_election_service),
    principal: Principal = Depends(get_current_principal),
) -> ElectionRoleRead:
    try:
        role = service.add_role(
            principal, election_id=election_id, role_name=payload.role_name, description=payload.description
        )
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return ElectionRoleRead.model_validate(role)


@router.delete("/{election_id}/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_role(
    election_id: str,
    role_id: str,
    service: ElectionService = Depends(get_election_service),
    principal: Principal = Depends(get_current_principal),
) -> None:
    try:
        service.remove_role(principal, election_id=election_id, role_id=role_id)
    except GovernanceError as exc:
        raise http_error(exc) from exc


@router.post(
    "/{election_id}/apply",
    response_model=CandidateApplicationRead,
    status_code=status.HTTP_201_CREATED,
)
def apply_for_role(
    election_id: str,
    payload: CandidateApplicationCreate,
    service: ElectionService = Depends(get_election_service),
    principal: Principal = Depends(get_current_principal),
) -> CandidateApplicationRead:
    try:
        application = service.apply(
            principal, election_id=election_id, role_id=payload.role_id, statement=payload.statement
        )
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return CandidateApplicationRead.model_validate(application)


@router.get("/{election_id}/applications", response_model=list[CandidateApplicationRead])
def list_applications(
    election_id: str,
    service: ElectionService = Depends(get_election_service),
    principal: Principal = Depends(get_current_principal),
) -> list[CandidateApplicationRead]:
    try:
        applications = service.list_applications(principal, election_id=election_id)
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return [CandidateApplicationRead.model_validate(application) for application in applications]


@router.put("/{election_id}/applications/{application_id}", response_model=CandidateApplicationRead)
def decide_application(
    election_id: str,
    application_id: str,
    payload: ApplicationDecision,
    service: ElectionService = Depends(get_election_service),
    principal: Principal = Depends(get_current_principal),
) -> CandidateApplicationRead:
    try:
        application = service.decide_application(
            principal, election_id=election_id, application_id=application_id, decision=payload.status
        )
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return CandidateApplicationRead.model_validate(application)


@router.post("/{election_id}/candidates", response_model=CandidateRead, status_code=status.HTTP_201_CREATED)
def add_candidate(
    election_id: str,
    payload: CandidateCreate,
    service: ElectionService = Depends(get_election_service),
    principal: Principal = Depends(get_current_principal),
) -> CandidateRead:
    try:
        candidate = service.add_candidate(
            principal,
            election_id=election_id,
            user_id=payload.user_id,
            position=payload.position,
            statement=payload.statement,
        )
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return CandidateRead.model_validate(candidate)


@router.post("/{election_id}/vote", response_model=VoteRead, status_code=status.HTTP_201_CREATED)
def cast_vote(
    election_id: str,
    payload: VoteCreate,
    session: Session = Depends(get_db_session),
    clock: Callable[[], datetime] = Depends(get_clock),
    principal: Principal = Depends(get_current_principal),
) -> VoteRead:
    try:
        vote = voting.cast_vote(
            session, principal, election_id=election_id, candidate_id=payload.candidate_id, clock=clock
        )
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return VoteRead.model_validate(vote)


@router.get("/{election_id}/has-voted", response_model=HasVotedRead)
def has_voted(
    election_id: str,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> HasVotedRead:
    return HasVotedRead(has_voted=voting.has_voted(session, principal, election_id=election_id))


@router.get("/{election_id}/results", response_model=ElectionResults)
def election_results(election_id: str, service: ElectionService = Depends(get_election_service)) -> ElectionResults:
    try:
        result = service.results(election_id=election_id)
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return ElectionResults(
        election_id=result.election.id,
        status=result.election.status,
        total_votes=result.total_votes,
        results=[
            CandidateTally(
                candidate_id=tally.candidate_id,
                user_id=tally.user_id,
                name=tally.name,
                position=tally.position,
                vote_count=tally.vote_count,
            )
            for tally in result.tallies
        ],
    )


__all__ = ["router"]
