"""Club founding request endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from clubhub.api.auth import get_current_principal
from clubhub.api.deps import get_db_session
from clubhub.api.errors import http_error
from clubhub.core.errors import GovernanceError
from clubhub.models import RequestStatus
from clubhub.schemas.club_request import (
    ClubRequestCreate,
    ClubRequestDecision,
    ClubRequestRead,
    ClubRequestUpdate,
)
from clubhub.services import club_requests
from clubhub.services.policy import Principal

router = APIRouter(prefix="/club-requests")


@router.get("", response_model=list[ClubRequestRead])
def list_requests(
    request_status: RequestStatus | None = Query(default=None, alias="status"),
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> list[ClubRequestRead]:
    try:
        rows = club_requests.list_requests(session, principal, status=request_status)
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return [ClubRequestRead.model_validate(row) for row in rows]


@router.get("/mine", response_model=list[ClubRequestRead])
def list_my_requests(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> list[ClubRequestRead]:
    return [ClubRequestRead.model_validate(row) for row in club_requests.list_my_requests(session, principal)]


@router.get("/{request_id}", response_model=ClubRequestRead)
def get_request(
    request_id: str,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> ClubRequestRead:
    try:
        return ClubRequestRead.model_validate(club_requests.get_request(session, principal, request_id=request_id))
    except GovernanceError as exc:
        raise http_error(exc) from exc


@router.post("", response_model=ClubRequestRead, status_code=status.HTTP_201_CREATED)
def submit_request(
    payload: ClubRequestCreate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> ClubRequestRead:
    try:
        row = club_requests.submit_request(
            session,
            principal,
            name=payload.name,
            description=payload.description,
            category=payload.category,
        )
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return ClubRequestRead.model_validate(row)


@router.put("/{request_id}", response_model=ClubRequestRead)
def edit_request(
    request_id: str,
    payload: ClubRequestUpdate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> ClubRequestRead:
    try:
        row = club_requests.edit_request(
            session, principal, request_id=request_id, fields=payload.model_dump(exclude_unset=True)
        )
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return ClubRequestRead.model_validate(row)


@router.put("/{request_id}/process", response_model=ClubRequestRead)
def process_request(
    request_id: str,
    payload: ClubRequestDecision,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> ClubRequestRead:
    try:
        row = club_requests.process_request(
            session,
            principal,
            request_id=request_id,
            decision=payload.status,
            feedback=payload.admin_feedback,
        )
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return ClubRequestRead.model_validate(row)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_request(
    request_id: str,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> None:
    try:
        club_requests.delete_request(session, principal, request_id=request_id)
    except GovernanceError as exc:
        raise http_error(exc) from exc


__all__ = ["router"]
