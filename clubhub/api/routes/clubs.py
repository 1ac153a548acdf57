"""Club and membership endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from clubhub.api.auth import get_current_principal
from clubhub.api.deps import get_db_session
from clubhub.api.errors import http_error
from clubhub.core.errors import GovernanceError
from clubhub.schemas.club import (
    ClubCreate,
    ClubRead,
    ClubUpdate,
    MemberRead,
    MembershipDecision,
    MembershipRead,
    MembershipStatusRead,
    RoleChange,
)
from clubhub.services import membership
from clubhub.services.membership import ClubSummary
from clubhub.services.policy import Principal

router = APIRouter(prefix="/clubs")


def _club_read(summary: ClubSummary) -> ClubRead:
    return ClubRead.model_validate(summary.club).model_copy(update={"member_count": summary.member_count})


@router.get("", response_model=list[ClubRead])
def list_clubs(session: Session = Depends(get_db_session)) -> list[ClubRead]:
    return [_club_read(summary) for summary in membership.list_clubs(session)]


@router.get("/{club_id}", response_model=ClubRead)
def get_club(club_id: str, session: Session = Depends(get_db_session)) -> ClubRead:
    try:
        return _club_read(membership.get_club_summary(session, club_id))
    except GovernanceError as exc:
        raise http_error(exc) from exc


@router.post("", response_model=ClubRead, status_code=status.HTTP_201_CREATED)
def create_club(
    payload: ClubCreate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> ClubRead:
    try:
        club = membership.create_club(
            session,
            principal,
            name=payload.name,
            description=payload.description,
            category=payload.category,
        )
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return ClubRead.model_validate(club)


@router.put("/{club_id}", response_model=ClubRead)
def update_club(
    club_id: str,
    payload: ClubUpdate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> ClubRead:
    try:
        membership.update_club(session, principal, club_id=club_id, fields=payload.model_dump(exclude_unset=True))
        return _club_read(membership.get_club_summary(session, club_id))
    except GovernanceError as exc:
        raise http_error(exc) from exc


@router.delete("/{club_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_club(
    club_id: str,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> None:
    try:
        membership.delete_club(session, principal, club_id=club_id)
    except GovernanceError as exc:
        raise http_error(exc) from exc


@router.post("/{club_id}/join", response_model=MembershipRead, status_code=status.HTTP_201_CREATED)
def join_club(
    club_id: str,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> MembershipRead:
    try:
        row = membership.request_join(session, club_id=club_id, user_id=principal.id)
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return MembershipRead.model_validate(row)


@router.get("/{club_id}/members", response_model=list[MemberRead])
def list_members(club_id: str, session: Session = Depends(get_db_session)) -> list[MemberRead]:
    try:
        rows = membership.list_members(session, club_id=club_id)
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return [
        MemberRead(
            user_id=user.id,
            name=user.name,
            email=user.email,
            role=row.role,
            status=row.status,
            joined_at=row.created_at,
        )
        for row, user in rows
    ]


@router.put("/{club_id}/members/{user_id}", response_model=MembershipRead)
def decide_membership(
    club_id: str,
    user_id: str,
    payload: MembershipDecision,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> MembershipRead:
    try:
        row = membership.decide_join(session, principal, club_id=club_id, user_id=user_id, status=payload.status)
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return MembershipRead.model_validate(row)


@router.put("/{club_id}/members/{user_id}/role", response_model=MembershipRead)
def change_member_role(
    club_id: str,
    user_id: str,
    payload: RoleChange,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> MembershipRead:
    try:
        row = membership.change_role(session, principal, club_id=club_id, user_id=user_id, role=payload.role)
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return MembershipRead.model_validate(row)


@router.delete("/{club_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    club_id: str,
    user_id: str,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> None:
    try:
        membership.remove_member(session, principal, club_id=club_id, user_id=user_id)
    except GovernanceError as exc:
        raise http_error(exc) from exc


@router.get("/{club_id}/membership", response_model=MembershipStatusRead)
def my_membership(
    club_id: str,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> MembershipStatusRead:
    state = membership.get_membership(session, club_id=club_id, user_id=principal.id)
    return MembershipStatusRead(is_member=state.is_member, status=state.status, role=state.role)


__all__ = ["router"]
