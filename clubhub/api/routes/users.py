"""Self-service views and administrative user management."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clubhub.api.auth import get_current_principal
from clubhub.api.deps import get_db_session
from clubhub.api.errors import http_error
from clubhub.core.errors import GovernanceError
from clubhub.schemas.club import ClubRead, UserClubRead
from clubhub.schemas.user import (
    GlobalRoleAssignment,
    PresidencyRead,
    UserClubMembership,
    UserDirectoryRead,
    UserRead,
)
from clubhub.services import membership
from clubhub.services.policy import Principal

router = APIRouter(prefix="/users")


@router.get("", response_model=list[UserDirectoryRead])
def list_users(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> list[UserDirectoryRead]:
    """Admin directory of every user with their approved clubs and presidency."""
    try:
        entries = membership.list_users(session, principal)
    except GovernanceError as exc:
        raise http_error(exc) from exc

    directory: list[UserDirectoryRead] = []
    for entry in entries:
        president_of = entry.president_of
        directory.append(
            UserDirectoryRead(
                **UserRead.model_validate(entry.user).model_dump(),
                clubs=[
                    UserClubMembership(club_id=club.id, club_name=club.name, member_role=row.role)
                    for row, club in entry.clubs
                ],
                president_of=(
                    PresidencyRead(club_id=president_of.id, club_name=president_of.name)
                    if president_of is not None
                    else None
                ),
            )
        )
    return directory


@router.get("/me", response_model=UserRead)
def read_me(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> UserRead:
    return UserRead.model_validate(membership.get_user(session, principal.id))


@router.get("/me/clubs", response_model=list[UserClubRead])
def my_clubs(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> list[UserClubRead]:
    return [
        UserClubRead(
            club_id=club.id,
            club_name=club.name,
            category=club.category,
            role=row.role,
            status=row.status,
        )
        for row, club in membership.list_user_clubs(session, user_id=principal.id)
    ]


@router.get("/me/presidencies", response_model=list[ClubRead])
def my_presidencies(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> list[ClubRead]:
    clubs = membership.list_user_presidencies(session, user_id=principal.id)
    return [ClubRead.model_validate(club) for club in clubs]


@router.put("/{user_id}/role", response_model=UserRead)
def assign_role(
    user_id: str,
    payload: GlobalRoleAssignment,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> UserRead:
    try:
        user = membership.assign_global_role(
            session,
            principal,
            user_id=user_id,
            role=payload.role,
            club_id=payload.club_id,
            remove_from_clubs=payload.remove_from_clubs,
        )
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return UserRead.model_validate(user)


@router.delete("/{user_id}/clubs/{club_id}", response_model=UserRead)
def revoke_membership(
    user_id: str,
    club_id: str,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> UserRead:
    """Remove any membership, presidencies included. Returns the user's resulting profile."""
    try:
        user = membership.revoke_membership(session, principal, club_id=club_id, user_id=user_id)
    except GovernanceError as exc:
        raise http_error(exc) from exc
    return UserRead.model_validate(user)


__all__ = ["router"]
