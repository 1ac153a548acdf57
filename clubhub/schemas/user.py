"""Schemas for user profiles and global role assignment."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from clubhub.models.membership import ClubRole
from clubhub.models.user import GlobalRole


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    student_id: str | None
    role: GlobalRole


class UserClubMembership(BaseModel):
    club_id: str
    club_name: str
    member_role: ClubRole


class PresidencyRead(BaseModel):
    club_id: str
    club_name: str


class UserDirectoryRead(UserRead):
    """Admin directory row: the user plus their approved clubs."""

    clubs: list[UserClubMembership] = Field(default_factory=list)
    president_of: PresidencyRead | None = None


class GlobalRoleAssignment(BaseModel):
    """Administrative change of a user's global role."""

    role: GlobalRole
    club_id: str | None = Field(
        default=None,
        description="Club the user will preside over; required when role is club_president",
    )
    remove_from_clubs: bool = Field(
        default=False,
        description="Confirm demotion of the user's presidencies when downgrading to student",
    )


__all__ = [
    "GlobalRoleAssignment",
    "PresidencyRead",
    "UserClubMembership",
    "UserDirectoryRead",
    "UserRead",
]
