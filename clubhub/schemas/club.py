"""Schemas for clubs and their memberships."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from clubhub.models.membership import ClubRole, MembershipStatus


class ClubCreate(BaseModel):
    """Payload used by administrators to create a club directly."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=2000)
    category: str = Field(..., min_length=1, max_length=50)


class ClubUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    category: str | None = Field(default=None, min_length=1, max_length=50)


class ClubRead(BaseModel):
    """Serialized club with its approved member count."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    category: str
    created_at: datetime
    member_count: int = 0


class MembershipDecision(BaseModel):
    status: MembershipStatus = Field(..., description="Either approved or rejected")


class RoleChange(BaseModel):
    role: ClubRole = Field(..., description="Any club role other than president")


class MemberRead(BaseModel):
    """One row of a club's member list."""

    user_id: str
    name: str
    email: str
    role: ClubRole
    status: MembershipStatus
    joined_at: datetime


class MembershipRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    club_id: str
    user_id: str
    role: ClubRole
    status: MembershipStatus


class MembershipStatusRead(BaseModel):
    """Caller's standing in a club. Unknown pairs report ``is_member=False``."""

    is_member: bool
    status: MembershipStatus | None = None
    role: ClubRole | None = None


class UserClubRead(BaseModel):
    club_id: str
    club_name: str
    category: str
    role: ClubRole
    status: MembershipStatus


__all__ = [
    "ClubCreate",
    "ClubRead",
    "ClubUpdate",
    "MemberRead",
    "MembershipDecision",
    "MembershipRead",
    "MembershipStatusRead",
    "RoleChange",
    "UserClubRead",
]
