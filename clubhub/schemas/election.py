"""Schemas for elections, contested roles, applications and candidates."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from clubhub.models.election import ApplicationStatus, ElectionStatus


class ElectionCreate(BaseModel):
    """Payload for scheduling an election. Naive datetimes are read as UTC."""

    club_id: str
    title: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    start_date: datetime
    end_date: datetime


class ElectionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    club_id: str
    club_name: str | None = None
    title: str
    description: str | None
    start_date: datetime
    end_date: datetime
    status: ElectionStatus


class ElectionRoleCreate(BaseModel):
    role_name: str = Field(..., min_length=1, max_length=50)
    description: str = Field(default="", max_length=2000)


class ElectionRoleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    election_id: str
    role_name: str
    description: str


class CandidateCreate(BaseModel):
    """Direct nomination by an administrator or the club president."""

    user_id: str
    position: str = Field(..., min_length=1, max_length=50)
    statement: str = Field(default="", max_length=2000)


class CandidateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    election_id: str
    user_id: str
    role_id: str | None
    position: str
    statement: str


class ElectionDetail(ElectionRead):
    roles: list[ElectionRoleRead] = Field(default_factory=list)
    candidates: list[CandidateRead] = Field(default_factory=list)


class CandidateApplicationCreate(BaseModel):
    role_id: str
    statement: str = Field(default="", max_length=2000)


class CandidateApplicationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    election_id: str
    role_id: str
    user_id: str
    statement: str
    status: ApplicationStatus
    created_at: datetime


class ApplicationDecision(BaseModel):
    status: ApplicationStatus = Field(..., description="Either approved or rejected")


__all__ = [
    "ApplicationDecision",
    "CandidateApplicationCreate",
    "CandidateApplicationRead",
    "CandidateCreate",
    "CandidateRead",
    "ElectionCreate",
    "ElectionDetail",
    "ElectionRead",
    "ElectionRoleCreate",
    "ElectionRoleRead",
]
