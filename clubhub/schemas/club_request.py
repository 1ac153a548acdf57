"""Schemas for club founding requests."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from clubhub.models.club_request import RequestStatus


class ClubRequestCreate(BaseModel):
    """Payload submitted by a student asking to found a club."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=2000)
    category: str = Field(..., min_length=1, max_length=50)


class ClubRequestUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    category: str | None = Field(default=None, min_length=1, max_length=50)


class ClubRequestDecision(BaseModel):
    status: RequestStatus = Field(..., description="Either approved or rejected")
    admin_feedback: str | None = Field(default=None, max_length=2000)


class ClubRequestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    category: str
    requester_id: str
    requester_name: str | None = None
    requester_email: str | None = None
    status: RequestStatus
    admin_feedback: str | None
    created_at: datetime
    updated_at: datetime


__all__ = ["ClubRequestCreate", "ClubRequestDecision", "ClubRequestRead", "ClubRequestUpdate"]
