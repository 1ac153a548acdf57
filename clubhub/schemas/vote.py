"""Schemas for ballots and election results."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from clubhub.models.election import ElectionStatus


class VoteCreate(BaseModel):
    candidate_id: str


class VoteRead(BaseModel):
    """Ballot receipt returned to the voter."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    election_id: str
    candidate_id: str
    voter_id: str
    created_at: datetime


class HasVotedRead(BaseModel):
    has_voted: bool


class CandidateTally(BaseModel):
    candidate_id: str
    user_id: str
    name: str
    position: str
    vote_count: int


class ElectionResults(BaseModel):
    """Per-candidate tallies ordered by position, then by descending vote count."""

    election_id: str
    status: ElectionStatus
    total_votes: int
    results: list[CandidateTally]


__all__ = ["CandidateTally", "ElectionResults", "HasVotedRead", "VoteCreate", "VoteRead"]
