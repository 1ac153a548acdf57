"""Ballot ORM model."""
from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubhub.models.base import Base, TimestampMixin


class Vote(TimestampMixin, Base):
    """One ballot per voter per election, whatever the number of positions."""

    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("election_id", "voter_id", name="uq_votes_election_voter"),
        Index("ix_votes_candidate_id", "candidate_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    election_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("elections.id", ondelete="CASCADE"), nullable=False
    )
    candidate_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False
    )
    voter_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    election = relationship("Election", back_populates="votes")
    candidate = relationship("Candidate", back_populates="votes")


__all__ = ["Vote"]
