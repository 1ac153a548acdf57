"""Election ORM models: elections, contested roles, applications and candidates."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubhub.models.base import Base, TimestampMixin, value_enum


class ElectionStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Election(TimestampMixin, Base):
    """An officer election held by one club.

    ``status`` is persisted for list filtering and re-derived from the
    time window whenever it gates behaviour.
    """

    __tablename__ = "elections"
    __table_args__ = (
        Index("ix_elections_club_id", "club_id"),
        Index("ix_elections_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    club_id: Mapped[str] = mapped_column(String(36), ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[ElectionStatus] = mapped_column(
        value_enum(ElectionStatus, "election_status"), nullable=False, default=ElectionStatus.UPCOMING
    )

    club = relationship("Club", back_populates="elections")
    roles = relationship(
        "ElectionRole",
        back_populates="election",
        cascade="all, delete-orphan",
        order_by="ElectionRole.role_name",
    )
    applications = relationship("CandidateApplication", back_populates="election", cascade="all, delete-orphan")
    candidates = relationship("Candidate", back_populates="election", cascade="all, delete-orphan")
    votes = relationship("Vote", back_populates="election", cascade="all, delete-orphan")

    @property
    def club_name(self) -> str | None:
        return self.club.name if self.club is not None else None


class ElectionRole(TimestampMixin, Base):
    """A position to be filled in an election."""

    __tablename__ = "election_roles"
    __table_args__ = (UniqueConstraint("election_id", "role_name", name="uq_election_roles_election_name"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    election_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("elections.id", ondelete="CASCADE"), nullable=False
    )
    role_name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    election = relationship("Election", back_populates="roles")
    applications = relationship("CandidateApplication", back_populates="role", cascade="all, delete-orphan")
    candidates = relationship("Candidate", back_populates="role")


class CandidateApplication(TimestampMixin, Base):
    """A member's application to stand for one role."""

    __tablename__ = "candidate_applications"
    __table_args__ = (
        UniqueConstraint(
            "election_id", "user_id", "role_id", name="uq_candidate_applications_election_user_role"
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    election_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("elections.id", ondelete="CASCADE"), nullable=False
    )
    role_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("election_roles.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    statement: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[ApplicationStatus] = mapped_column(
        value_enum(ApplicationStatus, "application_status"), nullable=False, default=ApplicationStatus.PENDING
    )

    election = relationship("Election", back_populates="applications")
    role = relationship("ElectionRole", back_populates="applications")
    applicant = relationship("User")


class Candidate(TimestampMixin, Base):
    """A user standing in an election. One candidacy per user per election."""

    __tablename__ = "candidates"
    __table_args__ = (UniqueConstraint("election_id", "user_id", name="uq_candidates_election_user"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    election_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("elections.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("election_roles.id", ondelete="SET NULL"))
    position: Mapped[str] = mapped_column(String(50), nullable=False)
    statement: Mapped[str] = mapped_column(Text, nullable=False, default="")

    election = relationship("Election", back_populates="candidates")
    role = relationship("ElectionRole", back_populates="candidates")
    user = relationship("User")
    votes = relationship("Vote", back_populates="candidate", cascade="all, delete-orphan")


__all__ = [
    "ApplicationStatus",
    "Candidate",
    "CandidateApplication",
    "Election",
    "ElectionRole",
    "ElectionStatus",
]
