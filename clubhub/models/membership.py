"""Club membership ORM model."""
from __future__ import annotations

import enum
import uuid

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubhub.models.base import Base, TimestampMixin, value_enum


class ClubRole(str, enum.Enum):
    MEMBER = "member"
    PRESIDENT = "president"
    VICE_PRESIDENT = "vice_president"
    SECRETARY = "secretary"
    TREASURER = "treasurer"


class MembershipStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Roles reachable through ordinary role edits; the presidency is not one of them.
ASSIGNABLE_ROLES = frozenset(
    {ClubRole.MEMBER, ClubRole.VICE_PRESIDENT, ClubRole.SECRETARY, ClubRole.TREASURER}
)


class Membership(TimestampMixin, Base):
    """A user's standing in one club.

    At most one approved ``president`` row exists per club. The database
    does not enforce this; every role-changing service does.
    """

    __tablename__ = "memberships"
    __table_args__ = (
        UniqueConstraint("club_id", "user_id", name="uq_memberships_club_user"),
        Index("ix_memberships_user_id", "user_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    club_id: Mapped[str] = mapped_column(String(36), ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role: Mapped[ClubRole] = mapped_column(value_enum(ClubRole, "club_role"), nullable=False, default=ClubRole.MEMBER)
    status: Mapped[MembershipStatus] = mapped_column(
        value_enum(MembershipStatus, "membership_status"), nullable=False, default=MembershipStatus.PENDING
    )

    club = relationship("Club", back_populates="memberships")
    user = relationship("User", back_populates="memberships")

    @property
    def is_approved(self) -> bool:
        return self.status == MembershipStatus.APPROVED

    @property
    def is_presidency(self) -> bool:
        return self.is_approved and self.role == ClubRole.PRESIDENT


__all__ = ["ASSIGNABLE_ROLES", "ClubRole", "Membership", "MembershipStatus"]
