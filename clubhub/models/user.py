"""User ORM model."""
from __future__ import annotations

import enum
import uuid

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubhub.models.base import Base, TimestampMixin, value_enum


class GlobalRole(str, enum.Enum):
    STUDENT = "student"
    CLUB_PRESIDENT = "club_president"
    ADMIN = "admin"


class User(TimestampMixin, Base):
    """A student or administrator.

    ``role`` is a cached projection of the user's presidencies (plus the
    explicit admin grant) and is recomputed whenever a presidency changes.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    student_id: Mapped[str | None] = mapped_column(String(20), unique=True)
    role: Mapped[GlobalRole] = mapped_column(
        value_enum(GlobalRole, "global_role"), nullable=False, default=GlobalRole.STUDENT
    )

    memberships = relationship("Membership", back_populates="user", cascade="all, delete-orphan")
    club_requests = relationship("ClubRequest", back_populates="requester", cascade="all, delete-orphan")
    audit_logs = relationship("AuditLog", back_populates="actor")


__all__ = ["GlobalRole", "User"]
