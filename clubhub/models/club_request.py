"""Club founding request ORM model."""
from __future__ import annotations

import enum
import uuid

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubhub.models.base import Base, TimestampMixin, value_enum


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ClubRequest(TimestampMixin, Base):
    """A user's request to found a club, decided by an admin."""

    __tablename__ = "club_requests"
    __table_args__ = (
        Index("ix_club_requests_status", "status"),
        Index("ix_club_requests_requester_id", "requester_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    requester_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[RequestStatus] = mapped_column(
        value_enum(RequestStatus, "club_request_status"), nullable=False, default=RequestStatus.PENDING
    )
    admin_feedback: Mapped[str | None] = mapped_column(Text)

    requester = relationship("User", back_populates="club_requests")

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    @property
    def requester_name(self) -> str | None:
        return self.requester.name if self.requester is not None else None

    @property
    def requester_email(self) -> str | None:
        return self.requester.email if self.requester is not None else None


__all__ = ["ClubRequest", "RequestStatus"]
