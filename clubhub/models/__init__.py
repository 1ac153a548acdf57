"""ORM models package."""
from .audit_log import AuditLog
from .base import Base, TimestampMixin
from .club import Club, Event
from .club_request import ClubRequest, RequestStatus
from .election import (
    ApplicationStatus,
    Candidate,
    CandidateApplication,
    Election,
    ElectionRole,
    ElectionStatus,
)
from .membership import ASSIGNABLE_ROLES, ClubRole, Membership, MembershipStatus
from .user import GlobalRole, User
from .vote import Vote

__all__ = [
    "ASSIGNABLE_ROLES",
    "ApplicationStatus",
    "AuditLog",
    "Base",
    "Candidate",
    "CandidateApplication",
    "Club",
    "ClubRequest",
    "ClubRole",
    "Election",
    "ElectionRole",
    "ElectionStatus",
    "Event",
    "GlobalRole",
    "Membership",
    "MembershipStatus",
    "RequestStatus",
    "TimestampMixin",
    "User",
    "Vote",
]
