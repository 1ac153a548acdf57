"""Pydantic schemas package."""

from .club import (
    ClubCreate,
    ClubRead,
    ClubUpdate,
    MemberRead,
    MembershipDecision,
    MembershipRead,
    MembershipStatusRead,
    RoleChange,
    UserClubRead,
)
from .club_request import ClubRequestCreate, ClubRequestDecision, ClubRequestRead, ClubRequestUpdate
from .election import (
    ApplicationDecision,
    CandidateApplicationCreate,
    CandidateApplicationRead,
    CandidateCreate,
    CandidateRead,
    ElectionCreate,
    ElectionDetail,
    ElectionRead,
    ElectionRoleCreate,
    ElectionRoleRead,
)
from .user import GlobalRoleAssignment, PresidencyRead, UserClubMembership, UserDirectoryRead, UserRead
from .vote import CandidateTally, ElectionResults, HasVotedRead, VoteCreate, VoteRead

__all__ = [
    "ApplicationDecision",
    "CandidateApplicationCreate",
    "CandidateApplicationRead",
    "CandidateCreate",
    "CandidateRead",
    "CandidateTally",
    "ClubCreate",
    "ClubRead",
    "ClubRequestCreate",
    "ClubRequestDecision",
    "ClubRequestRead",
    "ClubRequestUpdate",
    "ClubUpdate",
    "ElectionCreate",
    "ElectionDetail",
    "ElectionRead",
    "ElectionResults",
    "ElectionRoleCreate",
    "ElectionRoleRead",
    "GlobalRoleAssignment",
    "PresidencyRead",
    "HasVotedRead",
    "MemberRead",
    "MembershipDecision",
    "MembershipRead",
    "MembershipStatusRead",
    "RoleChange",
    "UserClubMembership",
    "UserClubRead",
    "UserDirectoryRead",
    "UserRead",
    "VoteCreate",
    "VoteRead",
]
