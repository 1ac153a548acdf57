"""Membership ledger: who belongs to which club, in what role.

Also home to club administration and global role assignment, since every
one of those operations mutates memberships and must keep two facts true:
a club has at most one approved president, and a user's cached global role
matches whether they preside over any club.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from clubhub.core.errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from clubhub.db.session import atomic
from clubhub.models import (
    ASSIGNABLE_ROLES,
    AuditLog,
    Club,
    ClubRole,
    GlobalRole,
    Membership,
    MembershipStatus,
    User,
)
from clubhub.services.policy import Action, Principal, ensure_allowed

LOGGER = logging.getLogger(__name__)

_DECISIONS = (MembershipStatus.APPROVED, MembershipStatus.REJECTED)


@dataclass(slots=True, frozen=True)
class MembershipState:
    """Neutral view of a (club, user) pair; unknown pairs are not an error."""

    is_member: bool
    status: MembershipStatus | None = None
    role: ClubRole | None = None


@dataclass(slots=True, frozen=True)
class ClubSummary:
    club: Club
    member_count: int


@dataclass(slots=True, frozen=True)
class UserDirectoryEntry:
    """A user with the clubs they have been approved into."""

    user: User
    clubs: list[tuple[Membership, Club]]

    @property
    def president_of(self) -> Club | None:
        return next((club for membership, club in self.clubs if membership.is_presidency), None)


def get_club(session: Session, club_id: str) -> Club:
    club = session.get(Club, club_id)
    if club is None:
        raise NotFoundError(f"Club '{club_id}' was not found")
    return club


def get_user(session: Session, user_id: str) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User '{user_id}' was not found")
    return user


def find_membership(session: Session, *, club_id: str, user_id: str) -> Membership | None:
    return session.scalar(
        select(Membership).where(Membership.club_id == club_id, Membership.user_id == user_id)
    )


def find_approved_membership(session: Session, *, club_id: str, user_id: str) -> Membership | None:
    membership = find_membership(session, club_id=club_id, user_id=user_id)
    if membership is None or not membership.is_approved:
        return None
    return membership


def ensure_club_action(session: Session, principal: Principal, action: Action, *, club_id: str) -> None:
    """Authorize a club-scoped action against the principal's own membership row."""

    membership = None if principal.is_admin else find_membership(session, club_id=club_id, user_id=principal.id)
    ensure_allowed(principal, action, membership=membership)


def count_presidencies(session: Session, user_id: str) -> int:
    return session.scalar(
        select(func.count())
        .select_from(Membership)
        .where(
            Membership.user_id == user_id,
            Membership.role == ClubRole.PRESIDENT,
            Membership.status == MembershipStatus.APPROVED,
        )
    ) or 0


def recompute_global_role(session: Session, user: User) -> GlobalRole:
    """Project the user's presidencies onto their global role.

    Admins keep their role. Must run inside the transaction that changed the
    presidencies; pending changes are flushed first so the count sees them.
    """

    if user.role == GlobalRole.ADMIN:
        return user.role
    session.flush()
    new_role = GlobalRole.CLUB_PRESIDENT if count_presidencies(session, user.id) else GlobalRole.STUDENT
    if new_role != user.role:
        LOGGER.info(
            "global role recomputed",
            extra={"user_id": user.id, "old_role": user.role.value, "new_role": new_role.value},
        )
        user.role = new_role
    return new_role


def record_audit(
    session: Session,
    *,
    actor_id: str | None,
    action: str,
    resource_type: str,
    resource_id: str | None,
    payload: dict[str, Any] | None = None,
) -> AuditLog:
    """Stage an audit row in the current transaction."""

    log = AuditLog(
        actor_id=actor_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        payload=payload,
    )
    session.add(log)
    return log


def request_join(session: Session, *, club_id: str, user_id: str) -> Membership:
    """Create a pending membership for ``user_id`` in ``club_id``."""

    get_club(session, club_id)
    if find_membership(session, club_id=club_id, user_id=user_id) is not None:
        raise ConflictError("You have already requested to join or are a member of this club")

    membership = Membership(
        club_id=club_id,
        user_id=user_id,
        role=ClubRole.MEMBER,
        status=MembershipStatus.PENDING,
    )
    with atomic(session, conflict_message="You have already requested to join or are a member of this club"):
        session.add(membership)
    LOGGER.info("membership requested", extra={"club_id": club_id, "user_id": user_id})
    return membership


def decide_join(
    session: Session,
    principal: Principal,
    *,
    club_id: str,
    user_id: str,
    status: MembershipStatus,
) -> Membership:
    """Approve or reject a membership. Repeating a decision rewrites the same row."""

    get_club(session, club_id)
    ensure_club_action(session, principal, Action.MANAGE_MEMBERS, club_id=club_id)
    if status not in _DECISIONS:
        raise InvalidInputError("Status must be approved or rejected")

    membership = find_membership(session, club_id=club_id, user_id=user_id)
    if membership is None:
        raise NotFoundError("Membership request not found")
    if membership.role == ClubRole.PRESIDENT:
        raise ForbiddenError("The president's membership cannot be changed through this endpoint")

    with atomic(session):
        membership.status = status
    LOGGER.info(
        "membership decided",
        extra={"club_id": club_id, "user_id": user_id, "status": status.value, "actor_id": principal.id},
    )
    return membership


def change_role(
    session: Session,
    principal: Principal,
    *,
    club_id: str,
    user_id: str,
    role: ClubRole,
) -> Membership:
    get_club(session, club_id)
    ensure_club_action(session, principal, Action.MANAGE_MEMBERS, club_id=club_id)
    if role not in ASSIGNABLE_ROLES:
        raise InvalidInputError("Role must be one of member, vice_president, secretary, treasurer")

    membership = find_approved_membership(session, club_id=club_id, user_id=user_id)
    if membership is None:
        raise NotFoundError("Approved membership not found")
    if membership.role == ClubRole.PRESIDENT:
        raise ForbiddenError("The president's role cannot be changed through this endpoint")

    with atomic(session):
        membership.role = role
    return membership


def _delete_membership(session: Session, membership: Membership) -> GlobalRole:
    user = get_user(session, membership.user_id)
    session.delete(membership)
    return recompute_global_role(session, user)


def remove_member(session: Session, principal: Principal, *, club_id: str, user_id: str) -> None:
    """Remove an ordinary member. Presidencies are only removed by admins."""

    get_club(session, club_id)
    ensure_club_action(session, principal, Action.MANAGE_MEMBERS, club_id=club_id)

    membership = find_membership(session, club_id=club_id, user_id=user_id)
    if membership is None:
        raise NotFoundError("Membership not found")
    if membership.role == ClubRole.PRESIDENT:
        raise ForbiddenError("The club president cannot be removed through this endpoint")

    with atomic(session):
        _delete_membership(session, membership)
    LOGGER.info("member removed", extra={"club_id": club_id, "user_id": user_id, "actor_id": principal.id})


def revoke_membership(session: Session, principal: Principal, *, club_id: str, user_id: str) -> User:
    """Administratively remove any membership, the presidency included.

    Losing the last presidency downgrades the user to ``student`` in the same
    transaction.
    """

    ensure_allowed(principal, Action.REVOKE_MEMBERSHIPS)
    get_club(session, club_id)
    membership = find_membership(session, club_id=club_id, user_id=user_id)
    if membership is None:
        raise NotFoundError("User is not a member of this club")

    with atomic(session):
        previous_role = membership.role
        new_role = _delete_membership(session, membership)
        record_audit(
            session,
            actor_id=principal.id,
            action="membership.revoke",
            resource_type="Membership",
            resource_id=f"{club_id}:{user_id}",
            payload={"club_role": previous_role.value, "global_role": new_role.value},
        )
    return get_user(session, user_id)


def get_membership(session: Session, *, club_id: str, user_id: str) -> MembershipState:
    membership = find_membership(session, club_id=club_id, user_id=user_id)
    if membership is None:
        return MembershipState(is_member=False)
    return MembershipState(is_member=True, status=membership.status, role=membership.role)


def list_members(session: Session, *, club_id: str) -> list[tuple[Membership, User]]:
    """Members of a club with their user rows, presidents first."""

    get_club(session, club_id)
    rows = session.execute(
        select(Membership, User)
        .join(User, User.id == Membership.user_id)
        .where(Membership.club_id == club_id)
        .order_by(Membership.created_at, User.name)
    ).all()
    return sorted(
        ((membership, user) for membership, user in rows),
        key=lambda row: row[0].role != ClubRole.PRESIDENT,
    )


def list_user_clubs(session: Session, *, user_id: str) -> list[tuple[Membership, Club]]:
    rows = session.execute(
        select(Membership, Club)
        .join(Club, Club.id == Membership.club_id)
        .where(Membership.user_id == user_id)
        .order_by(Club.name)
    ).all()
    return [(membership, club) for membership, club in rows]


def list_users(session: Session, principal: Principal) -> list[UserDirectoryEntry]:
    """Every user with their approved memberships, for the admin directory."""

    ensure_allowed(principal, Action.LIST_USERS)
    users = session.scalars(select(User).order_by(User.name)).all()
    rows = session.execute(
        select(Membership, Club)
        .join(Club, Club.id == Membership.club_id)
        .where(Membership.status == MembershipStatus.APPROVED)
        .order_by(Club.name)
    ).all()
    clubs_by_user: dict[str, list[tuple[Membership, Club]]] = defaultdict(list)
    for membership, club in rows:
        clubs_by_user[membership.user_id].append((membership, club))
    return [UserDirectoryEntry(user=user, clubs=clubs_by_user.get(user.id, [])) for user in users]


def list_user_presidencies(session: Session, *, user_id: str) -> list[Club]:
    return list(
        session.scalars(
            select(Club)
            .join(Membership, Membership.club_id == Club.id)
            .where(
                Membership.user_id == user_id,
                Membership.role == ClubRole.PRESIDENT,
                Membership.status == MembershipStatus.APPROVED,
            )
            .order_by(Club.name)
        )
    )


def _member_count(session: Session, club_id: str) -> int:
    return session.scalar(
        select(func.count())
        .select_from(Membership)
        .where(Membership.club_id == club_id, Membership.status == MembershipStatus.APPROVED)
    ) or 0


def club_name_taken(session: Session, name: str, *, exclude_club_id: str | None = None) -> bool:
    stmt = select(Club.id).where(func.lower(Club.name) == name.lower())
    if exclude_club_id is not None:
        stmt = stmt.where(Club.id != exclude_club_id)
    return session.scalar(stmt) is not None


def get_club_summary(session: Session, club_id: str) -> ClubSummary:
    club = get_club(session, club_id)
    return ClubSummary(club=club, member_count=_member_count(session, club.id))


def list_clubs(session: Session) -> list[ClubSummary]:
    clubs = session.scalars(select(Club).order_by(Club.name)).all()
    return [ClubSummary(club=club, member_count=_member_count(session, club.id)) for club in clubs]


def create_club(
    session: Session,
    principal: Principal,
    *,
    name: str,
    description: str,
    category: str,
) -> Club:
    ensure_allowed(principal, Action.CREATE_CLUB)
    if club_name_taken(session, name):
        raise ConflictError("A club with this name already exists")

    club = Club(name=name, description=description, category=category)
    with atomic(session, conflict_message="A club with this name already exists"):
        session.add(club)
    LOGGER.info("club created", extra={"club_id": club.id, "actor_id": principal.id})
    return club


def update_club(session: Session, principal: Principal, *, club_id: str, fields: dict[str, Any]) -> Club:
    """Apply a partial update; only keys present in ``fields`` change."""

    club = get_club(session, club_id)
    ensure_club_action(session, principal, Action.MANAGE_CLUB, club_id=club_id)
    name = fields.get("name")
    if name is not None and club_name_taken(session, name, exclude_club_id=club_id):
        raise ConflictError("A club with this name already exists")

    with atomic(session, conflict_message="A club with this name already exists"):
        for key in ("name", "description", "category"):
            if fields.get(key) is not None:
                setattr(club, key, fields[key])
    return club


def delete_club(session: Session, principal: Principal, *, club_id: str) -> None:
    """Delete a club with everything it owns, demoting presidents left without a club."""

    ensure_allowed(principal, Action.DELETE_CLUB)
    club = get_club(session, club_id)

    with atomic(session):
        president_ids = [m.user_id for m in club.memberships if m.is_presidency]
        record_audit(
            session,
            actor_id=principal.id,
            action="club.delete",
            resource_type="Club",
            resource_id=club.id,
            payload={"name": club.name, "presidents": president_ids},
        )
        session.delete(club)
        session.flush()
        for user_id in president_ids:
            recompute_global_role(session, get_user(session, user_id))
    LOGGER.info("club deleted", extra={"club_id": club_id, "actor_id": principal.id})


def _install_president(session: Session, *, club_id: str, user_id: str) -> list[str]:
    """Make ``user_id`` the approved president of ``club_id``.

    Any other president of the club is demoted to ``member``. Returns the ids
    of every user whose presidencies changed.
    """

    affected = [user_id]
    for incumbent in session.scalars(
        select(Membership).where(
            Membership.club_id == club_id,
            Membership.role == ClubRole.PRESIDENT,
            Membership.user_id != user_id,
        )
    ):
        incumbent.role = ClubRole.MEMBER
        affected.append(incumbent.user_id)

    membership = find_membership(session, club_id=club_id, user_id=user_id)
    if membership is None:
        session.add(
            Membership(
                club_id=club_id,
                user_id=user_id,
                role=ClubRole.PRESIDENT,
                status=MembershipStatus.APPROVED,
            )
        )
    else:
        membership.role = ClubRole.PRESIDENT
        membership.status = MembershipStatus.APPROVED
    return affected


def assign_global_role(
    session: Session,
    principal: Principal,
    *,
    user_id: str,
    role: GlobalRole,
    club_id: str | None = None,
    remove_from_clubs: bool = False,
) -> User:
    """Change a user's global role, keeping presidencies consistent with it."""

    ensure_allowed(principal, Action.ASSIGN_GLOBAL_ROLES)
    user = get_user(session, user_id)

    if role == GlobalRole.CLUB_PRESIDENT:
        if club_id is None:
            raise InvalidInputError("club_id is required when assigning the club_president role")
        get_club(session, club_id)
    elif role == GlobalRole.STUDENT and count_presidencies(session, user_id) and not remove_from_clubs:
        raise ConflictError(
            "User presides over one or more clubs; set remove_from_clubs to demote them"
        )

    with atomic(session):
        if role == GlobalRole.CLUB_PRESIDENT:
            if user.role == GlobalRole.ADMIN:
                user.role = GlobalRole.STUDENT
            for affected_id in _install_president(session, club_id=club_id, user_id=user_id):
                recompute_global_role(session, get_user(session, affected_id))
        elif role == GlobalRole.STUDENT:
            for membership in session.scalars(
                select(Membership).where(Membership.user_id == user_id, Membership.role == ClubRole.PRESIDENT)
            ):
                membership.role = ClubRole.MEMBER
            user.role = GlobalRole.STUDENT
            recompute_global_role(session, user)
        else:
            user.role = GlobalRole.ADMIN
        record_audit(
            session,
            actor_id=principal.id,
            action="user.assign_role",
            resource_type="User",
            resource_id=user_id,
            payload={"role": role.value, "club_id": club_id, "remove_from_clubs": remove_from_clubs},
        )
    LOGGER.info(
        "global role assigned",
        extra={"user_id": user_id, "role": role.value, "club_id": club_id, "actor_id": principal.id},
    )
    return user


__all__ = [
    "ClubSummary",
    "MembershipState",
    "UserDirectoryEntry",
    "assign_global_role",
    "change_role",
    "club_name_taken",
    "count_presidencies",
    "create_club",
    "decide_join",
    "delete_club",
    "ensure_club_action",
    "find_approved_membership",
    "find_membership",
    "get_club",
    "get_club_summary",
    "get_membership",
    "get_user",
    "list_clubs",
    "list_members",
    "list_user_clubs",
    "list_user_presidencies",
    "list_users",
    "recompute_global_role",
    "record_audit",
    "remove_member",
    "request_join",
    "revoke_membership",
    "update_club",
]
