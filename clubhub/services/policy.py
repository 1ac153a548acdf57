"""Authorization decisions for governance actions.

``is_allowed`` is a pure function of the acting principal, the action and,
where the action needs it, the principal's membership row in the club the
action targets or the owner of the targeted record. It performs no I/O;
services look the membership up and pass it in.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass

from clubhub.core.errors import ForbiddenError
from clubhub.models.membership import Membership
from clubhub.models.user import GlobalRole


class Action(str, enum.Enum):
    MANAGE_MEMBERS = "manage_members"
    MANAGE_CLUB = "manage_club"
    MANAGE_ELECTIONS = "manage_elections"
    REVIEW_APPLICATIONS = "review_applications"
    ADD_CANDIDATES = "add_candidates"
    CREATE_CLUB = "create_club"
    DELETE_CLUB = "delete_club"
    PROCESS_CLUB_REQUESTS = "process_club_requests"
    LIST_CLUB_REQUESTS = "list_club_requests"
    ASSIGN_GLOBAL_ROLES = "assign_global_roles"
    REVOKE_MEMBERSHIPS = "revoke_memberships"
    LIST_USERS = "list_users"
    EDIT_CLUB_REQUEST = "edit_club_request"
    VIEW_CLUB_REQUEST = "view_club_request"
    DELETE_CLUB_REQUEST = "delete_club_request"


CLUB_SCOPED_ACTIONS = frozenset(
    {
        Action.MANAGE_MEMBERS,
        Action.MANAGE_CLUB,
        Action.MANAGE_ELECTIONS,
        Action.REVIEW_APPLICATIONS,
        Action.ADD_CANDIDATES,
    }
)
ADMIN_ONLY_ACTIONS = frozenset(
    {
        Action.CREATE_CLUB,
        Action.DELETE_CLUB,
        Action.PROCESS_CLUB_REQUESTS,
        Action.LIST_CLUB_REQUESTS,
        Action.ASSIGN_GLOBAL_ROLES,
        Action.REVOKE_MEMBERSHIPS,
        Action.LIST_USERS,
    }
)


@dataclass(frozen=True, slots=True)
class Principal:
    """The authenticated actor of a request."""

    id: str
    global_role: GlobalRole

    @property
    def is_admin(self) -> bool:
        return self.global_role == GlobalRole.ADMIN


def is_allowed(
    principal: Principal,
    action: Action,
    *,
    membership: Membership | None = None,
    owner_id: str | None = None,
) -> bool:
    """Return whether ``principal`` may perform ``action``.

    Club-scoped actions require an approved presidency of that specific club
    for anyone but an admin; the global ``club_president`` role never grants
    authority on its own.
    """

    if action in ADMIN_ONLY_ACTIONS:
        return principal.is_admin

    if action in CLUB_SCOPED_ACTIONS:
        if principal.is_admin:
            return True
        return membership is not None and membership.user_id == principal.id and membership.is_presidency

    is_owner = owner_id is not None and owner_id == principal.id
    if action == Action.EDIT_CLUB_REQUEST:
        return is_owner
    if action in (Action.VIEW_CLUB_REQUEST, Action.DELETE_CLUB_REQUEST):
        return is_owner or principal.is_admin
    return False


def ensure_allowed(
    principal: Principal,
    action: Action,
    *,
    membership: Membership | None = None,
    owner_id: str | None = None,
) -> None:
    """Raise ``ForbiddenError`` unless ``principal`` may perform ``action``."""

    if not is_allowed(principal, action, membership=membership, owner_id=owner_id):
        raise ForbiddenError(f"Not permitted to {action.value.replace('_', ' ')}")


__all__ = [
    "ADMIN_ONLY_ACTIONS",
    "Action",
    "CLUB_SCOPED_ACTIONS",
    "Principal",
    "ensure_allowed",
    "is_allowed",
]
