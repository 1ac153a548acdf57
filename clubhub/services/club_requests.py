"""Club founding requests and their approval workflow."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from clubhub.core.errors import ConflictError, InvalidInputError, NotFoundError
from clubhub.db.session import atomic
from clubhub.models import Club, ClubRequest, ClubRole, Membership, MembershipStatus, RequestStatus
from clubhub.obs.metrics import CLUB_REQUEST_DECISION_COUNTER
from clubhub.services.membership import club_name_taken, get_user, recompute_global_role, record_audit
from clubhub.services.policy import Action, Principal, ensure_allowed

LOGGER = logging.getLogger(__name__)

_EDITABLE_FIELDS = ("name", "description", "category")


class ClubRequestError(ConflictError):
    """Raised when a request cannot move to the asked-for state."""


def _pending_request_named(session: Session, name: str, *, exclude_id: str | None = None) -> bool:
    stmt = select(ClubRequest.id).where(
        func.lower(ClubRequest.name) == name.lower(),
        ClubRequest.status == RequestStatus.PENDING,
    )
    if exclude_id is not None:
        stmt = stmt.where(ClubRequest.id != exclude_id)
    return session.scalar(stmt) is not None


def _ensure_name_available(session: Session, name: str, *, exclude_id: str | None = None) -> None:
    if club_name_taken(session, name):
        raise ConflictError("A club with this name already exists")
    if _pending_request_named(session, name, exclude_id=exclude_id):
        raise ConflictError("A pending request for this club name already exists")


def _load(session: Session, request_id: str) -> ClubRequest:
    club_request = session.get(ClubRequest, request_id)
    if club_request is None:
        raise NotFoundError("Club request not found")
    return club_request


def submit_request(
    session: Session,
    principal: Principal,
    *,
    name: str,
    description: str = "",
    category: str = "",
) -> ClubRequest:
    """Ask to found a club; the name must be free among clubs and pending requests."""

    _ensure_name_available(session, name)
    club_request = ClubRequest(
        name=name,
        description=description,
        category=category,
        requester_id=principal.id,
        status=RequestStatus.PENDING,
    )
    with atomic(session):
        session.add(club_request)
    LOGGER.info("club request submitted", extra={"request_id": club_request.id, "requester_id": principal.id})
    return club_request


def edit_request(
    session: Session,
    principal: Principal,
    *,
    request_id: str,
    fields: dict[str, Any],
) -> ClubRequest:
    club_request = _load(session, request_id)
    ensure_allowed(principal, Action.EDIT_CLUB_REQUEST, owner_id=club_request.requester_id)
    if club_request.status != RequestStatus.PENDING:
        raise ClubRequestError("Cannot update a request that has already been processed")

    name = fields.get("name") or club_request.name
    _ensure_name_available(session, name, exclude_id=club_request.id)

    with atomic(session):
        for key in _EDITABLE_FIELDS:
            if fields.get(key) is not None:
                setattr(club_request, key, fields[key])
    return club_request


def process_request(
    session: Session,
    principal: Principal,
    *,
    request_id: str,
    decision: RequestStatus,
    feedback: str | None = None,
) -> ClubRequest:
    """Approve or reject a pending request.

    Approval creates the club, its founding presidency and the requester's
    promotion in a single transaction. Nothing is written if any step fails.
    """

    ensure_allowed(principal, Action.PROCESS_CLUB_REQUESTS)
    if decision not in (RequestStatus.APPROVED, RequestStatus.REJECTED):
        raise InvalidInputError("Status must be either approved or rejected")
    club_request = _load(session, request_id)
    if club_request.status != RequestStatus.PENDING:
        raise ClubRequestError("This request has already been processed")

    club_id: str | None = None
    with atomic(session, conflict_message="A club with this name already exists"):
        # Another admin may have decided the request since it was loaded.
        claimed = session.execute(
            update(ClubRequest)
            .where(ClubRequest.id == club_request.id, ClubRequest.status == RequestStatus.PENDING)
            .values(status=decision, admin_feedback=feedback or "")
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            raise ClubRequestError("This request has already been processed")
        session.refresh(club_request)

        if decision == RequestStatus.APPROVED:
            if club_name_taken(session, club_request.name):
                raise ConflictError("A club with this name already exists")
            club = Club(
                name=club_request.name,
                description=club_request.description,
                category=club_request.category,
            )
            session.add(club)
            session.flush()
            club_id = club.id
            session.add(
                Membership(
                    club_id=club.id,
                    user_id=club_request.requester_id,
                    role=ClubRole.PRESIDENT,
                    status=MembershipStatus.APPROVED,
                )
            )
            recompute_global_role(session, get_user(session, club_request.requester_id))

        record_audit(
            session,
            actor_id=principal.id,
            action=f"club_request.{decision.value}",
            resource_type="ClubRequest",
            resource_id=club_request.id,
            payload={"name": club_request.name, "club_id": club_id, "feedback": feedback},
        )

    CLUB_REQUEST_DECISION_COUNTER.labels(decision=decision.value).inc()
    LOGGER.info(
        "club request processed",
        extra={"request_id": request_id, "decision": decision.value, "club_id": club_id, "actor_id": principal.id},
    )
    return club_request


def delete_request(session: Session, principal: Principal, *, request_id: str) -> None:
    """Requesters may withdraw a pending request; admins may delete any request."""

    club_request = _load(session, request_id)
    ensure_allowed(principal, Action.DELETE_CLUB_REQUEST, owner_id=club_request.requester_id)
    if not principal.is_admin and club_request.status != RequestStatus.PENDING:
        raise ClubRequestError("Cannot delete a request that has already been processed")

    with atomic(session):
        session.delete(club_request)


def get_request(session: Session, principal: Principal, *, request_id: str) -> ClubRequest:
    club_request = _load(session, request_id)
    ensure_allowed(principal, Action.VIEW_CLUB_REQUEST, owner_id=club_request.requester_id)
    return club_request


def list_requests(session: Session, principal: Principal, *, status: RequestStatus | None = None) -> list[ClubRequest]:
    ensure_allowed(principal, Action.LIST_CLUB_REQUESTS)
    stmt = select(ClubRequest).order_by(ClubRequest.created_at.desc())
    if status is not None:
        stmt = stmt.where(ClubRequest.status == status)
    return list(session.scalars(stmt))


def list_my_requests(session: Session, principal: Principal) -> list[ClubRequest]:
    return list(
        session.scalars(
            select(ClubRequest)
            .where(ClubRequest.requester_id == principal.id)
            .order_by(ClubRequest.created_at.desc())
        )
    )


__all__ = [
    "ClubRequestError",
    "delete_request",
    "edit_request",
    "get_request",
    "list_my_requests",
    "list_requests",
    "process_request",
    "submit_request",
]
