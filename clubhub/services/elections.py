"""Election lifecycle: scheduling, contested roles, candidacies and tabulation.

Status is derived from the election window and persisted. ``sync_status`` is
the single place that advances it; it runs on every read that gates
behaviour and in the periodic sweeper, and never moves an election back.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clubhub.core.errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from clubhub.db.session import atomic, commit
from clubhub.models import (
    ApplicationStatus,
    Candidate,
    CandidateApplication,
    Election,
    ElectionRole,
    ElectionStatus,
    User,
    Vote,
)
from clubhub.obs.metrics import ELECTION_STATUS_TRANSITION_COUNTER
from clubhub.services.membership import (
    ensure_club_action,
    find_approved_membership,
    get_club,
    record_audit,
)
from clubhub.services.policy import Action, Principal

LOGGER = logging.getLogger(__name__)

_STATUS_ORDER = {
    ElectionStatus.UPCOMING: 0,
    ElectionStatus.ACTIVE: 1,
    ElectionStatus.COMPLETED: 2,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def derive_status(now: datetime, start_date: datetime, end_date: datetime) -> ElectionStatus:
    now, start_date, end_date = as_utc(now), as_utc(start_date), as_utc(end_date)
    if now < start_date:
        return ElectionStatus.UPCOMING
    if now <= end_date:
        return ElectionStatus.ACTIVE
    return ElectionStatus.COMPLETED


def sync_status(election: Election, now: datetime) -> bool:
    """Advance ``election.status`` to the derived value. Returns whether it moved."""

    derived = derive_status(now, election.start_date, election.end_date)
    if _STATUS_ORDER[derived] <= _STATUS_ORDER[election.status]:
        return False
    LOGGER.info(
        "election status advanced",
        extra={"election_id": election.id, "from": election.status.value, "to": derived.value},
    )
    election.status = derived
    ELECTION_STATUS_TRANSITION_COUNTER.labels(status=derived.value).inc()
    return True


@dataclass(slots=True, frozen=True)
class CandidateTally:
    candidate_id: str
    user_id: str
    name: str
    position: str
    vote_count: int


@dataclass(slots=True, frozen=True)
class ElectionResult:
    election: Election
    total_votes: int
    tallies: list[CandidateTally]


class ElectionService:
    """Operations on elections and everything an election owns."""

    def __init__(self, session: Session, *, clock: Callable[[], datetime] | None = None) -> None:
        self._session = session
        self._clock = clock or utcnow

    def now(self) -> datetime:
        return as_utc(self._clock())

    def load(self, election_id: str) -> Election:
        """Fetch an election and persist any status advance it is due."""

        election = self._session.get(Election, election_id)
        if election is None:
            raise NotFoundError("Election not found")
        if sync_status(election, self.now()):
            commit(self._session)
        return election

    def create_election(
        self,
        principal: Principal,
        *,
        club_id: str,
        title: str,
        description: str | None,
        start_date: datetime,
        end_date: datetime,
    ) -> Election:
        get_club(self._session, club_id)
        ensure_club_action(self._session, principal, Action.MANAGE_ELECTIONS, club_id=club_id)
        start_date, end_date = as_utc(start_date), as_utc(end_date)
        if end_date < start_date:
            raise InvalidInputError("end_date must not be earlier than start_date")

        election = Election(
            club_id=club_id,
            title=title,
            description=description,
            start_date=start_date,
            end_date=end_date,
            status=derive_status(self.now(), start_date, end_date),
        )
        with atomic(self._session):
            self._session.add(election)
        LOGGER.info(
            "election created",
            extra={"election_id": election.id, "club_id": club_id, "status": election.status.value},
        )
        return election

    def list_elections(self, *, club_id: str | None = None) -> list[Election]:
        stmt = select(Election).order_by(Election.start_date.desc())
        if club_id is not None:
            stmt = stmt.where(Election.club_id == club_id)
        elections = list(self._session.scalars(stmt))
        now = self.now()
        if any([sync_status(election, now) for election in elections]):
            commit(self._session)
        return elections

    def advance_statuses(self) -> int:
        """Persist derived statuses for every election that is not yet completed."""

        pending = self._session.scalars(select(Election).where(Election.status != ElectionStatus.COMPLETED))
        now = self.now()
        advanced = sum(1 for election in pending if sync_status(election, now))
        commit(self._session)
        return advanced

    def list_roles(self, *, election_id: str) -> list[ElectionRole]:
        return list(self.load(election_id).roles)

    def add_role(
        self,
        principal: Principal,
        *,
        election_id: str,
        role_name: str,
        description: str = "",
    ) -> ElectionRole:
        election = self.load(election_id)
        ensure_club_action(self._session, principal, Action.MANAGE_ELECTIONS, club_id=election.club_id)
        duplicate = self._session.scalar(
            select(ElectionRole.id).where(
                ElectionRole.election_id == election.id, ElectionRole.role_name == role_name
            )
        )
        if duplicate is not None:
            raise ConflictError("This role already exists for the election")

        role = ElectionRole(election_id=election.id, role_name=role_name, description=description)
        with atomic(self._session, conflict_message="This role already exists for the election"):
            self._session.add(role)
        return role

    def remove_role(self, principal: Principal, *, election_id: str, role_id: str) -> None:
        """Delete a role with its applications; candidates keep their position text."""

        election = self.load(election_id)
        ensure_club_action(self._session, principal, Action.MANAGE_ELECTIONS, club_id=election.club_id)
        role = self._session.get(ElectionRole, role_id)
        if role is None or role.election_id != election.id:
            raise NotFoundError("Role not found in this election")
        with atomic(self._session):
            self._session.delete(role)

    def apply(
        self,
        principal: Principal,
        *,
        election_id: str,
        role_id: str,
        statement: str = "",
    ) -> CandidateApplication:
        """Apply to stand for one role. A member may apply for several roles."""

        election = self.load(election_id)
        if election.status == ElectionStatus.COMPLETED:
            raise ConflictError("Applications are closed for a completed election")
        role = self._session.get(ElectionRole, role_id)
        if role is None or role.election_id != election.id:
            raise NotFoundError("Role not found in this election")
        if find_approved_membership(self._session, club_id=election.club_id, user_id=principal.id) is None:
            raise ForbiddenError("You must be an approved member of this club to apply")

        duplicate = self._session.scalar(
            select(CandidateApplication.id).where(
                CandidateApplication.election_id == election.id,
                CandidateApplication.user_id == principal.id,
                CandidateApplication.role_id == role.id,
            )
        )
        if duplicate is not None:
            raise ConflictError("You have already applied for this role")

        application = CandidateApplication(
            election_id=election.id,
            role_id=role.id,
            user_id=principal.id,
            statement=statement,
            status=ApplicationStatus.PENDING,
        )
        with atomic(self._session, conflict_message="You have already applied for this role"):
            self._session.add(application)
        return application

    def list_applications(self, principal: Principal, *, election_id: str) -> list[CandidateApplication]:
        election = self.load(election_id)
        ensure_club_action(self._session, principal, Action.REVIEW_APPLICATIONS, club_id=election.club_id)
        return list(
            self._session.scalars(
                select(CandidateApplication)
                .where(CandidateApplication.election_id == election.id)
                .order_by(CandidateApplication.created_at)
            )
        )

    def decide_application(
        self,
        principal: Principal,
        *,
        election_id: str,
        application_id: str,
        decision: ApplicationStatus,
    ) -> CandidateApplication:
        """Approve or reject an application.

        Approval also stands the applicant as a candidate, unless they already
        hold a candidacy in this election through another role. In that case
        the application is still approved and no second candidacy is created.
        """

        if decision not in (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED):
            raise InvalidInputError("Status must be either approved or rejected")
        election = self.load(election_id)
        ensure_club_action(self._session, principal, Action.REVIEW_APPLICATIONS, club_id=election.club_id)
        application = self._session.get(CandidateApplication, application_id)
        if application is None or application.election_id != election.id:
            raise NotFoundError("Application not found")

        with atomic(self._session):
            application.status = decision
            self._session.flush()
            candidate = self._materialize_candidate(application) if decision == ApplicationStatus.APPROVED else None
            record_audit(
                self._session,
                actor_id=principal.id,
                action=f"candidate_application.{decision.value}",
                resource_type="CandidateApplication",
                resource_id=application.id,
                payload={
                    "election_id": election.id,
                    "user_id": application.user_id,
                    "candidate_id": candidate.id if candidate is not None else None,
                },
            )
        return application

    def _materialize_candidate(self, application: CandidateApplication) -> Candidate | None:
        existing = self._session.scalar(
            select(Candidate.id).where(
                Candidate.election_id == application.election_id,
                Candidate.user_id == application.user_id,
            )
        )
        if existing is not None:
            LOGGER.warning(
                "applicant already holds a candidacy; no candidate created",
                extra={"application_id": application.id, "candidate_id": existing},
            )
            return None

        candidate = Candidate(
            election_id=application.election_id,
            user_id=application.user_id,
            role_id=application.role_id,
            position=application.role.role_name,
            statement=application.statement,
        )
        try:
            with self._session.begin_nested():
                self._session.add(candidate)
        except IntegrityError:
            LOGGER.warning(
                "concurrent candidacy detected; no candidate created",
                extra={"application_id": application.id},
            )
            return None
        return candidate

    def add_candidate(
        self,
        principal: Principal,
        *,
        election_id: str,
        user_id: str,
        position: str,
        statement: str = "",
    ) -> Candidate:
        """Nominate an approved member directly, bypassing the application flow."""

        election = self.load(election_id)
        ensure_club_action(self._session, principal, Action.ADD_CANDIDATES, club_id=election.club_id)
        if election.status == ElectionStatus.COMPLETED:
            raise ConflictError("Cannot add candidates to a completed election")
        if find_approved_membership(self._session, club_id=election.club_id, user_id=user_id) is None:
            raise InvalidInputError("User is not an approved member of this club")

        duplicate = self._session.scalar(
            select(Candidate.id).where(Candidate.election_id == election.id, Candidate.user_id == user_id)
        )
        if duplicate is not None:
            raise ConflictError("This user is already a candidate in this election")

        role_id = self._session.scalar(
            select(ElectionRole.id).where(
                ElectionRole.election_id == election.id, ElectionRole.role_name == position
            )
        )
        candidate = Candidate(
            election_id=election.id,
            user_id=user_id,
            role_id=role_id,
            position=position,
            statement=statement,
        )
        with atomic(self._session, conflict_message="This user is already a candidate in this election"):
            self._session.add(candidate)
        return candidate

    def results(self, *, election_id: str) -> ElectionResult:
        """Tally a completed election, grouped by position, most votes first."""

        election = self.load(election_id)
        if election.status != ElectionStatus.COMPLETED:
            raise ForbiddenError("Results are only available for completed elections")

        vote_count = func.count(Vote.id).label("vote_count")
        rows = self._session.execute(
            select(Candidate.id, Candidate.user_id, User.name, Candidate.position, vote_count)
            .join(User, User.id == Candidate.user_id)
            .outerjoin(Vote, Vote.candidate_id == Candidate.id)
            .where(Candidate.election_id == election.id)
            .group_by(Candidate.id, Candidate.user_id, User.name, Candidate.position)
            .order_by(Candidate.position, vote_count.desc(), User.name)
        ).all()
        total_votes = self._session.scalar(
            select(func.count()).select_from(Vote).where(Vote.election_id == election.id)
        ) or 0

        tallies = [
            CandidateTally(
                candidate_id=candidate_id,
                user_id=user_id,
                name=name,
                position=position,
                vote_count=int(count),
            )
            for candidate_id, user_id, name, position, count in rows
        ]
        return ElectionResult(election=election, total_votes=int(total_votes), tallies=tallies)


__all__ = [
    "CandidateTally",
    "ElectionResult",
    "ElectionService",
    "as_utc",
    "derive_status",
    "sync_status",
    "utcnow",
]
