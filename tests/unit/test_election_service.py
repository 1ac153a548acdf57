from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from clubhub.core.errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from clubhub.models import (
    ApplicationStatus,
    Candidate,
    Club,
    Election,
    ElectionRole,
    ElectionStatus,
    User,
    Vote,
)
from clubhub.services.elections import ElectionService, derive_status, sync_status
from clubhub.services.policy import Principal


@pytest.fixture()
def service(db_session: Session, clock) -> ElectionService:
    return ElectionService(db_session, clock=clock)


def test_derive_status_boundaries() -> None:
    start = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
    end = datetime(2025, 3, 2, 9, 0, tzinfo=timezone.utc)

    assert derive_status(start - timedelta(seconds=1), start, end) == ElectionStatus.UPCOMING
    assert derive_status(start, start, end) == ElectionStatus.ACTIVE
    assert derive_status(end, start, end) == ElectionStatus.ACTIVE
    assert derive_status(end + timedelta(seconds=1), start, end) == ElectionStatus.COMPLETED


def test_derive_status_treats_naive_values_as_utc() -> None:
    start = datetime(2025, 3, 1, 9, 0)
    end = datetime(2025, 3, 1, 10, 0)
    now = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)

    assert derive_status(now, start, end) == ElectionStatus.ACTIVE


def test_sync_status_never_moves_backwards() -> None:
    election = Election(
        club_id="club-1",
        title="Officers",
        start_date=datetime(2025, 3, 1, tzinfo=timezone.utc),
        end_date=datetime(2025, 3, 2, tzinfo=timezone.utc),
        status=ElectionStatus.COMPLETED,
    )

    assert not sync_status(election, datetime(2025, 3, 1, 12, tzinfo=timezone.utc))
    assert election.status == ElectionStatus.COMPLETED


def test_create_election_derives_initial_status(
    service: ElectionService,
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    principal_for: Callable[[User], Principal],
    clock,
) -> None:
    president = make_user()
    club = make_club(president=president)

    election = service.create_election(
        principal_for(president),
        club_id=club.id,
        title="Spring officers",
        description=None,
        start_date=clock.now + timedelta(days=1),
        end_date=clock.now + timedelta(days=2),
    )

    assert election.status == ElectionStatus.UPCOMING


def test_create_election_validates_window_and_authority(
    service: ElectionService,
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    principal_for: Callable[[User], Principal],
    clock,
) -> None:
    president = make_user()
    member = make_user()
    club = make_club(president=president, members=(member,))

    with pytest.raises(InvalidInputError):
        service.create_election(
            principal_for(president),
            club_id=club.id,
            title="Backwards",
            description=None,
            start_date=clock.now + timedelta(days=2),
            end_date=clock.now + timedelta(days=1),
        )
    with pytest.raises(ForbiddenError):
        service.create_election(
            principal_for(member),
            club_id=club.id,
            title="Coup",
            description=None,
            start_date=clock.now,
            end_date=clock.now + timedelta(days=1),
        )


def test_president_of_another_club_cannot_manage(
    service: ElectionService,
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    principal_for: Callable[[User], Principal],
) -> None:
    chess_president = make_user()
    drama_president = make_user()
    chess = make_club("Chess Club", president=chess_president)
    make_club("Drama Club", president=drama_president)
    election = make_election(chess)

    with pytest.raises(ForbiddenError):
        service.add_role(principal_for(drama_president), election_id=election.id, role_name="Treasurer")


def test_status_is_persisted_when_time_passes(
    service: ElectionService,
    db_session: Session,
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    clock,
) -> None:
    election = make_election(make_club(), starts_in=timedelta(hours=1), lasts=timedelta(hours=2))
    assert election.status == ElectionStatus.UPCOMING

    clock.advance(hours=2)
    assert service.load(election.id).status == ElectionStatus.ACTIVE

    clock.advance(hours=2)
    assert service.advance_statuses() == 1
    db_session.expire_all()
    assert db_session.get(Election, election.id).status == ElectionStatus.COMPLETED


def test_list_elections_newest_first_and_filtered(
    service: ElectionService,
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
) -> None:
    chess = make_club("Chess Club")
    drama = make_club("Drama Club")
    older = make_election(chess, starts_in=timedelta(days=-10))
    newer = make_election(chess, starts_in=timedelta(days=5))
    make_election(drama)

    assert [item.id for item in service.list_elections(club_id=chess.id)] == [newer.id, older.id]
    assert len(service.list_elections()) == 3


def test_roles_are_unique_per_election(
    service: ElectionService,
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    principal_for: Callable[[User], Principal],
) -> None:
    president = make_user()
    election = make_election(make_club(president=president))
    service.add_role(principal_for(president), election_id=election.id, role_name="Treasurer")

    with pytest.raises(ConflictError):
        service.add_role(principal_for(president), election_id=election.id, role_name="Treasurer")
    assert [role.role_name for role in service.list_roles(election_id=election.id)] == ["Treasurer"]


def test_remove_role_checks_election(
    service: ElectionService,
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    principal_for: Callable[[User], Principal],
) -> None:
    president = make_user()
    club = make_club(president=president)
    first = make_election(club, roles=("Treasurer",))
    second = make_election(club)
    role_id = first.roles[0].id

    with pytest.raises(NotFoundError):
        service.remove_role(principal_for(president), election_id=second.id, role_id=role_id)
    service.remove_role(principal_for(president), election_id=first.id, role_id=role_id)
    assert service.list_roles(election_id=first.id) == []


def test_apply_requires_approved_membership_and_open_election(
    service: ElectionService,
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    principal_for: Callable[[User], Principal],
) -> None:
    member = make_user()
    outsider = make_user()
    club = make_club(members=(member,))
    election = make_election(club, roles=("Secretary",))
    finished = make_election(club, starts_in=timedelta(days=-3), roles=("Secretary",))

    with pytest.raises(ForbiddenError):
        service.apply(principal_for(outsider), election_id=election.id, role_id=election.roles[0].id)
    with pytest.raises(ConflictError):
        service.apply(principal_for(member), election_id=finished.id, role_id=finished.roles[0].id)
    with pytest.raises(NotFoundError):
        service.apply(principal_for(member), election_id=election.id, role_id=finished.roles[0].id)

    application = service.apply(principal_for(member), election_id=election.id, role_id=election.roles[0].id)
    assert application.status == ApplicationStatus.PENDING
    with pytest.raises(ConflictError):
        service.apply(principal_for(member), election_id=election.id, role_id=election.roles[0].id)


def test_approving_application_creates_one_candidacy(
    service: ElectionService,
    db_session: Session,
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    principal_for: Callable[[User], Principal],
) -> None:
    president = make_user()
    member = make_user()
    election = make_election(make_club(president=president, members=(member,)), roles=("Secretary", "Treasurer"))
    roles = {role.role_name: role.id for role in election.roles}
    secretary = service.apply(principal_for(member), election_id=election.id, role_id=roles["Secretary"])
    treasurer = service.apply(principal_for(member), election_id=election.id, role_id=roles["Treasurer"])

    service.decide_application(
        principal_for(president),
        election_id=election.id,
        application_id=secretary.id,
        decision=ApplicationStatus.APPROVED,
    )
    second = service.decide_application(
        principal_for(president),
        election_id=election.id,
        application_id=treasurer.id,
        decision=ApplicationStatus.APPROVED,
    )

    assert second.status == ApplicationStatus.APPROVED
    candidates = db_session.scalars(select(Candidate).where(Candidate.election_id == election.id)).all()
    assert len(candidates) == 1
    assert candidates[0].position == "Secretary"
    assert candidates[0].role_id == roles["Secretary"]


def test_rejecting_application_creates_no_candidate(
    service: ElectionService,
    db_session: Session,
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    principal_for: Callable[[User], Principal],
) -> None:
    president = make_user()
    member = make_user()
    election = make_election(make_club(president=president, members=(member,)), roles=("Secretary",))
    application = service.apply(principal_for(member), election_id=election.id, role_id=election.roles[0].id)

    with pytest.raises(InvalidInputError):
        service.decide_application(
            principal_for(president),
            election_id=election.id,
            application_id=application.id,
            decision=ApplicationStatus.PENDING,
        )
    service.decide_application(
        principal_for(president),
        election_id=election.id,
        application_id=application.id,
        decision=ApplicationStatus.REJECTED,
    )

    assert db_session.scalar(select(func.count()).select_from(Candidate)) == 0


def test_add_candidate_directly(
    service: ElectionService,
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    principal_for: Callable[[User], Principal],
) -> None:
    president = make_user()
    member = make_user()
    outsider = make_user()
    election = make_election(make_club(president=president, members=(member,)), roles=("Treasurer",))

    with pytest.raises(InvalidInputError):
        service.add_candidate(
            principal_for(president), election_id=election.id, user_id=outsider.id, position="Treasurer"
        )

    candidate = service.add_candidate(
        principal_for(president), election_id=election.id, user_id=member.id, position="Treasurer"
    )
    assert candidate.role_id == election.roles[0].id
    with pytest.raises(ConflictError):
        service.add_candidate(principal_for(president), election_id=election.id, user_id=member.id, position="Other")


def test_results_only_after_completion(
    service: ElectionService,
    db_session: Session,
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    clock,
) -> None:
    alice = make_user("Alice")
    bob = make_user("Bob")
    carol = make_user("Carol")
    voters = [make_user() for _ in range(3)]
    club = make_club(members=(alice, bob, carol, *voters))
    election = make_election(
        club,
        lasts=timedelta(hours=2),
        candidates=((alice, "President"), (bob, "President"), (carol, "Treasurer")),
    )
    by_name = {candidate.user.name: candidate.id for candidate in election.candidates}
    for voter, name in zip(voters, ("Bob", "Bob", "Alice")):
        db_session.add(Vote(election_id=election.id, candidate_id=by_name[name], voter_id=voter.id))
    db_session.commit()

    with pytest.raises(ForbiddenError):
        service.results(election_id=election.id)

    clock.advance(hours=3)
    result = service.results(election_id=election.id)

    assert result.election.status == ElectionStatus.COMPLETED
    assert result.total_votes == 3
    assert [(tally.position, tally.name, tally.vote_count) for tally in result.tallies] == [
        ("President", "Bob", 2),
        ("President", "Alice", 1),
        ("Treasurer", "Carol", 0),
    ]


def test_deleting_election_role_keeps_candidate_position(
    service: ElectionService,
    db_session: Session,
    make_user: Callable[..., User],
    make_club: Callable[..., Club],
    make_election: Callable[..., Election],
    principal_for: Callable[[User], Principal],
) -> None:
    president = make_user()
    member = make_user()
    election = make_election(make_club(president=president, members=(member,)), roles=("Treasurer",))
    service.add_candidate(principal_for(president), election_id=election.id, user_id=member.id, position="Treasurer")
    role_id = db_session.scalar(select(ElectionRole.id).where(ElectionRole.election_id == election.id))

    service.remove_role(principal_for(president), election_id=election.id, role_id=role_id)

    candidate = db_session.scalar(select(Candidate).where(Candidate.election_id == election.id))
    assert candidate is not None
    assert candidate.position == "Treasurer"
