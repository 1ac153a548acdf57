from __future__ import annotations

import itertools
import os
import sys
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from io import BytesIO
from pathlib import Path
from types import SimpleNamespace

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("ENABLE_TRACING", "false")

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from clubhub.api.auth import create_access_token
from clubhub.api.deps import get_clock, get_db_session
from clubhub.main import app
from clubhub.models import (
    Base,
    Candidate,
    Club,
    ClubRole,
    Election,
    ElectionRole,
    GlobalRole,
    Membership,
    MembershipStatus,
    User,
)
from clubhub.services.elections import derive_status
from clubhub.services.policy import Principal

DATABASE_URL = "sqlite+pysqlite://"

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryS3Client:
    """Simple in-memory S3 stub used by the audit middleware during tests."""

    exceptions = SimpleNamespace(NoSuchKey=type("NoSuchKey", (Exception,), {}))

    def __init__(self) -> None:
        self._buckets: dict[str, dict[str, bytes]] = {}

    def head_bucket(self, *, Bucket: str) -> None:
        if Bucket not in self._buckets:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadBucket")

    def create_bucket(self, *, Bucket: str, **_: object) -> None:
        self._buckets.setdefault(Bucket, {})

    def get_object(self, *, Bucket: str, Key: str) -> dict[str, BytesIO]:
        bucket = self._buckets[Bucket]
        if Key not in bucket:
            raise self.exceptions.NoSuchKey()
        return {"Body": BytesIO(bucket[Key])}

    def put_object(self, *, Bucket: str, Key: str, Body: bytes, **_: object) -> dict[str, str]:
        self._buckets.setdefault(Bucket, {})[Key] = Body
        return {"ETag": "in-memory"}

    @property
    def buckets(self) -> dict[str, dict[str, bytes]]:
        return self._buckets


class FrozenClock:
    """Controllable time source for election status derivation."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture()
def audit_s3_client() -> InMemoryS3Client:
    return InMemoryS3Client()


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture()
def db_session() -> Iterator[Session]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db_session: Session, clock: FrozenClock) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        try:
            yield db_session
        finally:
            db_session.rollback()

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db_session, None)
    app.dependency_overrides.pop(get_clock, None)


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    counter = itertools.count(1)

    def _make(name: str | None = None, role: GlobalRole = GlobalRole.STUDENT) -> User:
        number = next(counter)
        user = User(
            name=name or f"Student {number}",
            email=f"student{number}@campus.test",
            student_id=f"S{number:04d}",
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture()
def admin(make_user: Callable[..., User]) -> User:
    return make_user("Avery Admin", role=GlobalRole.ADMIN)


@pytest.fixture()
def make_club(db_session: Session) -> Callable[..., Club]:
    """Create a club with an optional president and approved members."""

    def _make(name: str = "Chess Club", *, president: User | None = None, members: tuple[User, ...] = ()) -> Club:
        club = Club(name=name, description=f"{name} description", category="General")
        db_session.add(club)
        db_session.flush()
        if president is not None:
            db_session.add(
                Membership(
                    club_id=club.id,
                    user_id=president.id,
                    role=ClubRole.PRESIDENT,
                    status=MembershipStatus.APPROVED,
                )
            )
            if president.role == GlobalRole.STUDENT:
                president.role = GlobalRole.CLUB_PRESIDENT
        for member in members:
            db_session.add(
                Membership(
                    club_id=club.id,
                    user_id=member.id,
                    role=ClubRole.MEMBER,
                    status=MembershipStatus.APPROVED,
                )
            )
        db_session.commit()
        return club

    return _make


@pytest.fixture()
def make_election(db_session: Session, clock: FrozenClock) -> Callable[..., Election]:
    """Create an election whose window is given relative to the test clock."""

    def _make(
        club: Club,
        *,
        starts_in: timedelta = timedelta(hours=-1),
        lasts: timedelta = timedelta(days=1),
        roles: tuple[str, ...] = (),
        candidates: tuple[tuple[User, str], ...] = (),
    ) -> Election:
        start_date = clock.now + starts_in
        end_date = start_date + lasts
        election = Election(
            club_id=club.id,
            title=f"{club.name} officers",
            start_date=start_date,
            end_date=end_date,
            status=derive_status(clock.now, start_date, end_date),
        )
        db_session.add(election)
        db_session.flush()
        for role_name in roles:
            db_session.add(ElectionRole(election_id=election.id, role_name=role_name))
        for user, position in candidates:
            db_session.add(Candidate(election_id=election.id, user_id=user.id, position=position))
        db_session.commit()
        return election

    return _make


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture()
def principal_for() -> Callable[[User], Principal]:
    def _principal(user: User) -> Principal:
        return Principal(id=user.id, global_role=user.role)

    return _principal
