"""Seed script for demo users and clubs.

Prints a bearer token per seeded user so the API can be exercised directly.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.orm import Session

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from clubhub.api.auth import create_access_token
from clubhub.db.session import SessionLocal, engine
from clubhub.models import Base, Club, ClubRole, GlobalRole, Membership, MembershipStatus, User

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SEED_USERS = [
    ("Avery Admin", "admin@campus.local", None, GlobalRole.ADMIN),
    ("Parker President", "president@campus.local", "S1001", GlobalRole.CLUB_PRESIDENT),
    ("Sam Student", "student@campus.local", "S1002", GlobalRole.STUDENT),
]
SEED_CLUBS = [
    ("Chess Club", "Weekly games and tournaments", "Games"),
    ("Robotics Society", "Build and compete with robots", "Engineering"),
]


def _get_or_create_user(session: Session, name: str, email: str, student_id: str | None, role: GlobalRole) -> User:
    user = session.scalar(select(User).where(User.email == email))
    if user is not None:
        logger.info("User %s already exists", email)
        return user
    user = User(name=name, email=email, student_id=student_id, role=role)
    session.add(user)
    session.flush()
    logger.info("Added user %s", email)
    return user


def seed(session: Session) -> dict[str, User]:
    """Seed demo users, clubs and the founding presidency of the first club."""

    users = {email: _get_or_create_user(session, name, email, sid, role) for name, email, sid, role in SEED_USERS}

    for name, description, category in SEED_CLUBS:
        if session.scalar(select(Club).where(Club.name == name)) is not None:
            logger.info("Club %s already exists", name)
            continue
        session.add(Club(name=name, description=description, category=category))
        logger.info("Created club %s", name)
    session.flush()

    chess = session.scalar(select(Club).where(Club.name == "Chess Club"))
    president = users["president@campus.local"]
    if chess is not None and not session.scalar(
        select(Membership).where(Membership.club_id == chess.id, Membership.user_id == president.id)
    ):
        session.add(
            Membership(
                club_id=chess.id,
                user_id=president.id,
                role=ClubRole.PRESIDENT,
                status=MembershipStatus.APPROVED,
            )
        )
    return users


def main() -> None:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        users = seed(session)
        session.commit()
        for email, user in users.items():
            print(f"{email}: {create_access_token(user.id)}")


if __name__ == "__main__":
    main()
