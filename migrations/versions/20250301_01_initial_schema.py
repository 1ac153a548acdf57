"""Initial schema for clubs, memberships, requests and elections."""
from __future__ import annotations

from collections.abc import Iterable

import sqlalchemy as sa
from alembic import op

revision = "20250301_01"
down_revision = None
branch_labels = None
depends_on: Iterable[str] | None = None

_ENUMS = {
    "global_role": ("student", "club_president", "admin"),
    "club_role": ("member", "president", "vice_president", "secretary", "treasurer"),
    "membership_status": ("pending", "approved", "rejected"),
    "club_request_status": ("pending", "approved", "rejected"),
    "election_status": ("upcoming", "active", "completed"),
    "application_status": ("pending", "approved", "rejected"),
}


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _drop_enum(name: str) -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute(sa.text(f"DROP TYPE IF EXISTS {name}"))


def upgrade() -> None:  # noqa: D401
    """Create governance tables and constraints."""

    enums = {name: sa.Enum(*values, name=name) for name, values in _ENUMS.items()}
    for enum_type in enums.values():
        enum_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("student_id", sa.String(length=20)),
        sa.Column("role", enums["global_role"], nullable=False, server_default="student"),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("student_id", name="uq_users_student_id"),
    )

    op.create_table(
        "clubs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("category", sa.String(length=50), nullable=False, server_default=""),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_clubs_name"),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("club_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(length=100)),
        *_timestamps(),
        sa.ForeignKeyConstraint(["club_id"], ["clubs.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_events_club_id", "events", ["club_id"])

    op.create_table(
        "memberships",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("club_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("role", enums["club_role"], nullable=False, server_default="member"),
        sa.Column("status", enums["membership_status"], nullable=False, server_default="pending"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["club_id"], ["clubs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("club_id", "user_id", name="uq_memberships_club_user"),
    )
    op.create_index("ix_memberships_user_id", "memberships", ["user_id"])

    op.create_table(
        "club_requests",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("category", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("requester_id", sa.String(length=36), nullable=False),
        sa.Column("status", enums["club_request_status"], nullable=False, server_default="pending"),
        sa.Column("admin_feedback", sa.Text()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["requester_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_club_requests_status", "club_requests", ["status"])
    op.create_index("ix_club_requests_requester_id", "club_requests", ["requester_id"])

    op.create_table(
        "elections",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("club_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", enums["election_status"], nullable=False, server_default="upcoming"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["club_id"], ["clubs.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_elections_club_id", "elections", ["club_id"])
    op.create_index("ix_elections_status", "elections", ["status"])

    op.create_table(
        "election_roles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("election_id", sa.String(length=36), nullable=False),
        sa.Column("role_name", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        *_timestamps(),
        sa.ForeignKeyConstraint(["election_id"], ["elections.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("election_id", "role_name", name="uq_election_roles_election_name"),
    )

    op.create_table(
        "candidate_applications",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("election_id", sa.String(length=36), nullable=False),
        sa.Column("role_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("statement", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", enums["application_status"], nullable=False, server_default="pending"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["election_id"], ["elections.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["role_id"], ["election_roles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "election_id", "user_id", "role_id", name="uq_candidate_applications_election_user_role"
        ),
    )

    op.create_table(
        "candidates",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("election_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("role_id", sa.String(length=36)),
        sa.Column("position", sa.String(length=50), nullable=False),
        sa.Column("statement", sa.Text(), nullable=False, server_default=""),
        *_timestamps(),
        sa.ForeignKeyConstraint(["election_id"], ["elections.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["role_id"], ["election_roles.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("election_id", "user_id", name="uq_candidates_election_user"),
    )

    op.create_table(
        "votes",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("election_id", sa.String(length=36), nullable=False),
        sa.Column("candidate_id", sa.String(length=36), nullable=False),
        sa.Column("voter_id", sa.String(length=36), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["election_id"], ["elections.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["candidate_id"], ["candidates.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["voter_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("election_id", "voter_id", name="uq_votes_election_voter"),
    )
    op.create_index("ix_votes_candidate_id", "votes", ["candidate_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("actor_id", sa.String(length=36)),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("resource_type", sa.String(length=128), nullable=False),
        sa.Column("resource_id", sa.String(length=128)),
        sa.Column("payload", sa.JSON()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["actor_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_audit_logs_resource", "audit_logs", ["resource_type", "resource_id"])


def downgrade() -> None:  # noqa: D401
    """Drop governance tables."""

    op.drop_index("ix_audit_logs_resource", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_votes_candidate_id", table_name="votes")
    op.drop_table("votes")
    op.drop_table("candidates")
    op.drop_table("candidate_applications")
    op.drop_table("election_roles")
    op.drop_index("ix_elections_status", table_name="elections")
    op.drop_index("ix_elections_club_id", table_name="elections")
    op.drop_table("elections")
    op.drop_index("ix_club_requests_requester_id", table_name="club_requests")
    op.drop_index("ix_club_requests_status", table_name="club_requests")
    op.drop_table("club_requests")
    op.drop_index("ix_memberships_user_id", table_name="memberships")
    op.drop_table("memberships")
    op.drop_index("ix_events_club_id", table_name="events")
    op.drop_table("events")
    op.drop_table("clubs")
    op.drop_table("users")

    for name in reversed(list(_ENUMS)):
        _drop_enum(name)
