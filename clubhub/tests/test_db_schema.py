"""Schema integrity tests for the governance tables."""
from __future__ import annotations

from pathlib import Path

import pytest

sqlalchemy = pytest.importorskip("sqlalchemy")
alembic = pytest.importorskip("alembic")
alembic_command = pytest.importorskip("alembic.command")
alembic_config_module = pytest.importorskip("alembic.config")

sa = sqlalchemy
command = alembic_command
Config = alembic_config_module.Config


@pytest.fixture(scope="session")
def alembic_config(tmp_path_factory: pytest.TempPathFactory) -> Config:
    """Provide Alembic config bound to a temporary SQLite database."""

    project_root = Path(__file__).resolve().parents[2]
    db_path = tmp_path_factory.mktemp("db") / "test.db"

    config = Config(str(project_root / "alembic.ini"))
    config.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    config.set_main_option("script_location", str(project_root / "migrations"))
    return config


@pytest.fixture(scope="session")
def migrated_engine(alembic_config: Config):
    """Run migrations against SQLite and yield an engine."""

    command.upgrade(alembic_config, "head")
    engine = sa.create_engine(alembic_config.get_main_option("sqlalchemy.url"))
    try:
        yield engine
    finally:
        engine.dispose()


def test_tables_exist(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    tables = set(inspector.get_table_names())
    expected = {
        "users",
        "clubs",
        "events",
        "memberships",
        "club_requests",
        "elections",
        "election_roles",
        "candidate_applications",
        "candidates",
        "votes",
        "audit_logs",
    }
    assert expected.issubset(tables)


def test_migration_matches_models(migrated_engine: sa.Engine) -> None:
    from clubhub.models import Base

    inspector = sa.inspect(migrated_engine)
    for table in Base.metadata.sorted_tables:
        migrated = {column["name"] for column in inspector.get_columns(table.name)}
        assert migrated == set(table.columns.keys()), table.name


def test_foreign_keys_enforced(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    fk_expectations = {
        "events": {"club_id": "clubs"},
        "memberships": {"club_id": "clubs", "user_id": "users"},
        "club_requests": {"requester_id": "users"},
        "elections": {"club_id": "clubs"},
        "election_roles": {"election_id": "elections"},
        "candidate_applications": {
            "election_id": "elections",
            "role_id": "election_roles",
            "user_id": "users",
        },
        "candidates": {"election_id": "elections", "user_id": "users", "role_id": "election_roles"},
        "votes": {"election_id": "elections", "candidate_id": "candidates", "voter_id": "users"},
        "audit_logs": {"actor_id": "users"},
    }

    for table, expected in fk_expectations.items():
        foreign_keys = inspector.get_foreign_keys(table)
        fk_map = {tuple(fk["constrained_columns"]): fk["referred_table"] for fk in foreign_keys}
        for column, target in expected.items():
            assert (column,) in fk_map
            assert fk_map[(column,)] == target


def test_unique_constraints(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    unique_expectations = {
        "users": {"uq_users_email": {"email"}, "uq_users_student_id": {"student_id"}},
        "clubs": {"uq_clubs_name": {"name"}},
        "memberships": {"uq_memberships_club_user": {"club_id", "user_id"}},
        "election_roles": {"uq_election_roles_election_name": {"election_id", "role_name"}},
        "candidate_applications": {
            "uq_candidate_applications_election_user_role": {"election_id", "user_id", "role_id"}
        },
        "candidates": {"uq_candidates_election_user": {"election_id", "user_id"}},
        "votes": {"uq_votes_election_voter": {"election_id", "voter_id"}},
    }

    for table, expected in unique_expectations.items():
        constraints = inspector.get_unique_constraints(table)
        found = {constraint["name"]: set(constraint["column_names"]) for constraint in constraints}
        for name, columns in expected.items():
            assert name in found
            assert found[name] == columns


def test_lookup_indexes(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    index_expectations = {
        "events": "ix_events_club_id",
        "memberships": "ix_memberships_user_id",
        "club_requests": "ix_club_requests_status",
        "elections": "ix_elections_club_id",
        "votes": "ix_votes_candidate_id",
        "audit_logs": "ix_audit_logs_resource",
    }

    for table, index_name in index_expectations.items():
        indexes = {index["name"] for index in inspector.get_indexes(table)}
        assert index_name in indexes
