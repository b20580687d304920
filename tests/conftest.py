"""Shared test fixtures for stacktrack.

Provides in-memory SQLite engine, session, repository and tracker fixtures.
"""

import pytest
from sqlalchemy.orm import Session, sessionmaker

from stacktrack.storage.engine import create_tracker_engine, init_db
from stacktrack.storage.sqlite import (
    SqliteBranchRepository,
    SqliteComparisonRepository,
    SqliteFeatureRepository,
    SqliteProjectRepository,
)


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_tracker_engine(":memory:")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    """Session with automatic rollback after each test."""
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sess = SessionLocal()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def project_repo(session: Session) -> SqliteProjectRepository:
    return SqliteProjectRepository(session)


@pytest.fixture
def feature_repo(session: Session) -> SqliteFeatureRepository:
    return SqliteFeatureRepository(session)


@pytest.fixture
def branch_repo(session: Session) -> SqliteBranchRepository:
    return SqliteBranchRepository(session)


@pytest.fixture
def comparison_repo(session: Session) -> SqliteComparisonRepository:
    return SqliteComparisonRepository(session)


@pytest.fixture
def tracker():
    """In-memory Tracker, closed after the test."""
    t = make_tracker()
    yield t
    t.close()


# ------------------------------------------------------------------
# Shared test helpers
# ------------------------------------------------------------------

def make_tracker(**kwargs) -> "Tracker":
    """Create an in-memory Tracker for testing."""
    from stacktrack import Tracker
    return Tracker.open(":memory:", **kwargs)


def make_stack(t: "Tracker", names: list[str], *, master: str = "main"):
    """Create a project and feature holding *names* as a stack.

    Returns (project, feature, branches).
    """
    project = t.create_project("demo", master_branch=master)
    feature = t.create_feature(project.id, "123", "Demo feature")
    branches = [t.create_branch(feature.id, name) for name in names]
    return project, feature, branches


def positions(t: "Tracker", feature_id: int) -> dict[str, int]:
    """Map branch name to position for a feature's stack members."""
    return {b.name: b.position for b in t.list_branches(feature_id, stack_only=True)}
