"""
Shared fixtures: an in-memory SQLite database seeded with one challenge.
"""

import os
from datetime import timedelta

# Must be set before priorart.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENQUEUE_RECOMPUTE", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from priorart.db.base import Base
from priorart.models.challenge import OverallChallenge, SubChallenge
from priorart.models.user import Profile
from tests.factories import RULES_JSON, T0

TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _add_profile(db, profile_id, name, role):
    profile = Profile(id=profile_id, email=f"{profile_id}@example.com", name=name, role=role)
    db.add(profile)
    return profile


@pytest.fixture
def profiles(db_session):
    """Manager, assigned evaluator, unassigned manager and two trainees."""
    rows = {
        "manager": _add_profile(db_session, "mgr-1", "Alice Manager", "Manager"),
        "other_manager": _add_profile(db_session, "mgr-2", "Heidi Manager", "Manager"),
        "evaluator": _add_profile(db_session, "eval-1", "Diana Evaluator", "Evaluator"),
        "bob": _add_profile(db_session, "trainee-1", "Bob Trainee", "Trainee"),
        "charlie": _add_profile(db_session, "trainee-2", "Charlie Trainee", "Trainee"),
    }
    db_session.commit()
    return rows


@pytest.fixture
def challenge(db_session, profiles):
    """One overall challenge with an assigned and an unassigned sub-challenge."""
    oc = OverallChallenge(
        id="oc-1",
        name="Tour de Prior Art - July Batch",
        manager_ids=["mgr-1"],
        trainee_ids=["trainee-1", "trainee-2"],
        evaluator_ids=["eval-1"],
    )
    assigned = SubChallenge(
        id="sc-1",
        overall_challenge_id="oc-1",
        title="Semiconductor Innovation",
        patent_number="US-10000000-B2",
        submission_end_time=T0 + timedelta(days=10),
        report_end_time=T0 + timedelta(days=15),
        evaluator_ids=["eval-1"],
        evaluation_rules=RULES_JSON,
        submission_limit=2,
    )
    unassigned = SubChallenge(
        id="sc-2",
        overall_challenge_id="oc-1",
        title="Pharmaceutical Compound",
        submission_end_time=T0 + timedelta(days=20),
        evaluator_ids=[],
        evaluation_rules=RULES_JSON,
    )
    db_session.add_all([oc, assigned, unassigned])
    db_session.commit()
    return oc
