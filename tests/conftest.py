"""
Pytest configuration and shared fixtures.

Tests run against a throwaway SQLite file selected through DATABASE_URL.
The variable must be set before anything under portal is imported, since
settings and the engine are created at import time.
"""

import os
import tempfile

_db_dir = tempfile.mkdtemp(prefix="portal-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_db_dir, "portal.db")
os.environ["DEBUG"] = "true"
os.environ["ENVIRONMENT"] = "development"

import pytest
from sqlalchemy import text

from portal.core.auth import hash_password, create_access_token
from portal.db.database import get_db_session
from portal.db.schema import init_schema, drop_schema
from portal.models.actor import Actor
from portal.schemas.schemas import UserRole, ProposalCreate
from portal.services import proposal_service, review_service

TEST_PASSWORD = "secret123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture(autouse=True)
def fresh_schema():
    """Recreate every table before each test."""
    drop_schema()
    init_schema()
    yield


@pytest.fixture
def make_user():
    """Insert a user directly and return its Actor."""
    def _make(login_id: str, role: str, name: str = None, research_area: str = None,
              pending_reviews: int = 0) -> Actor:
        name = name or f"User {login_id}"
        with get_db_session() as db:
            user_id = db.execute(
                text("""
                    INSERT INTO users (login_id, password_hash, role, name, research_area,
                        must_change_password, pending_reviews)
                    VALUES (:login_id, :hash, :role, :name, :area, :flag, :load)
                    RETURNING user_id
                """),
                {
                    "login_id": login_id, "hash": TEST_PASSWORD_HASH, "role": role, "name": name,
                    "area": research_area, "flag": False, "load": pending_reviews
                }
            ).scalar_one()
        return Actor(user_id=user_id, role=UserRole(role), login_id=login_id,
                     name=name, research_area=research_area)
    return _make


@pytest.fixture
def physics(make_user):
    """Six Physics faculty A..F, login ids sorted in that order."""
    return [
        make_user(f"10000{i}", "faculty", name=f"Prof {letter}", research_area="Physics")
        for i, letter in enumerate("ABCDEF", start=1)
    ]


@pytest.fixture
def make_student(make_user):
    counter = {"n": 0}

    def _make(name: str = None) -> Actor:
        counter["n"] += 1
        return make_user(f"24PHY{counter['n']:05d}", "student", name=name)
    return _make


@pytest.fixture
def submit():
    def _submit(owner: Actor, seats: int = 2, title: str = "Quantum dots") -> dict:
        data = ProposalCreate(title=title, abstract="Study of quantum dots.", timeline="6 months", seats=seats)
        return proposal_service.submit_proposal(owner, data)
    return _submit


@pytest.fixture
def approved_proposal(physics, submit):
    """Submit as `owner` and have the whole panel approve it."""
    by_id = {f.user_id: f for f in physics}

    def _approved(owner: Actor, seats: int = 2, title: str = "Quantum dots") -> dict:
        proposal = submit(owner, seats=seats, title=title)
        for reviewer_id in proposal["reviewer_ids"]:
            proposal = review_service.approve(by_id[reviewer_id], proposal["proposal_id"])
        assert proposal["status"] == "approved"
        return proposal
    return _approved


@pytest.fixture
def load_of():
    """Current pending_reviews counter of a user."""
    def _load(actor: Actor) -> int:
        with get_db_session() as db:
            return db.execute(
                text("SELECT pending_reviews FROM users WHERE user_id = :id"),
                {"id": actor.user_id}
            ).scalar_one()
    return _load


@pytest.fixture
def auth_headers():
    def _headers(actor: Actor) -> dict:
        token = create_access_token({"sub": str(actor.user_id), "role": actor.role.value})
        return {"Authorization": f"Bearer {token}"}
    return _headers
