# tests/conftest.py
# PURPOSE: create a TestClient and override DB dependency to use a temp SQLite file.
# Organizations and users are created straight in the database (no register
# round trip, so the auth rate limits stay untouched) and get minted tokens.

# Ensure project root is on sys.path so `import todo_api` works when running pytest.
import sys, os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import tempfile

# Must be set before todo_api.config is imported
os.environ.setdefault("SEED_ON_STARTUP", "false")
os.environ.setdefault(
    "DATABASE_URL", "sqlite:///" + os.path.join(tempfile.gettempdir(), "todo_api_pytest.db")
)

import uuid
from dataclasses import dataclass, field
from functools import lru_cache

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from todo_api.auth import create_user_token, hash_password
from todo_api.db import Base, enable_sqlite_foreign_keys, get_db  # DB metadata + dependency to override
from todo_api.db_models import RoleDB, TodoStateDB, UserDB
from todo_api.main import app  # FastAPI app
from todo_api.rate_limit import limiter
from todo_api.store import organizations as org_store
from todo_api.store import users as user_store

PASSWORD = "secret123"


@lru_cache(maxsize=1)
def _password_hash() -> str:
    # bcrypt is slow on purpose; hash once per run
    return hash_password(PASSWORD)


@dataclass
class Member:
    id: int
    organization_id: int
    role: str
    email: str
    headers: dict = field(default_factory=dict)


class World:
    """Builds tenants and accounts directly in the test database."""

    def __init__(self, session_factory):
        self._sessions = session_factory

    def org(self, name: str = "Acme") -> int:
        with self._sessions() as db:
            user_store.ensure_roles(db)
            return org_store.create_organization(db, name=name).id

    def member(
        self,
        org_id: int,
        role: str = "User",
        *,
        email: str | None = None,
        first_name: str = "Test",
        last_name: str | None = None,
        is_active: bool = True,
    ) -> Member:
        with self._sessions() as db:
            user_store.ensure_roles(db)
            role_row = db.query(RoleDB).filter(RoleDB.name == role).one()
            user = UserDB(
                email=email or f"{uuid.uuid4().hex[:10]}@example.com",
                password_hash=_password_hash(),
                first_name=first_name,
                last_name=last_name or role,
                organization_id=org_id,
                role_id=role_row.id,
                is_active=is_active,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            token = create_user_token(user)
            return Member(
                id=user.id,
                organization_id=org_id,
                role=role,
                email=user.email,
                headers={"Authorization": f"Bearer {token}"},
            )

    def state_id(self, org_id: int, name: str) -> int:
        with self._sessions() as db:
            return (
                db.query(TodoStateDB)
                .filter(TodoStateDB.organization_id == org_id, TodoStateDB.name == name)
                .one()
                .id
            )


@pytest.fixture()
def session_factory():
    # 1) Create a temporary SQLite file (so data is isolated per test)
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    test_db_url = f"sqlite:///{tmp.name}"

    # 2) Create a new engine/session factory for tests
    engine = create_engine(test_db_url, connect_args={"check_same_thread": False})
    enable_sqlite_foreign_keys(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # 3) Create tables for tests
    Base.metadata.create_all(bind=engine)

    yield TestingSessionLocal

    # Cleanup: drop tables, dispose engine, delete temp file
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    os.unlink(tmp.name)


@pytest.fixture()
def client(session_factory):
    # Override the app's get_db dependency to use the test session factory
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    limiter.reset()

    # Context manager ensures proper startup/shutdown
    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    limiter.reset()


@pytest.fixture()
def world(session_factory):
    return World(session_factory)


@pytest.fixture()
def acme(world):
    """Organization "Acme" with one member of each role."""
    org_id = world.org("Acme")
    return {
        "org_id": org_id,
        "admin": world.member(org_id, "Admin", first_name="Ada", last_name="Admin"),
        "user": world.member(org_id, "User", first_name="Uma", last_name="User"),
        "other": world.member(org_id, "User", first_name="Otto", last_name="Other"),
        "viewer": world.member(org_id, "Viewer", first_name="Vic", last_name="Viewer"),
    }
