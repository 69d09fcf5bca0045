"""Pytest fixtures — in-memory SQLite database for fast, isolated tests."""
import uuid
from datetime import datetime, timezone, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from clubhouse.database import Base, get_db
from clubhouse.main import app
from clubhouse.models.profile import Profile, ProfileRole, ProfileStatus

SQLITE_URL = "sqlite://"
PASSWORD = "secret-pw"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh in-memory engine for each test; one shared connection."""
    engine = create_engine(
        SQLITE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session for direct setup and assertions."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_engine):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: accounts and sessions via the API, out-of-band edits via the DB
# ---------------------------------------------------------------------------
def auth(token: str, client_id: str | None = None) -> dict:
    headers = {"Authorization": f"Bearer {token}"}
    if client_id:
        headers["X-Client-Id"] = client_id
    return headers


def signup(client: TestClient, email: str | None = None, **fields) -> dict:
    """Helper — POST /api/auth/signup and return the profile JSON."""
    email = email or f"member-{uuid.uuid4().hex[:8]}@example.com"
    resp = client.post("/api/auth/signup", json={"email": email, "password": PASSWORD, **fields})
    assert resp.status_code == 201, resp.text
    return resp.json()


def login(client: TestClient, email: str, client_id: str | None = None) -> str:
    headers = {"X-Client-Id": client_id} if client_id else {}
    resp = client.post("/api/auth/login", json={"email": email, "password": PASSWORD}, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def edit_profile(db, principal_id: str, **values) -> None:
    """Out-of-band profile write (stands in for a console edit)."""
    db.query(Profile).filter(Profile.principal_id == principal_id).update(values)
    db.commit()
    db.expire_all()


def create_member(client: TestClient, db, approved: bool = True, email: str | None = None) -> tuple[str, dict]:
    """Sign up, optionally approve out-of-band, sign in. Returns (principal_id, headers)."""
    profile = signup(client, email=email, first_name="Test", last_name="Member")
    if approved:
        edit_profile(db, profile["principal_id"], status=ProfileStatus.approved)
    token = login(client, profile["email"])
    return profile["principal_id"], auth(token)


def create_admin(client: TestClient, db, email: str | None = None) -> tuple[str, dict]:
    """Approved member with role=admin set out-of-band and the claim bootstrapped."""
    principal_id, headers = create_member(client, db, email=email)
    edit_profile(db, principal_id, role=ProfileRole.admin)
    resp = client.post("/api/admin/bootstrap-claim", headers=headers)
    assert resp.status_code == 200, resp.text
    return principal_id, headers


def create_test_event(client: TestClient, admin_headers: dict, max_participants=None, title: str = "Club Night",
                      days_ahead: int = 7) -> dict:
    """Helper — POST /api/events and return response JSON."""
    start = datetime.now(timezone.utc) + timedelta(days=days_ahead)
    resp = client.post("/api/events/", headers=admin_headers, json={
        "title": title,
        "date_time": start.isoformat(),
        "location": "Main Court",
        "max_participants": max_participants,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()
