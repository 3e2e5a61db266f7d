"""Pytest fixtures: file-backed SQLite database, fresh schema per test."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("EMAIL_TRANSPORT", "dummy")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from podplanner.database import Base, get_db
from podplanner.main import app
from podplanner.services import notifications

# Import all models so they register with Base.metadata
import podplanner.models  # noqa: F401

SQLITE_URL = "sqlite:///./test.db"
PASSWORD = "secret123"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session bound to the test engine."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def make_client(db_engine):
    """Factory for TestClients with their own cookie jar, so each can be a different user."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    clients = []

    def _make() -> TestClient:
        c = TestClient(app)
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.close()
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(make_client):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    return make_client()


@pytest.fixture(scope="function")
def outbox(monkeypatch):
    """Capture outgoing mail instead of handing it to a transport."""
    sent = []

    def _capture(to, subject, text_body, html_body=None):
        sent.append({"to": to, "subject": subject, "text": text_body, "html": html_body})

    monkeypatch.setattr(notifications, "_deliver", _capture)
    return sent


# ---------------------------------------------------------------------------
# Helpers: drive the API as a signed-in user
# ---------------------------------------------------------------------------
def register_user(client: TestClient, username: str = "alice", email: str = None, password: str = PASSWORD) -> dict:
    """Helper: POST /api/register (which also signs the client in) and return the user."""
    resp = client.post("/api/register", json={
        "username": username,
        "email": email or f"{username}@example.com",
        "password": password,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_group(client: TestClient, name: str = "Weekly Show") -> dict:
    """Helper: POST /api/groups as the signed-in user and return the group."""
    resp = client.post("/api/groups", json={"name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()


def join_with_code(admin: TestClient, member: TestClient, group_id: int) -> dict:
    """Helper: admin issues an invite code, member redeems it."""
    resp = admin.post(f"/api/groups/{group_id}/invite-codes")
    assert resp.status_code == 201, resp.text
    resp = member.post("/api/join-group", json={"code": resp.json()["code"]})
    assert resp.status_code == 200, resp.text
    return resp.json()


def create_episode(client: TestClient, group_id: int, date: str = "2025-03-10", **fields) -> dict:
    resp = client.post(f"/api/groups/{group_id}/episodes", json={"date": date, **fields})
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_topic(client: TestClient, group_id: int, name: str = "Topic", **fields) -> dict:
    resp = client.post(f"/api/groups/{group_id}/topics", json={"name": name, **fields})
    assert resp.status_code == 201, resp.text
    return resp.json()
