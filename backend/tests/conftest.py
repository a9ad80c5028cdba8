"""Pytest fixtures: SQLite file database, admin policy and blob store overrides."""
import uuid
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from chapterhouse.auth import AdminPolicy, get_admin_policy
from chapterhouse.database import Base, get_db
from chapterhouse.main import app
from chapterhouse.services.blob_store import LocalBlobStore, get_blob_store

# Import all models so they register with Base.metadata
from chapterhouse.models.user import User                     # noqa: F401
from chapterhouse.models.chapter import Chapter               # noqa: F401
from chapterhouse.models.artist import Artist                 # noqa: F401
from chapterhouse.models.booking import Booking, BookingDate  # noqa: F401
from chapterhouse.models.request import Request               # noqa: F401

SQLITE_URL = "sqlite:///./test.db"
ADMIN_EMAIL = "admin@example.org"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode so the test session can read while the app writes
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

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
def policy():
    return AdminPolicy({ADMIN_EMAIL})


@pytest.fixture(scope="function")
def client(db_engine, policy, tmp_path):
    """FastAPI TestClient with database, admin policy and blob store overridden."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_admin_policy] = lambda: policy
    app.dependency_overrides[get_blob_store] = lambda: LocalBlobStore(tmp_path / "blobs")
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: create users and drive the workflow through the API
# ---------------------------------------------------------------------------
def auth_headers(user: dict) -> dict:
    """Identity headers as the upstream identity provider would set them."""
    return {"X-User-Id": user["user_id"], "X-User-Email": user["email"]}


def create_test_user(client: TestClient, name: str = "Test User", email: str = None) -> dict:
    """Helper: POST /api/users and return response JSON."""
    resp = client.post("/api/users/", json={
        "name": name,
        "email": email or f"{uuid.uuid4().hex[:10]}@example.org",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_admin(client: TestClient) -> dict:
    return create_test_user(client, name="Admin", email=ADMIN_EMAIL)


def set_role(client: TestClient, admin: dict, user: dict, role: str, **fields) -> dict:
    """Helper: admin direct update of a user's role; returns the updated user."""
    body = {"name": user["name"], "role": role, "chapters": user.get("chapters") or []}
    body.update(fields)
    resp = client.put(f"/api/users/{user['user_id']}", headers=auth_headers(admin), json=body)
    assert resp.status_code == 200, resp.text
    return resp.json()


def approve(client: TestClient, admin: dict, request_id: str) -> dict:
    resp = client.post(f"/api/requests/{request_id}/approve", headers=auth_headers(admin))
    assert resp.status_code == 200, resp.text
    return resp.json()


def create_test_artist(client: TestClient, owner: dict, name: str = "Test Band", members: list = None) -> dict:
    """Helper: POST /api/artists as ``owner`` (who must be a Musician)."""
    resp = client.post("/api/artists/", headers=auth_headers(owner), json={
        "name": name,
        "location": "Portland",
        "bio": "We play things",
        "chapters": ["pdx"],
        "members": members or [],
    })
    assert resp.status_code == 202, resp.text
    return resp.json()


def create_test_booking(client: TestClient, creator: dict, dates: list = None) -> dict:
    """Helper: POST /api/bookings as ``creator``."""
    resp = client.post("/api/bookings/", headers=auth_headers(creator), json={
        "name": "Jo Organizer",
        "email": "jo@example.org",
        "phone": "555-0100",
        "questions": "Do you play weddings?",
        "dates": dates if dates is not None else [
            {"date": "2026-01-10", "time": "19:00", "event_type": "Wedding", "location": "Hall A"},
        ],
    })
    assert resp.status_code == 202, resp.text
    return resp.json()
