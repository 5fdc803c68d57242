"""Pytest fixtures - file-backed SQLite database recreated for every test."""
import os

# Settings are read at import time, so point them at the test database first
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tweeter.core.database import Base, get_db
from tweeter.main import app

# Import all models so they register with Base.metadata
from tweeter.models.user import User    # noqa: F401
from tweeter.models.tweet import Tweet  # noqa: F401

SQLITE_URL = os.environ["DATABASE_URL"]
DEFAULT_PASSWORD = "Abc123!"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite schema for each test."""
    engine = create_engine(
        SQLITE_URL, connect_args={"check_same_thread": False}, hide_parameters=True)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session for direct assertions on stored rows."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database dependency overridden."""
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def other_client(client):
    """A second browser against the same app and database."""
    with TestClient(app) as c:
        yield c


# ---------------------------------------------------------------------------
# Helpers: drive the API the way the client forms do
# ---------------------------------------------------------------------------
def create_account(client: TestClient, email: str = "a@b.com", username: str = "abc",
                   password: str = DEFAULT_PASSWORD, phone: str = None):
    """POST the create-account form and return the raw response."""
    data = {"email": email, "username": username, "password": password}
    if phone is not None:
        data["phone"] = phone
    return client.post("/api/auth/create-account", data=data)


def create_test_user(client: TestClient, **kwargs) -> dict:
    """Create an account (which also logs the client in) and return the result JSON."""
    resp = create_account(client, **kwargs)
    assert resp.status_code == 201, resp.text
    return resp.json()


def login(client: TestClient, email: str = "a@b.com", password: str = DEFAULT_PASSWORD):
    return client.post("/api/auth/login", data={"email": email, "password": password})


def post_tweet(client: TestClient, content: str = "hello"):
    return client.post("/api/tweets/", data={"content": content})
