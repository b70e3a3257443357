"""
SnackSpot Auckland - Test Configuration

Pytest fixtures for authentication testing.
Provides test database, auth manager, client, and user fixtures.
"""

import pytest
from datetime import timedelta
from typing import Generator

from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlalchemy.pool import StaticPool

from snackspot.app import app
from snackspot.config import AuthConfig
from snackspot.auth.database import get_session_factory
from snackspot.auth.models import User, utcnow
from snackspot.auth.service import AuthManager


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_SECRET_KEY = "test-secret-key-that-is-long-enough-for-hs256"


class FakeClock:
    """Controllable clock returning naive UTC datetimes."""

    def __init__(self):
        self.now = utcnow()

    def __call__(self):
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture(scope="function")
def test_config() -> AuthConfig:
    """Auth config with a cheap bcrypt cost and an insecure cookie for http tests."""
    return AuthConfig(
        secret_key=TEST_SECRET_KEY,
        issuer="SnackSpotAuckland",
        audience="SnackSpotAuckland",
        access_token_lifetime=timedelta(minutes=15),
        refresh_token_lifetime=timedelta(days=30),
        bcrypt_work_factor=4,
        refresh_cookie_secure=False,
    )


@pytest.fixture(scope="function")
def test_engine():
    """Create a fresh test database engine for each test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Import models to register them
    from snackspot.auth.models import User, RefreshToken  # noqa: F401

    # Create all tables
    SQLModel.metadata.create_all(engine)

    yield engine

    # Cleanup
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a database session for inspecting stored rows."""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(scope="function")
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="function")
def auth_manager(test_config, test_engine, clock) -> AuthManager:
    """Auth manager over the test database with a controllable clock."""
    return AuthManager(test_config, get_session_factory(test_engine), clock=clock)


@pytest.fixture(scope="function")
def client(test_config, test_engine) -> Generator[TestClient, None, None]:
    """Create a test client with fresh database."""
    app.state.auth_manager = AuthManager(test_config, get_session_factory(test_engine))

    with TestClient(app) as c:
        yield c

    app.state.auth_manager = None


@pytest.fixture(scope="function")
def alice(auth_manager) -> User:
    """Registered test user alice / alice@example.com / secret1."""
    result = auth_manager.register("alice", "alice@example.com", "secret1")
    assert result.success
    return result.user


@pytest.fixture(scope="function")
def bob(auth_manager) -> User:
    """Registered test user bob / bob@example.com / hunter22."""
    result = auth_manager.register("bob", "bob@example.com", "hunter22")
    assert result.success
    return result.user


def register_user(client: TestClient, username: str, email: str, password: str):
    """Helper function to register through the API."""
    return client.post(
        "/api/v1/auth/register",
        json={"username": username, "email": email, "password": password},
    )


def login_user(client: TestClient, email: str, password: str):
    """Helper function to login through the API."""
    return client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )


def auth_headers(access_token: str) -> dict:
    """Create authorization headers for authenticated requests."""
    return {"Authorization": f"Bearer {access_token}"}
