from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from secure_notes.config import Settings
from secure_notes.main import create_app
from secure_notes.security import PasswordHasher, TokenCodec
from secure_notes.stores import NoteStore, UserStore

TEST_SECRET = "test-jwt-secret-for-notes-tests-only"
TEST_PASSWORD = "correct-horse-battery"


class FakeClock:
    """Mutable clock handed to TokenCodec so tests can move time forward."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime.now(timezone.utc).replace(microsecond=0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ── Core fixtures ─────────────────────────────────────────────────────


@pytest.fixture(name="settings")
def settings_fixture() -> Settings:
    return Settings(secret_key=TEST_SECRET, database_url="sqlite://", bcrypt_rounds=4)


@pytest.fixture(name="clock")
def clock_fixture() -> FakeClock:
    return FakeClock()


@pytest.fixture(name="hasher")
def hasher_fixture() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture(name="codec")
def codec_fixture(settings, clock) -> TokenCodec:
    return TokenCodec(settings.secret_key, ttl=settings.access_token_ttl, clock=clock)


@pytest.fixture(name="app")
def app_fixture(settings, codec):
    """Fresh application on its own in-memory database per test."""
    app = create_app(settings, token_codec=codec)
    yield app
    app.state.engine.dispose()


@pytest.fixture(name="session")
def session_fixture(app):
    """Session bound to the same in-memory database the app uses."""
    db = app.state.session_factory()
    yield db
    db.close()


@pytest.fixture(name="users")
def users_fixture(session, hasher) -> UserStore:
    return UserStore(session, hasher)


@pytest.fixture(name="notes")
def notes_fixture(session) -> NoteStore:
    return NoteStore(session)


# ── HTTP client fixtures ──────────────────────────────────────────────


@pytest.fixture(name="client")
def client_fixture(app):
    with TestClient(app) as client:
        yield client


def register_and_login(client: TestClient, email: str, password: str = TEST_PASSWORD) -> dict:
    """Register + login through the API; return the Authorization header."""
    resp = client.post("/auth/register", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['data']['token']}"}


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(client) -> dict:
    return register_and_login(client, "alice@example.com")


@pytest.fixture(name="other_headers")
def other_headers_fixture(client) -> dict:
    return register_and_login(client, "bob@example.com")


@pytest.fixture(name="login_as")
def login_as_fixture(client):
    def _login_as(email: str, password: str = TEST_PASSWORD) -> dict:
        return register_and_login(client, email, password)

    return _login_as
