"""Shared fixtures: a throwaway database and an in-memory identity provider."""

import os

# Settings are read at import time
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BASE_URL"] = "http://localhost:3000"

from dataclasses import replace  # noqa: E402
from datetime import timedelta  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from pawrefer.api.main import app as fastapi_app  # noqa: E402
from pawrefer.auth.identity import Identity, IdentityProvider, get_identity_provider  # noqa: E402
from pawrefer.errors import AuthenticationError  # noqa: E402
from pawrefer.storage.db import Database, get_database  # noqa: E402
from pawrefer.storage.models import UserAccount, utcnow  # noqa: E402
from pawrefer.users.service import UserService  # noqa: E402


class FakeIdentityProvider(IdentityProvider):
    """Identity provider that keeps accounts and sessions in memory.

    ID tokens are ``token-<uid>``. A session cookie remembers the claims the
    account had when the cookie was minted, like a real session cookie does.
    """

    def __init__(self):
        self.accounts: dict[str, Identity] = {}
        self.sessions: dict[str, Identity] = {}
        self.claim_updates: list[tuple[str, dict[str, Any]]] = []

    def add_account(
        self,
        uid: str,
        email: str | None = None,
        display_name: str | None = None,
        claims: dict[str, Any] | None = None,
    ) -> Identity:
        identity = Identity(
            uid=uid,
            email=email or f"{uid}@example.com",
            display_name=display_name or uid.title(),
            claims=dict(claims or {}),
        )
        self.accounts[uid] = identity
        return identity

    def verify_id_token(self, id_token: str) -> Identity:
        uid = id_token[len("token-"):] if id_token.startswith("token-") else None
        if uid not in self.accounts:
            raise AuthenticationError("Invalid ID token")
        identity = self.accounts[uid]
        return replace(identity, claims=dict(identity.claims))

    def create_session_cookie(self, id_token: str, expires_in: timedelta) -> str:
        identity = self.verify_id_token(id_token)
        cookie = f"cookie-{identity.uid}-{len(self.sessions)}"
        self.sessions[cookie] = identity
        return cookie

    def verify_session_cookie(self, session_cookie: str) -> Identity:
        if session_cookie not in self.sessions:
            raise AuthenticationError("Invalid session")
        return self.sessions[session_cookie]

    def get_user_by_email(self, email: str) -> Identity | None:
        for identity in self.accounts.values():
            if identity.email == email:
                return identity
        return None

    def get_user(self, uid: str) -> Identity | None:
        return self.accounts.get(uid)

    def set_custom_claims(self, uid: str, claims: dict[str, Any]) -> None:
        identity = self.accounts.get(uid) or Identity(uid=uid)
        self.accounts[uid] = replace(identity, claims=dict(claims))
        self.claim_updates.append((uid, dict(claims)))


@pytest.fixture
def database(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'pawrefer-test.db'}")
    database.create_tables()
    yield database
    database.dispose()


@pytest.fixture
def provider():
    return FakeIdentityProvider()


@pytest.fixture
def make_user(database):
    """Insert a user row directly, with whatever counters the test needs."""

    def _make_user(
        uid: str,
        email: str | None = None,
        display_name: str | None = None,
        role: str = "user",
        referral_count: int = 0,
        rewards_claimed: int = 0,
        last_login_at=None,
    ) -> UserAccount:
        with database.session() as session:
            user = UserAccount(
                id=uid,
                email=email or f"{uid}@example.com",
                display_name=display_name or uid.title(),
                role=role,
                referral_count=referral_count,
                rewards_claimed=rewards_claimed,
                created_at=utcnow(),
                last_login_at=last_login_at,
            )
            session.add(user)
        return user

    return _make_user


@pytest.fixture
def app(database, provider):
    fastapi_app.dependency_overrides[get_database] = lambda: database
    fastapi_app.dependency_overrides[get_identity_provider] = lambda: provider
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def login(app, provider):
    """Sign a TestClient in as ``uid``; the session cookie lands in its jar."""

    def _login(test_client: TestClient, uid: str, email: str | None = None):
        if uid not in provider.accounts:
            provider.add_account(uid, email=email)
        response = test_client.post("/api/v1/auth/session", json={"idToken": f"token-{uid}"})
        assert response.status_code == 200, response.text
        return response

    return _login


@pytest.fixture
def admin_client(app, database, provider, login):
    """Separate client signed in as an admin."""
    admin = TestClient(app)
    login(admin, "admin", email="admin@example.com")
    UserService(database).promote_to_admin("admin@example.com", provider)
    return admin
