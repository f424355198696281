"""Firebase-backed identity provider error mapping."""

import pytest
from fastapi.testclient import TestClient
from firebase_admin import auth

from pawrefer.auth import identity as identity_module
from pawrefer.auth.identity import FirebaseIdentityProvider, get_identity_provider
from pawrefer.errors import AuthenticationError


@pytest.fixture
def firebase_provider():
    provider = FirebaseIdentityProvider()
    # Skip app initialization; every SDK call below is patched
    provider._app = object()
    return provider


def _deleted_account(*args, **kwargs):
    raise auth.UserNotFoundError("No user record found for the given identifier")


def test_session_cookie_for_deleted_account(monkeypatch, firebase_provider):
    monkeypatch.setattr(identity_module.auth, "verify_session_cookie", _deleted_account)

    with pytest.raises(AuthenticationError):
        firebase_provider.verify_session_cookie("cookie-of-deleted-user")


def test_id_token_for_deleted_account(monkeypatch, firebase_provider):
    monkeypatch.setattr(identity_module.auth, "verify_id_token", _deleted_account)

    with pytest.raises(AuthenticationError):
        firebase_provider.verify_id_token("token-of-deleted-user")


def test_deleted_account_cookie_is_unauthorized(app, monkeypatch, firebase_provider):
    monkeypatch.setattr(identity_module.auth, "verify_session_cookie", _deleted_account)
    app.dependency_overrides[get_identity_provider] = lambda: firebase_provider

    response = TestClient(app).get(
        "/api/v1/auth/session",
        headers={"Cookie": "session=cookie-of-deleted-user"},
    )

    assert response.status_code == 401


def test_decoded_token_keeps_only_custom_claims():
    identity = identity_module.Identity.from_decoded_token({
        "uid": "u1",
        "email": "u1@example.com",
        "name": "Uma",
        "iss": "https://session.firebase.google.com/demo",
        "role": "admin",
        "beta": True,
    })

    assert identity.display_name == "Uma"
    assert identity.claims == {"role": "admin", "beta": True}
    assert identity.claimed_role == "admin"
