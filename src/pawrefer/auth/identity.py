"""Managed identity provider (Firebase Authentication).

The provider verifies short-lived ID tokens minted by the client SDK,
exchanges them for long-lived session cookies, and owns the custom claims
attached to each account. Nothing here touches the database.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

import firebase_admin
from firebase_admin import auth, credentials

from pawrefer.errors import AuthenticationError
from pawrefer.logging_config import get_logger
from pawrefer.settings import settings

logger = get_logger(__name__)

# Keys Firebase puts in every decoded token; anything else is a custom claim
_RESERVED_CLAIMS = {
    "aud", "auth_time", "email", "email_verified", "exp", "firebase", "iat",
    "iss", "name", "picture", "sub", "uid", "user_id", "phone_number",
}


@dataclass
class Identity:
    """Verified account as seen by the identity provider."""
    uid: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def claimed_role(self) -> str:
        """Role carried in the token. Informational only, never trusted."""
        return self.claims.get("role", "user")

    @classmethod
    def from_decoded_token(cls, decoded: dict[str, Any]) -> "Identity":
        return cls(
            uid=decoded["uid"],
            email=decoded.get("email"),
            display_name=decoded.get("name"),
            photo_url=decoded.get("picture"),
            claims={k: v for k, v in decoded.items() if k not in _RESERVED_CLAIMS},
        )


class IdentityProvider:
    """Interface to the managed auth service."""

    def verify_id_token(self, id_token: str) -> Identity:
        raise NotImplementedError

    def create_session_cookie(self, id_token: str, expires_in: timedelta) -> str:
        raise NotImplementedError

    def verify_session_cookie(self, session_cookie: str) -> Identity:
        raise NotImplementedError

    def get_user_by_email(self, email: str) -> Identity | None:
        raise NotImplementedError

    def get_user(self, uid: str) -> Identity | None:
        raise NotImplementedError

    def set_custom_claims(self, uid: str, claims: dict[str, Any]) -> None:
        raise NotImplementedError


class FirebaseIdentityProvider(IdentityProvider):
    """Identity provider backed by the Firebase Admin SDK.

    The Firebase app is initialized lazily on first use so importing the
    module never needs credentials.
    """

    APP_NAME = "pawrefer"

    def __init__(self):
        self._app: firebase_admin.App | None = None

    @property
    def app(self) -> firebase_admin.App:
        if self._app is None:
            self._app = self._initialize_app()
        return self._app

    def _initialize_app(self) -> firebase_admin.App:
        try:
            return firebase_admin.get_app(self.APP_NAME)
        except ValueError:
            pass

        if settings.firebase_credentials_file:
            cred = credentials.Certificate(settings.firebase_credentials_file)
        elif settings.firebase_client_email and settings.firebase_private_key:
            cred = credentials.Certificate({
                "type": "service_account",
                "project_id": settings.firebase_project_id,
                "private_key": settings.firebase_private_key.replace("\\n", "\n"),
                "client_email": settings.firebase_client_email,
                "token_uri": "https://oauth2.googleapis.com/token",
            })
        else:
            # Application default credentials (GCP runtime or emulator)
            cred = credentials.ApplicationDefault()

        options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
        app = firebase_admin.initialize_app(cred, options=options, name=self.APP_NAME)
        logger.info("firebase_initialized", project_id=settings.firebase_project_id)
        return app

    def verify_id_token(self, id_token: str) -> Identity:
        try:
            decoded = auth.verify_id_token(id_token, app=self.app, check_revoked=True)
        except (
            ValueError,
            auth.InvalidIdTokenError,
            auth.UserDisabledError,
            auth.UserNotFoundError,
        ) as e:
            logger.warning("id_token_rejected", error=str(e))
            raise AuthenticationError("Invalid ID token") from e
        return Identity.from_decoded_token(decoded)

    def create_session_cookie(self, id_token: str, expires_in: timedelta) -> str:
        try:
            cookie = auth.create_session_cookie(id_token, expires_in=expires_in, app=self.app)
        except (ValueError, auth.InvalidIdTokenError) as e:
            raise AuthenticationError("Invalid ID token") from e
        return cookie.decode() if isinstance(cookie, bytes) else cookie

    def verify_session_cookie(self, session_cookie: str) -> Identity:
        try:
            decoded = auth.verify_session_cookie(session_cookie, check_revoked=True, app=self.app)
        except (
            ValueError,
            auth.InvalidSessionCookieError,
            auth.UserDisabledError,
            auth.UserNotFoundError,
        ) as e:
            # Deleted accounts surface as UserNotFoundError during the revocation check
            logger.info("session_cookie_rejected", error=str(e))
            raise AuthenticationError("Invalid session") from e
        return Identity.from_decoded_token(decoded)

    def get_user_by_email(self, email: str) -> Identity | None:
        try:
            record = auth.get_user_by_email(email, app=self.app)
        except auth.UserNotFoundError:
            return None
        return self._from_record(record)

    def get_user(self, uid: str) -> Identity | None:
        try:
            record = auth.get_user(uid, app=self.app)
        except auth.UserNotFoundError:
            return None
        return self._from_record(record)

    def set_custom_claims(self, uid: str, claims: dict[str, Any]) -> None:
        auth.set_custom_user_claims(uid, claims, app=self.app)
        logger.info("custom_claims_updated", uid=uid, claims=sorted(claims))

    @staticmethod
    def _from_record(record: auth.UserRecord) -> Identity:
        return Identity(
            uid=record.uid,
            email=record.email,
            display_name=record.display_name,
            photo_url=record.photo_url,
            claims=dict(record.custom_claims or {}),
        )


# Singleton instance
identity_provider = FirebaseIdentityProvider()


def get_identity_provider() -> IdentityProvider:
    """FastAPI dependency returning the configured identity provider."""
    return identity_provider
