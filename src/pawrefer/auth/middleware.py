"""Session resolution for FastAPI.

Handlers never read cookies or global auth state themselves; they declare a
dependency on ``require_session`` or ``require_admin`` and receive an explicit
``SessionContext``.
"""

from dataclasses import dataclass

from fastapi import Depends, Request

from pawrefer.auth.identity import Identity, IdentityProvider, get_identity_provider
from pawrefer.errors import AuthenticationError, PermissionDeniedError, to_http_exception
from pawrefer.logging_config import get_logger
from pawrefer.settings import settings
from pawrefer.storage.db import Database, get_database
from pawrefer.storage.models import UserRole
from pawrefer.users.service import UserService

logger = get_logger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """A verified session cookie plus the caller's stored role.

    ``role`` comes from the users table on every request. ``session_role`` is
    whatever the cookie claims carried when it was minted; it goes stale after
    a promotion and is only reported, never used for authorization.
    """
    identity: Identity
    role: str | None

    @property
    def user_id(self) -> str:
        return self.identity.uid

    @property
    def email(self) -> str | None:
        return self.identity.email

    @property
    def session_role(self) -> str:
        return self.identity.claimed_role

    @property
    def has_account(self) -> bool:
        return self.role is not None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def requires_relogin(self) -> bool:
        """Stored role and cookie claims disagree."""
        return self.has_account and self.role != self.session_role


def get_session(
    request: Request,
    database: Database = Depends(get_database),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> SessionContext | None:
    """Resolve the session cookie, or None when absent or invalid.

    Args:
        request: FastAPI request
        database: Database used for the fresh role lookup
        provider: Identity provider that verifies the cookie

    Returns:
        Session context or None if not authenticated
    """
    cookie = request.cookies.get(settings.session_cookie_name)
    if not cookie:
        return None

    try:
        identity = provider.verify_session_cookie(cookie)
    except AuthenticationError:
        return None

    role = UserService(database).get_role(identity.uid)
    return SessionContext(identity=identity, role=role)


def require_session(session: SessionContext | None = Depends(get_session)) -> SessionContext:
    """Require a valid session - raises 401 if not authenticated.

    Raises:
        HTTPException: 401 if the cookie is missing or invalid
    """
    if not session:
        raise to_http_exception(AuthenticationError("Unauthorized"))
    return session


def require_admin(session: SessionContext = Depends(require_session)) -> SessionContext:
    """Require the admin role, read fresh from the users table.

    Raises:
        HTTPException: 403 if the stored role is not admin
    """
    if not session.is_admin:
        logger.warning(
            "admin_access_denied",
            user_id=session.user_id,
            role=session.role,
            session_role=session.session_role,
        )
        raise to_http_exception(PermissionDeniedError("Admin access required"))
    return session
