"""Session API v1 endpoints."""

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ConfigDict, Field

from pawrefer.api.deps import get_user_service
from pawrefer.api.rate_limit import SESSION_LIMIT, limiter
from pawrefer.auth.identity import IdentityProvider, get_identity_provider
from pawrefer.auth.middleware import SessionContext, require_session
from pawrefer.errors import AuthenticationError, to_http_exception
from pawrefer.logging_config import get_logger
from pawrefer.settings import settings
from pawrefer.users.service import UserService

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ==================== MODELS ====================


class CreateSessionRequest(BaseModel):
    """Exchange a client ID token for a session cookie."""
    model_config = ConfigDict(populate_by_name=True)

    id_token: str | None = Field(default=None, alias="idToken")


# ==================== HELPERS ====================


def _set_session_cookie(response: Response, value: str) -> None:
    max_age = int(timedelta(days=settings.session_expires_days).total_seconds())
    response.set_cookie(
        key=settings.session_cookie_name,
        value=value,
        max_age=max_age,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )


def _clear_session_cookie(response: Response) -> None:
    response.delete_cookie(settings.session_cookie_name, path="/")


# ==================== ENDPOINTS ====================


@router.post("/session")
@limiter.limit(SESSION_LIMIT)
def create_session(
    request: Request,
    response: Response,
    body: CreateSessionRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
    users: UserService = Depends(get_user_service),
):
    """Verify an ID token and set the session cookie.

    The cookie carries no role that the server trusts; roles are read from
    the users table on every privileged request.
    """
    if not body.id_token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing ID token")

    try:
        identity = provider.verify_id_token(body.id_token)
        user = users.ensure_user(identity)
        cookie = provider.create_session_cookie(
            body.id_token,
            expires_in=timedelta(days=settings.session_expires_days),
        )
    except AuthenticationError as e:
        raise to_http_exception(e)

    _set_session_cookie(response, cookie)
    logger.info("session_created", user_id=user.id, role=user.role)
    return {"success": True, "role": user.role}


@router.delete("/session")
def delete_session(response: Response):
    """Clear the session cookie."""
    _clear_session_cookie(response)
    return {"success": True}


@router.get("/session")
def get_session_info(session: SessionContext = Depends(require_session)):
    """Describe the current session.

    ``sessionRole`` is what the cookie was minted with; ``role`` is the
    stored role. They differ after a promotion until the user signs in again.
    """
    return {
        "uid": session.user_id,
        "email": session.email,
        "role": session.role,
        "sessionRole": session.session_role,
        "requiresRelogin": session.requires_relogin,
    }


@router.get("/signout")
def signout():
    """Clear the session cookie and send the browser to the sign-in page."""
    response = RedirectResponse(
        url=f"{settings.base_url.rstrip('/')}/auth",
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    )
    _clear_session_cookie(response)
    return response
