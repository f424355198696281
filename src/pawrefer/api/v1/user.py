"""Signed-in user API v1 endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from pawrefer.api.deps import get_submission_service, get_user_service
from pawrefer.api.serializers import referral_link, serialize_submission, serialize_user
from pawrefer.auth.middleware import SessionContext, require_session
from pawrefer.errors import PawReferError, to_http_exception
from pawrefer.submissions.service import SubmissionService
from pawrefer.users.service import UserService

router = APIRouter(prefix="/user", tags=["user"])


class UpdateProfileRequest(BaseModel):
    """Update profile request."""
    model_config = ConfigDict(populate_by_name=True)

    display_name: str = Field(..., min_length=1, max_length=255, alias="displayName")


@router.get("/referrals")
def get_referrals(
    session: SessionContext = Depends(require_session),
    users: UserService = Depends(get_user_service),
    submissions: SubmissionService = Depends(get_submission_service),
):
    """Submissions credited to the caller, plus the link to share."""
    try:
        user = users.get_user(session.user_id)
    except PawReferError as e:
        raise to_http_exception(e)

    referrals = submissions.list_referrals(session.user_id)
    return {
        "referralLink": referral_link(session.user_id),
        "referralCount": user.referral_count,
        "referrals": [serialize_submission(s) for s in referrals],
    }


@router.get("/profile")
def get_profile(
    session: SessionContext = Depends(require_session),
    users: UserService = Depends(get_user_service),
):
    try:
        return serialize_user(users.get_user(session.user_id))
    except PawReferError as e:
        raise to_http_exception(e)


@router.patch("/profile")
def update_profile(
    body: UpdateProfileRequest,
    session: SessionContext = Depends(require_session),
    users: UserService = Depends(get_user_service),
):
    """Change the caller's display name."""
    try:
        user = users.update_profile(session.user_id, body.display_name)
    except PawReferError as e:
        raise to_http_exception(e)
    return serialize_user(user)
