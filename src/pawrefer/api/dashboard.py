"""Dashboard view models.

Everything under ``/dashboard`` sits behind the session gate in
``pawrefer.api.main``; these endpoints return the data each dashboard page
renders.
"""

from fastapi import APIRouter, Depends

from pawrefer.api.deps import get_reward_service, get_submission_service, get_user_service
from pawrefer.api.serializers import (
    referral_link,
    reward_notice,
    serialize_claim,
    serialize_status,
    serialize_submission,
    serialize_template,
    serialize_user,
)
from pawrefer.auth.middleware import SessionContext, require_admin, require_session
from pawrefer.errors import PawReferError, to_http_exception
from pawrefer.rewards.accrual import compute_reward_status
from pawrefer.rewards.service import RewardService
from pawrefer.storage.models import ClaimStatus
from pawrefer.submissions.service import SubmissionService
from pawrefer.users.service import UserService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

RECENT_ITEMS = 5


@router.get("")
def overview(
    session: SessionContext = Depends(require_session),
    users: UserService = Depends(get_user_service),
    submissions: SubmissionService = Depends(get_submission_service),
):
    """Welcome panel, reward counters and latest referrals."""
    try:
        user = users.get_user(session.user_id)
    except PawReferError as e:
        raise to_http_exception(e)

    status = compute_reward_status(user.referral_count, user.rewards_claimed)
    return {
        "user": serialize_user(user),
        "rewards": serialize_status(status),
        "notice": reward_notice(status),
        "referralLink": referral_link(user.id),
        "recentReferrals": [
            serialize_submission(s) for s in submissions.list_referrals(user.id)[:RECENT_ITEMS]
        ],
        "isAdmin": session.is_admin,
        "requiresRelogin": session.requires_relogin,
    }


@router.get("/referrals")
def referrals(
    session: SessionContext = Depends(require_session),
    submissions: SubmissionService = Depends(get_submission_service),
):
    return {
        "referralLink": referral_link(session.user_id),
        "referrals": [serialize_submission(s) for s in submissions.list_referrals(session.user_id)],
    }


@router.get("/rewards")
def rewards_page(
    session: SessionContext = Depends(require_session),
    rewards: RewardService = Depends(get_reward_service),
):
    """Claim card, active templates and claim history."""
    try:
        status, claims = rewards.get_user_rewards(session.user_id)
    except PawReferError as e:
        raise to_http_exception(e)

    return {
        "rewards": serialize_status(status),
        "notice": reward_notice(status),
        "templates": [serialize_template(t) for t in rewards.list_templates(active_only=True)],
        "history": [serialize_claim(c) for c in claims],
    }


@router.get("/settings")
def settings_page(
    session: SessionContext = Depends(require_session),
    users: UserService = Depends(get_user_service),
):
    try:
        return {"user": serialize_user(users.get_user(session.user_id))}
    except PawReferError as e:
        raise to_http_exception(e)


@router.get("/admin")
def admin_overview(
    admin: SessionContext = Depends(require_admin),
    users: UserService = Depends(get_user_service),
    submissions: SubmissionService = Depends(get_submission_service),
    rewards: RewardService = Depends(get_reward_service),
):
    """Stats cards, recent submissions and the pending claim queue."""
    pending = rewards.list_claims(status=ClaimStatus.PENDING.value)
    return {
        "stats": {
            "totalUsers": users.count_users(),
            "totalSubmissions": submissions.count_submissions(),
            "pendingRewards": len(pending),
        },
        "recentSubmissions": [
            serialize_submission(s) for s in submissions.list_submissions(limit=RECENT_ITEMS)
        ],
        "pendingRewards": [
            serialize_claim(claim, name or "Unknown User") for claim, name in pending
        ],
    }
