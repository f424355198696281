"""Rewards API v1 endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from pawrefer.api.deps import get_reward_service
from pawrefer.api.serializers import (
    reward_notice,
    serialize_claim,
    serialize_status,
    serialize_template,
)
from pawrefer.auth.middleware import SessionContext, require_admin, require_session
from pawrefer.errors import PawReferError, to_http_exception
from pawrefer.logging_config import get_logger
from pawrefer.rewards.service import RewardService

logger = get_logger(__name__)

router = APIRouter(tags=["rewards"])


# ==================== MODELS ====================


class ClaimRewardRequest(BaseModel):
    """Claim one reward, optionally for a specific template."""
    model_config = ConfigDict(populate_by_name=True)

    reward_id: str | None = Field(default=None, alias="rewardId")


# ==================== USER ENDPOINTS ====================


@router.get("/user/rewards")
def get_user_rewards(
    session: SessionContext = Depends(require_session),
    rewards: RewardService = Depends(get_reward_service),
):
    """Get derived reward counters and the caller's claim history."""
    try:
        status, claims = rewards.get_user_rewards(session.user_id)
    except PawReferError as e:
        raise to_http_exception(e)

    return {
        **serialize_status(status),
        "notice": reward_notice(status),
        "rewards": [serialize_claim(c) for c in claims],
    }


@router.post("/user/rewards")
def claim_reward(
    body: ClaimRewardRequest | None = None,
    session: SessionContext = Depends(require_session),
    rewards: RewardService = Depends(get_reward_service),
):
    """Claim one pending reward.

    Eligibility is re-derived from the stored counters, so a stale dashboard
    cannot claim more than the user earned.
    """
    template_id = body.reward_id if body else None
    logger.info("reward_claim_requested", user_id=session.user_id, template_id=template_id)

    try:
        claim = rewards.claim_reward(session.user_id, template_id=template_id)
    except PawReferError as e:
        raise to_http_exception(e)

    return {
        "success": True,
        "message": "Reward claimed successfully",
        "rewardId": claim.id,
    }


# ==================== TEMPLATE ENDPOINTS ====================


@router.get("/rewards/templates")
def list_reward_templates(
    active_only: bool = False,
    rewards: RewardService = Depends(get_reward_service),
):
    """List reward templates (never includes claims)."""
    templates = rewards.list_templates(active_only=active_only)
    return {"rewardTemplates": [serialize_template(t) for t in templates]}


@router.post("/rewards/templates")
def seed_reward_templates(
    admin: SessionContext = Depends(require_admin),
    rewards: RewardService = Depends(get_reward_service),
):
    """Create the five default templates that do not exist yet."""
    added = rewards.seed_default_templates()
    logger.info("reward_templates_seed_requested", admin_id=admin.user_id, added=len(added))
    return {
        "message": "Reward templates created successfully",
        "addedTemplates": [serialize_template(t) for t in added],
    }
