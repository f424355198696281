"""JSON shapes returned to the web client (camelCase keys)."""

from datetime import datetime
from typing import Any

from pawrefer.rewards.accrual import RewardStatus, rewards_earned
from pawrefer.settings import settings
from pawrefer.storage.models import RewardClaim, RewardTemplate, Submission, UserAccount


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def referral_link(user_id: str) -> str:
    """Public survey link that credits ``user_id``."""
    return f"{settings.base_url.rstrip('/')}/survey/pet/{user_id}"


def serialize_user(user: UserAccount) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "displayName": user.display_name,
        "photoURL": user.photo_url,
        "role": user.role,
        "referralCount": user.referral_count,
        "rewardsEarned": rewards_earned(user.referral_count),
        "rewardsClaimed": user.rewards_claimed,
        "createdAt": _iso(user.created_at),
        "lastLoginAt": _iso(user.last_login_at),
    }


def serialize_status(status: RewardStatus) -> dict[str, Any]:
    return {
        "referralCount": status.referral_count,
        "rewardsEarned": status.rewards_earned,
        "rewardsClaimed": status.rewards_claimed,
        "pendingRewards": status.pending_rewards,
        "referralsPerReward": status.referrals_per_reward,
        "referralsToNextReward": status.referrals_to_next_reward,
        "mismatch": status.mismatch,
    }


def reward_notice(status: RewardStatus) -> str | None:
    """Informational text shown when claimed rewards exceed earned rewards."""
    if not status.mismatch:
        return None
    return (
        f"You have claimed {status.rewards_claimed} rewards but earned "
        f"{status.rewards_earned}. New rewards unlock once your referrals catch up."
    )


def serialize_submission(submission: Submission) -> dict[str, Any]:
    return {
        **(submission.answers or {}),
        "id": submission.id,
        "name": submission.name,
        "email": submission.email,
        "type": submission.type,
        "referredBy": submission.referred_by,
        "status": submission.status,
        "createdAt": _iso(submission.created_at),
        "updatedAt": _iso(submission.updated_at),
    }


def serialize_claim(claim: RewardClaim, user_name: str | None = None) -> dict[str, Any]:
    data = {
        "id": claim.id,
        "userId": claim.user_id,
        "status": claim.status,
        "templateId": claim.template_id,
        "name": claim.name,
        "description": claim.description,
        "pointsRequired": claim.points_required,
        "createdAt": _iso(claim.created_at),
        "processedAt": _iso(claim.processed_at),
    }
    if user_name is not None:
        data["userName"] = user_name
    return data


def serialize_template(template: RewardTemplate) -> dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "description": template.description,
        "pointsRequired": template.points_required,
        "status": template.status,
        "createdAt": _iso(template.created_at),
    }
