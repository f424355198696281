"""Referral rewards for PawRefer.

Every 10 referrals earn one reward:
- rewards_earned = referral_count // 10
- pending_rewards = max(rewards_earned - rewards_claimed, 0)
- a claim consumes one pending reward and waits for admin review
"""

from pawrefer.rewards.accrual import RewardStatus, compute_reward_status, rewards_earned
from pawrefer.rewards.service import (
    DEFAULT_REWARD_TEMPLATES,
    ClaimConflictError,
    RewardService,
)

__all__ = [
    "DEFAULT_REWARD_TEMPLATES",
    "ClaimConflictError",
    "RewardService",
    "RewardStatus",
    "compute_reward_status",
    "rewards_earned",
]
