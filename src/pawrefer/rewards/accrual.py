"""Reward accrual arithmetic.

A user earns one reward per ``referrals_per_reward`` accepted referrals.
Claims consume earned rewards one at a time. The stored counters are not
constrained against each other, so the claimed count can exceed the earned
count (administrative correction, legacy double claims); in that case the
pending count clamps at zero and ``mismatch`` is set so the dashboard can
show a notice instead of an error.
"""

from dataclasses import dataclass

from pawrefer.settings import settings


@dataclass(frozen=True)
class RewardStatus:
    """Derived reward counters for one user."""
    referral_count: int
    rewards_earned: int
    rewards_claimed: int
    pending_rewards: int
    referrals_per_reward: int

    @property
    def mismatch(self) -> bool:
        """More rewards claimed than earned."""
        return self.rewards_claimed > self.rewards_earned

    @property
    def can_claim(self) -> bool:
        return self.pending_rewards > 0

    @property
    def referrals_to_next_reward(self) -> int:
        return self.referrals_per_reward - (self.referral_count % self.referrals_per_reward)


def rewards_earned(referral_count: int, per_reward: int | None = None) -> int:
    """Number of rewards unlocked by ``referral_count`` referrals."""
    per_reward = per_reward or settings.referrals_per_reward
    return max(referral_count, 0) // per_reward


def compute_reward_status(
    referral_count: int | None,
    rewards_claimed: int | None,
    per_reward: int | None = None,
) -> RewardStatus:
    """Derive earned and pending rewards from the stored counters.

    Missing counters count as zero.
    """
    per_reward = per_reward or settings.referrals_per_reward
    referral_count = referral_count or 0
    rewards_claimed = rewards_claimed or 0
    earned = rewards_earned(referral_count, per_reward)

    return RewardStatus(
        referral_count=referral_count,
        rewards_earned=earned,
        rewards_claimed=rewards_claimed,
        pending_rewards=max(earned - rewards_claimed, 0),
        referrals_per_reward=per_reward,
    )
