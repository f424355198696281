"""User accounts for PawRefer."""

from pawrefer.users.service import PromotionResult, UserService

__all__ = ["PromotionResult", "UserService"]
