"""Persistence layer: SQLAlchemy models and session management."""

from pawrefer.storage.db import Database, db, get_database
from pawrefer.storage.models import (
    Base,
    ClaimStatus,
    Reward,
    RewardClaim,
    RewardKind,
    RewardTemplate,
    Submission,
    SubmissionStatus,
    TemplateStatus,
    UserAccount,
    UserRole,
)

__all__ = [
    "Base",
    "ClaimStatus",
    "Database",
    "Reward",
    "RewardClaim",
    "RewardKind",
    "RewardTemplate",
    "Submission",
    "SubmissionStatus",
    "TemplateStatus",
    "UserAccount",
    "UserRole",
    "db",
    "get_database",
]
