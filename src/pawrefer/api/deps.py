"""Service dependencies.

Each request builds its services around the injected ``Database`` so tests
can swap the database through ``app.dependency_overrides``.
"""

from fastapi import Depends

from pawrefer.rewards.service import RewardService
from pawrefer.storage.db import Database, get_database
from pawrefer.submissions.service import SubmissionService
from pawrefer.users.service import UserService


def get_reward_service(database: Database = Depends(get_database)) -> RewardService:
    return RewardService(database)


def get_submission_service(database: Database = Depends(get_database)) -> SubmissionService:
    return SubmissionService(database)


def get_user_service(database: Database = Depends(get_database)) -> UserService:
    return UserService(database)
