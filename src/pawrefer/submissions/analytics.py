"""Survey analytics for the admin dashboard."""

from datetime import timedelta
from typing import Any

from sqlalchemy import func, select

from pawrefer.storage.db import Database, db
from pawrefer.storage.models import Submission, UserAccount, utcnow

# Feature ratings (1-5) asked by the pet survey
SURVEY_FEATURES = (
    "healthMonitoring",
    "locationTracking",
    "activityTracking",
    "feedingReminders",
    "environmentalSensors",
    "smartAlerts",
    "mobileAppIntegration",
)

BUDGET_BUCKETS = (
    "less-than-6000",
    "6000-8000",
    "8000-10000",
    "more-than-10000",
)

ACTIVE_USER_WINDOW = timedelta(days=30)


def _as_rating(value: Any) -> int | None:
    try:
        rating = int(value)
    except (TypeError, ValueError):
        return None
    return rating if 1 <= rating <= 5 else None


def summarize_answers(answers: list[dict[str, Any]]) -> dict[str, Any]:
    """Average feature ratings and budget distribution over survey answers.

    Averages are taken over the answers that rated the feature and rounded
    to two decimals; features nobody rated average 0.
    """
    totals = {feature: 0 for feature in SURVEY_FEATURES}
    counts = {feature: 0 for feature in SURVEY_FEATURES}
    budgets = {bucket: 0 for bucket in BUDGET_BUCKETS}

    for answer in answers:
        budget = answer.get("budget")
        if budget in budgets:
            budgets[budget] += 1
        for feature in SURVEY_FEATURES:
            rating = _as_rating(answer.get(feature))
            if rating is not None:
                totals[feature] += rating
                counts[feature] += 1

    averages = {
        feature: round(totals[feature] / counts[feature], 2) if counts[feature] else 0
        for feature in SURVEY_FEATURES
    }
    return {"submissions_by_feature": averages, "submissions_by_budget": budgets}


def build_analytics(database: Database | None = None) -> dict[str, Any]:
    """Collect user activity and survey statistics."""
    database = database or db
    cutoff = utcnow() - ACTIVE_USER_WINDOW

    with database.session() as session:
        total_users = session.scalar(select(func.count(UserAccount.id))) or 0
        active_users = session.scalar(
            select(func.count(UserAccount.id)).where(UserAccount.last_login_at >= cutoff)
        ) or 0
        total_submissions = session.scalar(select(func.count(Submission.id))) or 0
        answers = [a or {} for a in session.scalars(select(Submission.answers))]

    return {
        "total_users": total_users,
        "active_users": active_users,
        "inactive_users": total_users - active_users,
        "total_submissions": total_submissions,
        **summarize_answers(answers),
    }
