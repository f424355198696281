"""Survey analytics aggregation."""

from datetime import timedelta

from pawrefer.storage.models import utcnow
from pawrefer.submissions.analytics import build_analytics, summarize_answers


def test_summarize_averages_only_rated_answers():
    summary = summarize_answers([
        {"locationTracking": 4, "budget": "more-than-10000"},
        {"locationTracking": "5"},
        {"locationTracking": 9, "budget": "unknown"},
        {},
    ])

    assert summary["submissions_by_feature"]["locationTracking"] == 4.5
    assert summary["submissions_by_feature"]["feedingReminders"] == 0
    assert summary["submissions_by_budget"]["more-than-10000"] == 1
    assert sum(summary["submissions_by_budget"].values()) == 1


def test_active_users_use_last_login(database, make_user):
    make_user("recent", last_login_at=utcnow() - timedelta(days=2))
    make_user("stale", last_login_at=utcnow() - timedelta(days=45))
    make_user("never")

    data = build_analytics(database)

    assert data["total_users"] == 3
    assert data["active_users"] == 1
    assert data["inactive_users"] == 2
    assert data["total_submissions"] == 0
