"""Survey and referral form submissions."""

from pawrefer.submissions.analytics import build_analytics, summarize_answers
from pawrefer.submissions.service import (
    DEDUPLICATED_TYPES,
    REQUIRED_FIELDS,
    SubmissionService,
)

__all__ = [
    "DEDUPLICATED_TYPES",
    "REQUIRED_FIELDS",
    "SubmissionService",
    "build_analytics",
    "summarize_answers",
]
