"""Form submission API v1 endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from pawrefer.api.deps import get_submission_service
from pawrefer.api.rate_limit import SUBMIT_FORM_LIMIT, limiter
from pawrefer.errors import PawReferError, to_http_exception
from pawrefer.logging_config import get_logger
from pawrefer.submissions.service import SubmissionService

logger = get_logger(__name__)

router = APIRouter(tags=["forms"])


@router.post("/submit-form")
@limiter.limit(SUBMIT_FORM_LIMIT)
def submit_form(
    request: Request,
    data: dict[str, Any] = Body(...),
    submissions: SubmissionService = Depends(get_submission_service),
):
    """Submit a survey or referral form.

    Requires ``type``, ``email`` and ``name``. A ``referredBy`` user id
    credits that user with one referral when the user exists.
    """
    try:
        submission = submissions.submit(data)
    except PawReferError as e:
        raise to_http_exception(e)

    return {
        "success": True,
        "message": "Form submitted successfully",
        "id": submission.id,
    }
