"""Admin API v1 endpoints.

Every endpoint here requires the admin role as stored in the users table.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from pawrefer.api.deps import get_reward_service, get_submission_service, get_user_service
from pawrefer.api.serializers import (
    serialize_claim,
    serialize_submission,
    serialize_template,
    serialize_user,
)
from pawrefer.auth.identity import IdentityProvider, get_identity_provider
from pawrefer.auth.middleware import SessionContext, require_admin
from pawrefer.errors import PawReferError, to_http_exception
from pawrefer.logging_config import get_logger
from pawrefer.rewards.service import RewardService
from pawrefer.storage.db import Database, get_database
from pawrefer.storage.models import ClaimStatus, SubmissionStatus, TemplateStatus
from pawrefer.submissions.analytics import build_analytics
from pawrefer.submissions.service import SubmissionService
from pawrefer.users.service import UserService

logger = get_logger(__name__)

router = APIRouter(tags=["admin"])


# ─── Request Models ──────────────────────────────────────────────────────────

class CreateAdminRequest(BaseModel):
    """Promote an existing account to admin."""
    email: EmailStr


class SubmissionStatusRequest(BaseModel):
    """Move a submission to a new review state."""
    status: SubmissionStatus


class TemplateCreateRequest(BaseModel):
    """Add a reward template."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=2, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    points_required: int = Field(..., ge=1, alias="pointsRequired")
    status: TemplateStatus = TemplateStatus.ACTIVE


class TemplateUpdateRequest(BaseModel):
    """Edit a reward template. Omitted fields are left unchanged."""
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(default=None, min_length=2, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    points_required: int | None = Field(default=None, ge=1, alias="pointsRequired")
    status: TemplateStatus | None = None


# ─── Promotion ───────────────────────────────────────────────────────────────

@router.post("/create-admin")
def create_admin(
    body: CreateAdminRequest,
    admin: SessionContext = Depends(require_admin),
    users: UserService = Depends(get_user_service),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    """Give an account the admin role.

    Updates both the stored role and the identity provider's custom claims.
    The promoted user's existing session keeps its old claims until they
    sign in again.

    Only admins may call it; the first admin is created with
    ``pawrefer make-admin``.
    """
    try:
        result = users.promote_to_admin(body.email, provider)
    except PawReferError as e:
        raise to_http_exception(e)

    logger.info("admin_created", by=admin.user_id, user_id=result.user_id)
    return {
        "success": True,
        "message": result.message,
        "userId": result.user_id,
        "requiresRelogin": result.requires_relogin,
    }


# ─── Users ───────────────────────────────────────────────────────────────────

@router.get("/admin/users")
def list_users(
    limit: int | None = Query(default=None, ge=1, le=1000),
    admin: SessionContext = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    """List users, newest first."""
    return {"users": [serialize_user(u) for u in users.list_users(limit=limit)]}


# ─── Submissions ─────────────────────────────────────────────────────────────

@router.get("/admin/submissions")
def list_submissions(
    status_filter: SubmissionStatus | None = Query(default=None, alias="status"),
    form_type: str | None = Query(default=None, alias="type"),
    limit: int | None = Query(default=None, ge=1, le=1000),
    admin: SessionContext = Depends(require_admin),
    submissions: SubmissionService = Depends(get_submission_service),
):
    """List submissions, newest first."""
    rows = submissions.list_submissions(
        status=status_filter.value if status_filter else None,
        form_type=form_type,
        limit=limit,
    )
    return {"submissions": [serialize_submission(s) for s in rows]}


@router.get("/admin/submissions/{submission_id}")
def get_submission(
    submission_id: str,
    admin: SessionContext = Depends(require_admin),
    submissions: SubmissionService = Depends(get_submission_service),
):
    try:
        return serialize_submission(submissions.get_submission(submission_id))
    except PawReferError as e:
        raise to_http_exception(e)


@router.post("/admin/submissions/{submission_id}/status")
def set_submission_status(
    submission_id: str,
    body: SubmissionStatusRequest,
    admin: SessionContext = Depends(require_admin),
    submissions: SubmissionService = Depends(get_submission_service),
):
    """Verify, reject or reset a submission."""
    try:
        submission = submissions.set_status(submission_id, body.status.value)
    except PawReferError as e:
        raise to_http_exception(e)
    return serialize_submission(submission)


@router.patch("/admin/submissions/{submission_id}")
def update_submission(
    submission_id: str,
    fields: dict[str, Any] = Body(...),
    admin: SessionContext = Depends(require_admin),
    submissions: SubmissionService = Depends(get_submission_service),
):
    """Edit submission fields and answers."""
    try:
        submission = submissions.update_submission(submission_id, fields)
    except PawReferError as e:
        raise to_http_exception(e)
    return serialize_submission(submission)


@router.delete("/admin/submissions/{submission_id}", status_code=status.HTTP_200_OK)
def delete_submission(
    submission_id: str,
    admin: SessionContext = Depends(require_admin),
    submissions: SubmissionService = Depends(get_submission_service),
):
    try:
        submissions.delete_submission(submission_id)
    except PawReferError as e:
        raise to_http_exception(e)
    return {"success": True}


# ─── Reward claims ───────────────────────────────────────────────────────────

@router.get("/admin/rewards/claims")
def list_claims(
    status_filter: ClaimStatus | None = Query(default=None, alias="status"),
    admin: SessionContext = Depends(require_admin),
    rewards: RewardService = Depends(get_reward_service),
):
    """List claims with the claiming user's name (never includes templates)."""
    rows = rewards.list_claims(status=status_filter.value if status_filter else None)
    return {
        "rewards": [serialize_claim(claim, name or "Unknown User") for claim, name in rows],
    }


@router.post("/admin/rewards/claims/{claim_id}/approve")
def approve_claim(
    claim_id: str,
    admin: SessionContext = Depends(require_admin),
    rewards: RewardService = Depends(get_reward_service),
):
    try:
        claim = rewards.approve_claim(claim_id)
    except PawReferError as e:
        raise to_http_exception(e)
    return serialize_claim(claim)


@router.post("/admin/rewards/claims/{claim_id}/reject")
def reject_claim(
    claim_id: str,
    admin: SessionContext = Depends(require_admin),
    rewards: RewardService = Depends(get_reward_service),
):
    try:
        claim = rewards.reject_claim(claim_id)
    except PawReferError as e:
        raise to_http_exception(e)
    return serialize_claim(claim)


# ─── Reward templates ────────────────────────────────────────────────────────

@router.get("/admin/rewards/templates")
def list_templates(
    admin: SessionContext = Depends(require_admin),
    rewards: RewardService = Depends(get_reward_service),
):
    """All templates, active and inactive."""
    return {"rewardTemplates": [serialize_template(t) for t in rewards.list_templates()]}


@router.post("/admin/rewards/templates", status_code=status.HTTP_201_CREATED)
def create_template(
    body: TemplateCreateRequest,
    admin: SessionContext = Depends(require_admin),
    rewards: RewardService = Depends(get_reward_service),
):
    template = rewards.create_template(
        name=body.name,
        description=body.description,
        points_required=body.points_required,
        status=body.status,
    )
    return serialize_template(template)


@router.put("/admin/rewards/templates/{template_id}")
def update_template(
    template_id: str,
    body: TemplateUpdateRequest,
    admin: SessionContext = Depends(require_admin),
    rewards: RewardService = Depends(get_reward_service),
):
    fields = body.model_dump(exclude_unset=True)
    try:
        template = rewards.update_template(template_id, **fields)
    except PawReferError as e:
        raise to_http_exception(e)
    return serialize_template(template)


@router.delete("/admin/rewards/templates/{template_id}")
def delete_template(
    template_id: str,
    admin: SessionContext = Depends(require_admin),
    rewards: RewardService = Depends(get_reward_service),
):
    try:
        rewards.delete_template(template_id)
    except PawReferError as e:
        raise to_http_exception(e)
    return {"success": True}


# ─── Dashboard numbers ───────────────────────────────────────────────────────

@router.get("/admin/stats")
def get_stats(
    admin: SessionContext = Depends(require_admin),
    users: UserService = Depends(get_user_service),
    submissions: SubmissionService = Depends(get_submission_service),
    rewards: RewardService = Depends(get_reward_service),
):
    """Headline counts for the admin dashboard."""
    return {
        "totalUsers": users.count_users(),
        "totalSubmissions": submissions.count_submissions(),
        "pendingRewards": rewards.count_claims(status=ClaimStatus.PENDING.value),
    }


@router.get("/admin/analytics")
def get_analytics(
    admin: SessionContext = Depends(require_admin),
    database: Database = Depends(get_database),
):
    """User activity and survey answer statistics."""
    data = build_analytics(database)
    return {
        "totalUsers": data["total_users"],
        "activeUsers": data["active_users"],
        "inactiveUsers": data["inactive_users"],
        "totalSubmissions": data["total_submissions"],
        "submissionsByFeature": data["submissions_by_feature"],
        "submissionsByBudget": data["submissions_by_budget"],
    }
