"""Submission intake and review."""

from typing import Any

from sqlalchemy import func, select, update

from pawrefer.errors import DuplicateSubmissionError, NotFoundError, ValidationError
from pawrefer.logging_config import get_logger
from pawrefer.storage.db import Database, db
from pawrefer.storage.models import Submission, SubmissionStatus, UserAccount, utcnow

logger = get_logger(__name__)

REQUIRED_FIELDS = ("type", "email", "name")

# Form types that accept one submission per email address
DEDUPLICATED_TYPES = {"pet-survey", "referral"}

# Columns admins may edit directly; anything else goes into answers
_EDITABLE_COLUMNS = {"name", "email", "type", "status"}


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class SubmissionService:
    """Service for form submissions and the referrals they carry."""

    def __init__(self, database: Database | None = None):
        """Initialize submission service.

        Args:
            database: Database to use (defaults to the global instance)
        """
        self.db = database or db
        self.logger = get_logger(__name__)

    # ==================== INTAKE ====================

    def submit(self, data: dict[str, Any]) -> Submission:
        """Accept a form submission.

        The referrer credit and the insert happen in one transaction. An
        unknown referrer is dropped silently rather than failing the form.

        Args:
            data: Raw form fields. ``type``, ``email`` and ``name`` are
                required; ``referredBy``/``referred_by`` is optional; every
                other field is stored under ``answers``.

        Returns:
            The stored submission

        Raises:
            ValidationError: If a required field is missing
            DuplicateSubmissionError: If the email already submitted this form type
        """
        data = dict(data)
        missing = [f for f in REQUIRED_FIELDS if _blank(data.get(f))]
        if missing:
            self.logger.info("submission_rejected", reason="missing_fields", fields=missing)
            raise ValidationError("Missing required fields")

        form_type = str(data.pop("type")).strip()
        email = str(data.pop("email")).strip()
        name = str(data.pop("name")).strip()
        referred_by = data.pop("referredBy", None) or data.pop("referred_by", None)

        # Server-owned fields are never taken from the client
        for key in ("id", "status", "createdAt", "created_at", "updatedAt", "updated_at", "referred_by"):
            data.pop(key, None)

        with self.db.session() as session:
            if form_type in DEDUPLICATED_TYPES:
                existing = session.scalars(
                    select(Submission.id)
                    .where(Submission.email == email, Submission.type == form_type)
                    .limit(1)
                ).first()
                if existing:
                    self.logger.info("submission_duplicate", email=email, type=form_type)
                    raise DuplicateSubmissionError(email, form_type)

            if referred_by:
                referred_by = str(referred_by)
                result = session.execute(
                    update(UserAccount)
                    .where(UserAccount.id == referred_by)
                    .values(referral_count=UserAccount.referral_count + 1)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 1:
                    self.logger.info("referral_credited", referrer_id=referred_by)
                else:
                    self.logger.info("referral_unknown_referrer", referrer_id=referred_by)
                    referred_by = None

            submission = Submission(
                name=name,
                email=email,
                type=form_type,
                referred_by=referred_by,
                status=SubmissionStatus.PENDING.value,
                answers=data,
                created_at=utcnow(),
            )
            session.add(submission)
            session.flush()

            self.logger.info(
                "submission_created",
                submission_id=submission.id,
                type=form_type,
                referred_by=referred_by,
            )
            return submission

    # ==================== QUERIES ====================

    def get_submission(self, submission_id: str) -> Submission:
        with self.db.session() as session:
            submission = session.get(Submission, submission_id)
            if not submission:
                raise NotFoundError("Submission not found")
            return submission

    def list_submissions(
        self,
        status: str | None = None,
        form_type: str | None = None,
        limit: int | None = None,
    ) -> list[Submission]:
        """List submissions, newest first."""
        with self.db.session() as session:
            query = select(Submission).order_by(Submission.created_at.desc())
            if status:
                query = query.where(Submission.status == status)
            if form_type:
                query = query.where(Submission.type == form_type)
            if limit:
                query = query.limit(limit)
            return list(session.scalars(query))

    def list_referrals(self, user_id: str) -> list[Submission]:
        """Submissions that name ``user_id`` as referrer, newest first."""
        with self.db.session() as session:
            return list(session.scalars(
                select(Submission)
                .where(Submission.referred_by == user_id)
                .order_by(Submission.created_at.desc())
            ))

    def count_submissions(self, status: str | None = None) -> int:
        with self.db.session() as session:
            query = select(func.count(Submission.id))
            if status:
                query = query.where(Submission.status == status)
            return session.scalar(query) or 0

    # ==================== REVIEW ====================

    def set_status(self, submission_id: str, status: str) -> Submission:
        """Move a submission to ``pending``, ``verified`` or ``rejected``."""
        try:
            new_status = SubmissionStatus(status)
        except ValueError:
            raise ValidationError(f"Invalid submission status: {status}")

        with self.db.session() as session:
            submission = session.get(Submission, submission_id)
            if not submission:
                raise NotFoundError("Submission not found")

            previous = submission.status
            submission.status = new_status.value
            submission.updated_at = utcnow()

            self.logger.info(
                "submission_status_changed",
                submission_id=submission_id,
                previous=previous,
                status=new_status.value,
            )
            return submission

    def update_submission(self, submission_id: str, fields: dict[str, Any]) -> Submission:
        """Edit a submission.

        Known columns are set directly; other keys are merged into answers.
        The referrer link and counters are never touched here.
        """
        fields = dict(fields)
        if "status" in fields:
            try:
                fields["status"] = SubmissionStatus(fields["status"]).value
            except ValueError:
                raise ValidationError(f"Invalid submission status: {fields['status']}")
        for key in _EDITABLE_COLUMNS - {"status"}:
            if key in fields and _blank(fields[key]):
                raise ValidationError(f"Field '{key}' cannot be empty")

        with self.db.session() as session:
            submission = session.get(Submission, submission_id)
            if not submission:
                raise NotFoundError("Submission not found")

            answers = dict(submission.answers or {})
            for key, value in fields.items():
                if key in _EDITABLE_COLUMNS:
                    setattr(submission, key, value)
                elif key not in ("id", "referred_by", "referredBy", "created_at", "createdAt"):
                    answers[key] = value
            submission.answers = answers
            submission.updated_at = utcnow()

            self.logger.info("submission_updated", submission_id=submission_id, fields=sorted(fields))
            return submission

    def delete_submission(self, submission_id: str) -> None:
        """Delete a submission. The referrer's counter is not decremented."""
        with self.db.session() as session:
            submission = session.get(Submission, submission_id)
            if not submission:
                raise NotFoundError("Submission not found")
            session.delete(submission)

            self.logger.info("submission_deleted", submission_id=submission_id)
