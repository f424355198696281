"""Reward service: claim bookkeeping, claim review and the template catalogue."""

from typing import Any

from sqlalchemy import func, select, update

from pawrefer.errors import NoRewardsAvailableError, NotFoundError, ValidationError
from pawrefer.logging_config import get_logger
from pawrefer.rewards.accrual import RewardStatus, compute_reward_status
from pawrefer.storage.db import Database, db
from pawrefer.storage.models import (
    ClaimStatus,
    RewardClaim,
    RewardKind,
    RewardTemplate,
    TemplateStatus,
    UserAccount,
    utcnow,
)

logger = get_logger(__name__)

# Claims retried after losing the compare-and-swap to a concurrent claim
MAX_CLAIM_ATTEMPTS = 3

# Sentinel the dashboard sends when the user picks no specific template
DEFAULT_TEMPLATE_ID = "default"

DEFAULT_REWARD_TEMPLATES: list[dict[str, Any]] = [
    {
        "name": "Coffee Gift Card",
        "description": "A $5 gift card for your favorite coffee shop",
        "points_required": 100,
    },
    {
        "name": "Movie Ticket",
        "description": "A free movie ticket at your local cinema",
        "points_required": 250,
    },
    {
        "name": "Food Delivery Voucher",
        "description": "A $15 voucher for your next food delivery order",
        "points_required": 400,
    },
    {
        "name": "Premium Subscription",
        "description": "One month of premium subscription to our service",
        "points_required": 500,
    },
    {
        "name": "Tech Gadget",
        "description": "A cool tech gadget of your choice under $50",
        "points_required": 1000,
    },
]

_TEMPLATE_FIELDS = {"name", "description", "points_required", "status"}
_REQUIRED_TEMPLATE_FIELDS = {"name", "points_required", "status"}


def _template_status(value: Any) -> str:
    try:
        return TemplateStatus(value).value
    except ValueError:
        raise ValidationError(f"Invalid template status: {value}")


class ClaimConflictError(ValidationError):
    """Concurrent claims kept winning the counter update."""

    def __init__(self):
        super().__init__("Reward claim conflicted with another claim, please retry")


class RewardService:
    """Service for reward claims and reward templates."""

    def __init__(self, database: Database | None = None):
        """Initialize reward service.

        Args:
            database: Database to use (defaults to the global instance)
        """
        self.db = database or db
        self.logger = get_logger(__name__)

    # ==================== USER SIDE ====================

    def get_user_rewards(self, user_id: str) -> tuple[RewardStatus, list[RewardClaim]]:
        """Get reward counters and claim history for a user.

        Args:
            user_id: User ID

        Returns:
            Tuple of derived counters and claims, newest first

        Raises:
            NotFoundError: If the user does not exist
        """
        with self.db.session() as session:
            user = session.get(UserAccount, user_id)
            if not user:
                self.logger.warning("rewards_user_missing", user_id=user_id)
                raise NotFoundError("User not found")

            status = compute_reward_status(user.referral_count, user.rewards_claimed)
            claims = list(session.scalars(
                select(RewardClaim)
                .where(RewardClaim.user_id == user_id)
                .order_by(RewardClaim.created_at.desc())
            ))

            self.logger.info(
                "user_rewards_fetched",
                user_id=user_id,
                referral_count=status.referral_count,
                rewards_earned=status.rewards_earned,
                rewards_claimed=status.rewards_claimed,
                pending_rewards=status.pending_rewards,
                claims=len(claims),
            )
            return status, claims

    def claim_reward(self, user_id: str, template_id: str | None = None) -> RewardClaim:
        """Claim one earned reward.

        Eligibility is re-derived from the stored counters. The counter bump
        is a compare-and-swap on the ``rewards_claimed`` value that was read,
        committed in the same transaction as the claim row, so two racing
        claims can never both consume the same earned reward.

        Args:
            user_id: Claiming user
            template_id: Optional template to redeem ("default" or None for none)

        Returns:
            The pending claim

        Raises:
            NotFoundError: If the user or template does not exist
            NoRewardsAvailableError: If nothing is left to claim
            ValidationError: If the template is inactive
        """
        for attempt in range(1, MAX_CLAIM_ATTEMPTS + 1):
            with self.db.session() as session:
                user = session.get(UserAccount, user_id)
                if not user:
                    raise NotFoundError("User not found")

                status = compute_reward_status(user.referral_count, user.rewards_claimed)
                if not status.can_claim:
                    self.logger.warning(
                        "reward_claim_rejected",
                        user_id=user_id,
                        referral_count=status.referral_count,
                        rewards_earned=status.rewards_earned,
                        rewards_claimed=status.rewards_claimed,
                    )
                    raise NoRewardsAvailableError(status.rewards_earned, status.rewards_claimed)

                template = self._resolve_template(session, template_id)

                result = session.execute(
                    update(UserAccount)
                    .where(
                        UserAccount.id == user_id,
                        UserAccount.rewards_claimed == status.rewards_claimed,
                    )
                    .values(
                        rewards_claimed=UserAccount.rewards_claimed + 1,
                        updated_at=utcnow(),
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    session.rollback()
                    self.logger.info("reward_claim_conflict", user_id=user_id, attempt=attempt)
                    continue

                claim = RewardClaim(
                    user_id=user_id,
                    status=ClaimStatus.PENDING.value,
                    created_at=utcnow(),
                )
                if template:
                    claim.template_id = template.id
                    claim.name = template.name
                    claim.description = template.description
                    claim.points_required = template.points_required
                session.add(claim)
                session.flush()

                self.logger.info(
                    "reward_claimed",
                    user_id=user_id,
                    claim_id=claim.id,
                    template_id=claim.template_id or DEFAULT_TEMPLATE_ID,
                    rewards_earned=status.rewards_earned,
                    rewards_claimed=status.rewards_claimed + 1,
                )
                return claim

        raise ClaimConflictError()

    def _resolve_template(self, session, template_id: str | None) -> RewardTemplate | None:
        if not template_id or template_id == DEFAULT_TEMPLATE_ID:
            return None

        template = session.scalars(
            select(RewardTemplate).where(RewardTemplate.id == template_id)
        ).first()
        if not template:
            self.logger.warning("reward_template_missing", template_id=template_id)
            raise NotFoundError("Reward template not found")
        if template.status != TemplateStatus.ACTIVE.value:
            raise ValidationError("Reward template is not active")
        return template

    # ==================== CLAIM REVIEW ====================

    def list_claims(
        self,
        status: str | None = None,
        limit: int | None = None,
    ) -> list[tuple[RewardClaim, str | None]]:
        """List claims with the claiming user's display name, newest first.

        Args:
            status: Optional status filter
            limit: Optional maximum number of rows
        """
        with self.db.session() as session:
            query = (
                select(RewardClaim, UserAccount.display_name)
                .outerjoin(UserAccount, RewardClaim.user_id == UserAccount.id)
                .order_by(RewardClaim.created_at.desc())
            )
            if status:
                query = query.where(RewardClaim.status == status)
            if limit:
                query = query.limit(limit)

            return [(claim, name) for claim, name in session.execute(query)]

    def count_claims(self, status: str | None = None) -> int:
        with self.db.session() as session:
            query = select(func.count(RewardClaim.id)).where(RewardClaim.kind == RewardKind.CLAIM.value)
            if status:
                query = query.where(RewardClaim.status == status)
            return session.scalar(query) or 0

    def approve_claim(self, claim_id: str) -> RewardClaim:
        """Approve a pending claim."""
        return self._process_claim(claim_id, ClaimStatus.APPROVED)

    def reject_claim(self, claim_id: str) -> RewardClaim:
        """Reject a pending claim.

        The user's claimed counter is left as is; a rejected claim still
        consumed the earned reward.
        """
        return self._process_claim(claim_id, ClaimStatus.REJECTED)

    def _process_claim(self, claim_id: str, new_status: ClaimStatus) -> RewardClaim:
        with self.db.session() as session:
            claim = session.scalars(
                select(RewardClaim).where(RewardClaim.id == claim_id)
            ).first()
            if not claim:
                raise NotFoundError("Reward claim not found")
            if claim.status != ClaimStatus.PENDING.value:
                raise ValidationError(f"Reward claim already {claim.status}")

            claim.status = new_status.value
            claim.processed_at = utcnow()

            self.logger.info(
                "reward_claim_processed",
                claim_id=claim_id,
                user_id=claim.user_id,
                status=new_status.value,
            )
            return claim

    # ==================== TEMPLATES ====================

    def list_templates(self, active_only: bool = False) -> list[RewardTemplate]:
        """List reward templates, newest first."""
        with self.db.session() as session:
            query = select(RewardTemplate).order_by(RewardTemplate.created_at.desc())
            if active_only:
                query = query.where(RewardTemplate.status == TemplateStatus.ACTIVE.value)
            return list(session.scalars(query))

    def create_template(
        self,
        name: str,
        description: str | None,
        points_required: int,
        status: TemplateStatus = TemplateStatus.ACTIVE,
    ) -> RewardTemplate:
        """Add a template to the catalogue."""
        with self.db.session() as session:
            template = RewardTemplate(
                name=name,
                description=description,
                points_required=points_required,
                status=_template_status(status),
                created_at=utcnow(),
            )
            session.add(template)
            session.flush()

            self.logger.info("reward_template_created", template_id=template.id, name=name)
            return template

    def update_template(self, template_id: str, **fields: Any) -> RewardTemplate:
        """Update catalogue fields of a template.

        Raises:
            NotFoundError: If the template does not exist
            ValidationError: On unknown fields or a null required field
        """
        unknown = set(fields) - _TEMPLATE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown template fields: {', '.join(sorted(unknown))}")
        cleared = sorted(k for k in _REQUIRED_TEMPLATE_FIELDS if k in fields and fields[k] is None)
        if cleared:
            raise ValidationError(f"Template fields cannot be null: {', '.join(cleared)}")

        with self.db.session() as session:
            template = session.scalars(
                select(RewardTemplate).where(RewardTemplate.id == template_id)
            ).first()
            if not template:
                raise NotFoundError("Reward template not found")

            for key, value in fields.items():
                if key == "status":
                    value = _template_status(value)
                setattr(template, key, value)

            self.logger.info("reward_template_updated", template_id=template_id, fields=sorted(fields))
            return template

    def delete_template(self, template_id: str) -> None:
        """Delete a template. Claims that copied it keep their copy."""
        with self.db.session() as session:
            template = session.scalars(
                select(RewardTemplate).where(RewardTemplate.id == template_id)
            ).first()
            if not template:
                raise NotFoundError("Reward template not found")
            session.delete(template)

            self.logger.info("reward_template_deleted", template_id=template_id)

    def seed_default_templates(self) -> list[RewardTemplate]:
        """Insert the default catalogue entries that are not present yet.

        Templates are matched by name, so running this twice adds nothing.

        Returns:
            The templates that were added
        """
        added: list[RewardTemplate] = []
        with self.db.session() as session:
            existing = set(session.scalars(
                select(RewardTemplate.name).where(RewardTemplate.kind == RewardKind.TEMPLATE.value)
            ))

            for entry in DEFAULT_REWARD_TEMPLATES:
                if entry["name"] in existing:
                    continue
                template = RewardTemplate(
                    status=TemplateStatus.ACTIVE.value,
                    created_at=utcnow(),
                    **entry,
                )
                session.add(template)
                added.append(template)
            session.flush()

        self.logger.info("reward_templates_seeded", added=len(added))
        return added
