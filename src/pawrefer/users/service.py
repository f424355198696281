"""User accounts and admin promotion."""

from dataclasses import dataclass

from sqlalchemy import func, select

from pawrefer.auth.identity import Identity, IdentityProvider
from pawrefer.errors import NotFoundError, ValidationError
from pawrefer.logging_config import get_logger
from pawrefer.storage.db import Database, db
from pawrefer.storage.models import UserAccount, UserRole, utcnow

logger = get_logger(__name__)


@dataclass(frozen=True)
class PromotionResult:
    """Outcome of an admin promotion."""
    user_id: str
    email: str
    requires_relogin: bool = True

    @property
    def message(self) -> str:
        return (
            f"User {self.email} has been made an admin. The user must sign out "
            "and sign back in for the changes to take effect."
        )


class UserService:
    """Service for user accounts."""

    def __init__(self, database: Database | None = None):
        """Initialize user service.

        Args:
            database: Database to use (defaults to the global instance)
        """
        self.db = database or db
        self.logger = get_logger(__name__)

    def ensure_user(self, identity: Identity) -> UserAccount:
        """Get or create the account for a verified identity and record the login.

        New accounts start with role ``user`` and zero counters. Profile
        fields are only filled in when the stored value is empty.
        """
        with self.db.session() as session:
            user = session.get(UserAccount, identity.uid)
            if not user:
                user = UserAccount(
                    id=identity.uid,
                    email=identity.email,
                    display_name=identity.display_name,
                    photo_url=identity.photo_url,
                    role=UserRole.USER.value,
                    referral_count=0,
                    rewards_claimed=0,
                    created_at=utcnow(),
                )
                session.add(user)
                self.logger.info("user_created", user_id=identity.uid, email=identity.email)
            else:
                user.email = user.email or identity.email
                user.display_name = user.display_name or identity.display_name
                user.photo_url = user.photo_url or identity.photo_url

            user.last_login_at = utcnow()
            session.flush()
            return user

    def get_user(self, user_id: str) -> UserAccount:
        with self.db.session() as session:
            user = session.get(UserAccount, user_id)
            if not user:
                raise NotFoundError("User not found")
            return user

    def get_role(self, user_id: str) -> str | None:
        """Stored role, read fresh from the database."""
        with self.db.session() as session:
            return session.scalar(select(UserAccount.role).where(UserAccount.id == user_id))

    def list_users(self, limit: int | None = None) -> list[UserAccount]:
        """List users, newest first."""
        with self.db.session() as session:
            query = select(UserAccount).order_by(UserAccount.created_at.desc())
            if limit:
                query = query.limit(limit)
            return list(session.scalars(query))

    def count_users(self) -> int:
        with self.db.session() as session:
            return session.scalar(select(func.count(UserAccount.id))) or 0

    def update_profile(self, user_id: str, display_name: str) -> UserAccount:
        """Change a user's display name."""
        display_name = (display_name or "").strip()
        if not display_name:
            raise ValidationError("Display name cannot be empty")

        with self.db.session() as session:
            user = session.get(UserAccount, user_id)
            if not user:
                raise NotFoundError("User not found")
            user.display_name = display_name

            self.logger.info("profile_updated", user_id=user_id)
            return user

    def promote_to_admin(self, email: str, provider: IdentityProvider) -> PromotionResult:
        """Give a user the admin role.

        The account is looked up in the identity provider first and in the
        users table second. Both the stored role and the provider's custom
        claims are updated; session cookies minted before the promotion keep
        their old claims until the user signs in again.

        Raises:
            ValidationError: If email is empty
            NotFoundError: If no account matches the email
        """
        email = (email or "").strip()
        if not email:
            raise ValidationError("Email is required")

        self.logger.info("admin_promotion_started", email=email)
        identity = provider.get_user_by_email(email)

        with self.db.session() as session:
            if identity:
                user = session.get(UserAccount, identity.uid)
                if not user:
                    user = UserAccount(
                        id=identity.uid,
                        email=identity.email,
                        display_name=identity.display_name,
                        photo_url=identity.photo_url,
                        created_at=utcnow(),
                    )
                    session.add(user)
                existing_claims = identity.claims
            else:
                self.logger.info("admin_promotion_auth_lookup_failed", email=email)
                user = session.scalars(
                    select(UserAccount).where(UserAccount.email == email).limit(1)
                ).first()
                if not user:
                    raise NotFoundError("User not found")
                record = provider.get_user(user.id)
                existing_claims = record.claims if record else {}

            provider.set_custom_claims(user.id, {**existing_claims, "role": UserRole.ADMIN.value})
            user.role = UserRole.ADMIN.value
            session.flush()

            self.logger.info("admin_promoted", user_id=user.id, email=email)
            return PromotionResult(user_id=user.id, email=email)
