"""Database models for users, submissions and rewards."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Naive UTC timestamp with microseconds, as stored in every table."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    """Generate an opaque document id."""
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class UserRole(str, Enum):
    """Stored user role."""
    USER = "user"
    ADMIN = "admin"


class SubmissionStatus(str, Enum):
    """Review state of a submission."""
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class TemplateStatus(str, Enum):
    """Whether a reward template can be redeemed."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class ClaimStatus(str, Enum):
    """Processing state of a reward claim."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RewardKind(str, Enum):
    """Discriminator for rows in the rewards table."""
    TEMPLATE = "template"
    CLAIM = "claim"


class UserAccount(Base):
    """Registered user, keyed by the identity provider uid."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    role: Mapped[str] = mapped_column(String(20), default=UserRole.USER.value, nullable=False)

    # Counters
    referral_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    rewards_claimed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Relationships
    claims: Mapped[list["RewardClaim"]] = relationship("RewardClaim", back_populates="user")

    def __repr__(self) -> str:
        return f"<UserAccount(id={self.id}, email={self.email}, role={self.role})>"


class Submission(Base):
    """Survey or referral form submission."""

    __tablename__ = "submissions"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    # Nullable back-reference to the referring user
    referred_by: Mapped[str | None] = mapped_column(
        String(128), ForeignKey("users.id"), nullable=True, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default=SubmissionStatus.PENDING.value, nullable=False, index=True
    )

    # Form-specific answers (ratings, budget, comments...)
    answers: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Submission(id={self.id}, type={self.type}, email={self.email}, status={self.status})>"


class Reward(Base):
    """Rewards table holding both templates and claims.

    Rows are discriminated by ``kind``; query through ``RewardTemplate`` or
    ``RewardClaim`` so the other variant is filtered out.
    """

    __tablename__ = "rewards"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    kind: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    # Catalogue fields (copied onto claims at claim time)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    points_required: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False, index=True
    )

    __mapper_args__ = {"polymorphic_on": "kind"}


class RewardTemplate(Reward):
    """Redeemable catalogue entry, owned by no user."""

    __mapper_args__ = {"polymorphic_identity": RewardKind.TEMPLATE.value}

    def __repr__(self) -> str:
        return f"<RewardTemplate(id={self.id}, name={self.name}, points={self.points_required})>"


class RewardClaim(Reward):
    """Redemption request owned by a user."""

    user_id: Mapped[str | None] = mapped_column(
        String(128), ForeignKey("users.id"), nullable=True, index=True
    )
    template_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    user: Mapped[UserAccount | None] = relationship("UserAccount", back_populates="claims")

    __mapper_args__ = {"polymorphic_identity": RewardKind.CLAIM.value}

    def __repr__(self) -> str:
        return f"<RewardClaim(id={self.id}, user={self.user_id}, status={self.status})>"
