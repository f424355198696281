"""Add rewards table

Revision ID: 002_rewards
Revises: 001_initial
Create Date: 2026-10-17

One table for reward templates and reward claims, discriminated by the
``kind`` column:
- template: name, description, points_required, status active/inactive
- claim: user_id, status pending/approved/rejected, processed_at, copied template fields
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "002_rewards"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create rewards table."""
    op.create_table(
        "rewards",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("points_required", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        # Claim-only columns
        sa.Column("user_id", sa.String(128), nullable=True),
        sa.Column("template_id", sa.String(32), nullable=True),
        sa.Column("processed_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_rewards_kind", "rewards", ["kind"], unique=False)
    op.create_index("ix_rewards_status", "rewards", ["status"], unique=False)
    op.create_index("ix_rewards_created_at", "rewards", ["created_at"], unique=False)
    op.create_index("ix_rewards_user_id", "rewards", ["user_id"], unique=False)


def downgrade() -> None:
    """Drop rewards table."""
    op.drop_table("rewards")
