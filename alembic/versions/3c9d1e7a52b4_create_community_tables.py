"""create community tables

Revision ID: 3c9d1e7a52b4
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3c9d1e7a52b4"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column("username", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False, server_default=""),
        sa.Column(
            "first_name", sa.String(length=128), nullable=False, server_default=""
        ),
        sa.Column(
            "last_name", sa.String(length=128), nullable=False, server_default=""
        ),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    op.create_table(
        "communities",
        sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("short_code", sa.String(length=64), nullable=False),
        sa.Column("join_code", sa.String(length=64), nullable=True),
        sa.Column(
            "privacy", sa.String(length=16), nullable=False, server_default="private"
        ),
        sa.Column(
            "signup_policy",
            sa.String(length=32),
            nullable=False,
            server_default="approval_required",
        ),
        sa.Column("plan", sa.String(length=16), nullable=False, server_default="free"),
        sa.Column("plan_paid_through", sa.Date(), nullable=True),
        sa.Column(
            "plan_discount_percent", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("stripe_subscription_id", sa.String(length=255), nullable=True),
        sa.Column(
            "created",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("name", name="uq_communities_name"),
        sa.UniqueConstraint("short_code", name="uq_communities_short_code"),
        sa.UniqueConstraint("join_code", name="uq_communities_join_code"),
    )

    op.create_table(
        "community_user_links",
        sa.Column(
            "community_id",
            sa.BigInteger(),
            sa.ForeignKey("communities.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "user_id",
            sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="member"),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=True),
    )
    op.create_index(
        "ix_community_user_links_user_id", "community_user_links", ["user_id"]
    )

    op.create_table(
        "community_request_links",
        sa.Column(
            "community_id",
            sa.BigInteger(),
            sa.ForeignKey("communities.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("request_id", sa.BigInteger(), primary_key=True),
    )


def downgrade() -> None:
    op.drop_table("community_request_links")
    op.drop_index("ix_community_user_links_user_id", table_name="community_user_links")
    op.drop_table("community_user_links")
    op.drop_table("communities")
    op.drop_table("users")
