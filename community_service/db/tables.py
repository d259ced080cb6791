"""SQLAlchemy table definitions.

These are the persistence shapes only.  Repos convert rows to the frozen
dataclasses in community_service/models/, and the API converts those to
Pydantic response schemas, so no row object ever reaches a client.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    ForeignKey,
    Identity,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from community_service.db.engine import Base


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigInteger, Identity(), primary_key=True)
    username: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, default="")
    first_name: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(128), nullable=False, default="")


class CommunityRow(Base):
    __tablename__ = "communities"

    id: Mapped[int] = mapped_column(BigInteger, Identity(), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    short_code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    join_code: Mapped[str | None] = mapped_column(
        String(64), unique=True, nullable=True
    )
    privacy: Mapped[str] = mapped_column(
        String(16), nullable=False, default="private"
    )  # private|public
    signup_policy: Mapped[str] = mapped_column(
        String(32), nullable=False, default="approval_required"
    )  # none|join_code|approval_required|auto_accept
    plan: Mapped[str] = mapped_column(
        String(16), nullable=False, default="free"
    )  # free|basic|pro
    plan_paid_through: Mapped[date | None] = mapped_column(Date, nullable=True)
    plan_discount_percent: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    stripe_subscription_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class CommunityUserLinkRow(Base):
    __tablename__ = "community_user_links"

    # the composite primary key is what makes duplicate join requests no-ops
    community_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("communities.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    role: Mapped[str] = mapped_column(
        String(16), nullable=False, default="member"
    )  # admin|member
    status: Mapped[str] = mapped_column(
        String(16), nullable=False
    )  # invited|requested|accepted|declined
    code: Mapped[str | None] = mapped_column(String(32), nullable=True)

    __table_args__ = (Index("ix_community_user_links_user_id", "user_id"),)


class CommunityRequestLinkRow(Base):
    __tablename__ = "community_request_links"

    community_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("communities.id", ondelete="CASCADE"), primary_key=True
    )
    request_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
