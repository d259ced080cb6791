from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import StrEnum


class Privacy(StrEnum):
    PRIVATE = "private"
    PUBLIC = "public"


class SignupPolicy(StrEnum):
    NONE = "none"
    JOIN_CODE = "join_code"
    APPROVAL_REQUIRED = "approval_required"
    AUTO_ACCEPT = "auto_accept"


class PlanTier(StrEnum):
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"


class Role(StrEnum):
    ADMIN = "admin"
    MEMBER = "member"


class LinkStatus(StrEnum):
    INVITED = "invited"
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    DECLINED = "declined"


@dataclass(frozen=True, slots=True)
class Community:
    id: int
    name: str
    short_code: str
    description: str = ""
    join_code: str | None = None
    privacy: Privacy = Privacy.PRIVATE
    signup_policy: SignupPolicy = SignupPolicy.APPROVAL_REQUIRED
    plan: PlanTier = PlanTier.FREE
    plan_paid_through: date | None = None
    plan_discount_percent: int = 0
    stripe_subscription_id: str | None = None
    created: datetime | None = None

    @staticmethod
    def new(
        *,
        name: str,
        short_code: str,
        description: str = "",
        join_code: str | None = None,
        privacy: Privacy = Privacy.PRIVATE,
        signup_policy: SignupPolicy = SignupPolicy.APPROVAL_REQUIRED,
    ) -> Community:
        # id 0 means "not yet stored"; the repo assigns the real one
        now = datetime.now(UTC)
        return Community(
            id=0,
            name=name,
            short_code=short_code,
            description=description,
            join_code=join_code,
            privacy=privacy,
            signup_policy=signup_policy,
            plan=PlanTier.FREE,
            plan_paid_through=now.date(),
            plan_discount_percent=0,
            created=now,
        )


@dataclass(frozen=True, slots=True)
class MembershipLink:
    community_id: int
    user_id: int
    role: Role
    status: LinkStatus
    code: str | None = None  # set while invited|requested


@dataclass(frozen=True, slots=True)
class MemberProfile:
    """A membership link joined with the member's display fields."""

    link: MembershipLink
    username: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""


@dataclass(frozen=True, slots=True)
class CommunityView:
    """A community plus the counts and caller annotations derived at read time.

    user_role / user_status are only filled in for per-user listings.
    """

    community: Community
    member_count: int = 0
    request_count: int = 0
    user_role: Role | None = None
    user_status: LinkStatus | None = None
