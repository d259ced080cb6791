from __future__ import annotations

import pytest

from community_service.models.community import PlanTier
from community_service.services.capacity import (
    EMPTY_QUOTA,
    PlanQuota,
    admits_member,
    admits_request,
    quota_for,
)


@pytest.mark.parametrize(
    "plan,expected",
    [
        (PlanTier.FREE, PlanQuota(50, 50, 0)),
        (PlanTier.BASIC, PlanQuota(200, 500, 499)),
        (PlanTier.PRO, PlanQuota(2000, 4000, 999)),
        ("pro", PlanQuota(2000, 4000, 999)),
    ],
)
def test_quota_for_known_plans(plan: str, expected: PlanQuota) -> None:
    assert quota_for(plan) == expected


@pytest.mark.parametrize("plan", ["", "enterprise", "FREE"])
def test_unknown_plan_gets_empty_quota(plan: str) -> None:
    quota = quota_for(plan)
    assert quota == EMPTY_QUOTA
    assert admits_member(quota, 0) is False
    assert admits_request(quota, 0) is False


def test_admits_member_below_limit_only() -> None:
    quota = quota_for(PlanTier.FREE)
    assert admits_member(quota, 49) is True
    assert admits_member(quota, 50) is False
    assert admits_member(quota, 51) is False


def test_admits_request_uses_request_limit() -> None:
    quota = quota_for(PlanTier.BASIC)
    assert admits_request(quota, 499) is True
    assert admits_request(quota, 500) is False
