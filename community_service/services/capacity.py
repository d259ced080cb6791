"""Plan quotas and admission checks.

Plans are read-only here; upgrading a community's plan belongs to billing.
"""

from __future__ import annotations

from dataclasses import dataclass

from community_service.models.community import PlanTier


@dataclass(frozen=True, slots=True)
class PlanQuota:
    max_members: int
    max_active_requests: int
    monthly_price: int  # cents


EMPTY_QUOTA = PlanQuota(max_members=0, max_active_requests=0, monthly_price=0)

PLAN_QUOTAS: dict[PlanTier, PlanQuota] = {
    PlanTier.FREE: PlanQuota(max_members=50, max_active_requests=50, monthly_price=0),
    PlanTier.BASIC: PlanQuota(
        max_members=200, max_active_requests=500, monthly_price=499
    ),
    PlanTier.PRO: PlanQuota(
        max_members=2000, max_active_requests=4000, monthly_price=999
    ),
}


def quota_for(plan: str) -> PlanQuota:
    """Return the quota for a plan tier; unknown tiers get an empty quota."""
    return PLAN_QUOTAS.get(plan, EMPTY_QUOTA)  # type: ignore[call-overload]


def admits_member(quota: PlanQuota, accepted_count: int) -> bool:
    return accepted_count < quota.max_members


def admits_request(quota: PlanQuota, active_request_count: int) -> bool:
    return active_request_count < quota.max_active_requests
