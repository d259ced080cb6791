"""Community endpoints.

Creating a community makes the caller its admin.  Reads are shaped by the
caller's role: admins get CommunityAdminOut, everyone else the public
CommunityOut without codes or billing fields.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from community_service.api.dependencies import get_community_service, require_user
from community_service.models.community import (
    CommunityView,
    LinkStatus,
    Privacy,
    Role,
    SignupPolicy,
)
from community_service.models.principal import Principal
from community_service.services.access_policy import should_redact_admin_fields
from community_service.services.community_service import (
    CommunityPatch,
    CommunityService,
)

router = APIRouter(prefix="/v1/communities", tags=["communities"])

Service = Annotated[CommunityService, Depends(get_community_service)]
Caller = Annotated[Principal, Depends(require_user)]


# --- Pydantic schemas ---


class CommunityIn(BaseModel):
    name: str
    description: str = ""
    privacy: Privacy = Privacy.PRIVATE
    signup_policy: SignupPolicy = SignupPolicy.APPROVAL_REQUIRED
    short_code: str | None = None
    join_code: str | None = None


class CommunityPatchIn(BaseModel):
    name: str | None = None
    description: str | None = None
    join_code: str | None = None
    privacy: Privacy | None = None
    signup_policy: SignupPolicy | None = None


class CommunityOut(BaseModel):
    id: int
    name: str
    description: str
    privacy: str
    plan: str
    created: datetime | None
    member_count: int
    request_count: int
    user_role: str | None = None
    user_status: str | None = None


class CommunityAdminOut(CommunityOut):
    short_code: str
    join_code: str | None
    signup_policy: str
    plan_paid_through: date | None
    plan_discount_percent: int
    stripe_subscription_id: str | None


class DeletedOut(BaseModel):
    deleted: bool


def _to_out(view: CommunityView, caller_role: Role | None) -> CommunityOut:
    c = view.community
    fields = {
        "id": c.id,
        "name": c.name,
        "description": c.description,
        "privacy": c.privacy,
        "plan": c.plan,
        "created": c.created,
        "member_count": view.member_count,
        "request_count": view.request_count,
        "user_role": view.user_role,
        "user_status": view.user_status,
    }
    if should_redact_admin_fields(caller_role):
        return CommunityOut(**fields)
    return CommunityAdminOut(
        **fields,
        short_code=c.short_code,
        join_code=c.join_code,
        signup_policy=c.signup_policy,
        plan_paid_through=c.plan_paid_through,
        plan_discount_percent=c.plan_discount_percent,
        stripe_subscription_id=c.stripe_subscription_id,
    )


def _accepted_role(view: CommunityView) -> Role | None:
    if view.user_status != LinkStatus.ACCEPTED:
        return None
    return view.user_role


# --- Endpoints ---
# response_model=None on the role-shaped reads: the returned model's own
# fields are serialized, so admin fields survive for admins only.


@router.post("", response_model=CommunityAdminOut, status_code=status.HTTP_201_CREATED)
async def create_community(
    body: CommunityIn, principal: Caller, service: Service
) -> CommunityOut:
    view = await service.create(
        principal.user_id,
        name=body.name,
        description=body.description,
        short_code=body.short_code,
        join_code=body.join_code,
        privacy=body.privacy,
        signup_policy=body.signup_policy,
    )
    return _to_out(view, Role.ADMIN)


@router.get("", response_model=None)
async def list_my_communities(
    principal: Caller, service: Service
) -> list[CommunityOut]:
    """Every community the caller has a link to, with their role and status."""
    views = await service.list_for_user(principal.user_id)
    return [_to_out(v, _accepted_role(v)) for v in views]


@router.get("/public", response_model=list[CommunityOut])
async def list_public_communities(
    _principal: Caller,
    service: Service,
    sort_field: str = "name",
    sort_dir: str = "asc",
    count: Annotated[int, Query(ge=0)] = 500,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[CommunityOut]:
    views = await service.list_public(sort_field, sort_dir, count, offset)
    return [_to_out(v, None) for v in views]


@router.get("/code/{short_code}", response_model=None)
async def get_community_by_code(
    short_code: str, principal: Caller, service: Service
) -> CommunityOut:
    view, role = await service.get_by_short_code(short_code, principal.user_id)
    return _to_out(view, role)


@router.get("/{community_id}", response_model=None)
async def get_community(
    community_id: int, principal: Caller, service: Service
) -> CommunityOut:
    view, role = await service.get(community_id, principal.user_id)
    return _to_out(view, role)


@router.patch("/{community_id}", response_model=CommunityAdminOut)
async def update_community(
    community_id: int,
    body: CommunityPatchIn,
    principal: Caller,
    service: Service,
) -> CommunityOut:
    patch = CommunityPatch(
        name=body.name,
        description=body.description,
        join_code=body.join_code,
        privacy=body.privacy,
        signup_policy=body.signup_policy,
    )
    view = await service.update(community_id, principal.user_id, patch)
    return _to_out(view, Role.ADMIN)


@router.delete("/{community_id}", response_model=DeletedOut)
async def delete_community(
    community_id: int, principal: Caller, service: Service
) -> DeletedOut:
    await service.delete(community_id, principal.user_id)
    return DeletedOut(deleted=True)
