"""Membership endpoints under /v1/communities/{community_id}/users.

PUT on your own user id asks to join; PUT on someone else's invites them
(admins only).  PATCH answers a pending link with its verification code,
DELETE removes a link outright (admins only).
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from community_service.api.dependencies import get_membership_service, require_user
from community_service.api.ratelimit import require_rate_limit
from community_service.models.community import (
    LinkStatus,
    MemberProfile,
    MembershipLink,
    Role,
)
from community_service.models.principal import Principal
from community_service.services.access_policy import (
    should_redact_verification_codes,
)
from community_service.services.membership_service import MembershipService

router = APIRouter(prefix="/v1/communities/{community_id}/users", tags=["memberships"])

Service = Annotated[MembershipService, Depends(get_membership_service)]
Caller = Annotated[Principal, Depends(require_user)]

_limited = [Depends(require_rate_limit())]


# --- Pydantic schemas ---


class MemberOut(BaseModel):
    user_id: int
    username: str
    first_name: str
    last_name: str
    email: str
    role: str
    status: str


class MemberAdminOut(MemberOut):
    code: str | None


class LinkOut(BaseModel):
    community_id: int
    user_id: int
    role: str
    status: str


class MembershipRequestOut(LinkOut):
    outcome: str
    created: bool
    # only on admin invitations, for the admin to pass on to the invitee
    code: str | None = None


class ProcessIn(BaseModel):
    code: str
    status: LinkStatus


class DeletedOut(BaseModel):
    deleted: bool


def _member_out(profile: MemberProfile, caller_role: Role | None) -> MemberOut:
    fields = {
        "user_id": profile.link.user_id,
        "username": profile.username,
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "email": profile.email,
        "role": profile.link.role,
        "status": profile.link.status,
    }
    if should_redact_verification_codes(caller_role):
        return MemberOut(**fields)
    return MemberAdminOut(**fields, code=profile.link.code)


def _link_out(link: MembershipLink) -> LinkOut:
    return LinkOut(
        community_id=link.community_id,
        user_id=link.user_id,
        role=link.role,
        status=link.status,
    )


def _status_filter(raw: str) -> LinkStatus | None:
    # "all", and anything that is not a status, disables the filter
    try:
        return LinkStatus(raw.lower())
    except ValueError:
        return None


# --- Endpoints ---


@router.get("", response_model=None)
async def list_members(
    community_id: int,
    principal: Caller,
    service: Service,
    status: str = "all",
) -> list[MemberOut]:
    """Roster ordered by username.  Codes are shown to admins only."""
    profiles, role = await service.list_links(
        community_id, principal.user_id, _status_filter(status)
    )
    return [_member_out(p, role) for p in profiles]


@router.put("/{user_id}", response_model=MembershipRequestOut, dependencies=_limited)
async def request_or_invite(
    community_id: int,
    user_id: int,
    principal: Caller,
    service: Service,
) -> MembershipRequestOut:
    """Join (own id) or invite (other id).

    An existing link is left untouched and reported with created=false.
    """
    result = await service.request_or_invite(community_id, user_id, principal.user_id)
    link = result.link
    return MembershipRequestOut(
        community_id=link.community_id,
        user_id=link.user_id,
        role=link.role,
        status=link.status,
        outcome=result.outcome,
        created=result.created,
        code=link.code if user_id != principal.user_id else None,
    )


@router.patch("/{user_id}", response_model=LinkOut, dependencies=_limited)
async def process_membership(
    community_id: int,
    user_id: int,
    body: ProcessIn,
    principal: Caller,
    service: Service,
) -> LinkOut:
    link = await service.process(
        community_id, user_id, principal.user_id, body.code, body.status
    )
    return _link_out(link)


@router.delete("/{user_id}", response_model=DeletedOut, dependencies=_limited)
async def remove_membership(
    community_id: int,
    user_id: int,
    principal: Caller,
    service: Service,
) -> DeletedOut:
    await service.remove(community_id, user_id, principal.user_id)
    return DeletedOut(deleted=True)
