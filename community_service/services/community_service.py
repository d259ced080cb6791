"""Community lifecycle: create, edit, delete and the read-side listings.

Reads return CommunityView, which adds the counts derived at read time
(accepted members, attached prayer requests) to the stored community.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, replace

from community_service.models.community import (
    Community,
    CommunityView,
    LinkStatus,
    MembershipLink,
    Privacy,
    Role,
    SignupPolicy,
)
from community_service.repos.community_repo import CommunityRepo, SortDir, SortField
from community_service.repos.membership_link_repo import MembershipLinkRepo
from community_service.repos.request_link_repo import RequestLinkRepo
from community_service.services.access_policy import (
    can_manage_community,
    can_view_community,
)
from community_service.services.errors import (
    AlreadyExistsError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_SORT_FIELDS: tuple[SortField, ...] = ("name", "created")
_SORT_DIRS: tuple[SortDir, ...] = ("asc", "desc")

_NAME_CODE_LEN = 11


def generate_short_code(name: str, creator_id: int) -> str:
    """Lowercased name without whitespace, three random digits, creator id."""
    name_code = "".join(name.lower().split())[:_NAME_CODE_LEN]
    digits = "".join(str(secrets.randbelow(9)) for _ in range(3))
    return f"{name_code}{digits}{creator_id}"


@dataclass(frozen=True, slots=True)
class CommunityPatch:
    """Editable fields.  None or an empty string leaves the field as is."""

    name: str | None = None
    description: str | None = None
    join_code: str | None = None
    privacy: Privacy | None = None
    signup_policy: SignupPolicy | None = None


class CommunityService:
    def __init__(
        self,
        communities: CommunityRepo,
        links: MembershipLinkRepo,
        request_links: RequestLinkRepo,
    ) -> None:
        self._communities = communities
        self._links = links
        self._request_links = request_links

    async def create(
        self,
        creator_id: int,
        *,
        name: str,
        description: str = "",
        short_code: str | None = None,
        join_code: str | None = None,
        privacy: Privacy = Privacy.PRIVATE,
        signup_policy: SignupPolicy = SignupPolicy.APPROVAL_REQUIRED,
    ) -> CommunityView:
        """Create a community on the free plan with the creator as its admin."""
        name = name.strip()
        if not name:
            raise ValidationError("name is required")
        short_code = (short_code or "").strip() or generate_short_code(name, creator_id)

        if await self._communities.get_by_name(name) is not None:
            logger.warning("Rejected duplicate community name=%s", name)
            raise AlreadyExistsError("that name is taken or reserved")
        if await self._communities.get_by_short_code(short_code) is not None:
            logger.warning("Rejected duplicate short_code=%s", short_code)
            raise AlreadyExistsError("that short code is taken or reserved")
        join_code = (join_code or "").strip() or None
        if join_code is not None:
            await self._require_free_join_code(join_code, None)

        try:
            community = await self._communities.add(
                Community.new(
                    name=name,
                    short_code=short_code,
                    description=description,
                    join_code=join_code,
                    privacy=privacy,
                    signup_policy=signup_policy,
                )
            )
        except ValueError as e:
            raise AlreadyExistsError(str(e)) from None

        await self._links.upsert(
            MembershipLink(
                community_id=community.id,
                user_id=creator_id,
                role=Role.ADMIN,
                status=LinkStatus.ACCEPTED,
            )
        )
        logger.info(
            "Created community id=%d name=%s creator=%d",
            community.id,
            community.name,
            creator_id,
        )
        return CommunityView(
            community=community,
            member_count=1,
            user_role=Role.ADMIN,
            user_status=LinkStatus.ACCEPTED,
        )

    async def update(
        self, community_id: int, actor_id: int, patch: CommunityPatch
    ) -> CommunityView:
        community = await self._require_community(community_id)
        await self._require_admin(community.id, actor_id)

        name = (patch.name or "").strip()
        if name and name != community.name:
            other = await self._communities.get_by_name(name)
            if other is not None and other.id != community.id:
                raise AlreadyExistsError("that name is taken or reserved")
        join_code = (patch.join_code or "").strip()
        if join_code and join_code != community.join_code:
            await self._require_free_join_code(join_code, community.id)

        updated = replace(
            community,
            name=name or community.name,
            description=patch.description or community.description,
            join_code=join_code or community.join_code,
            privacy=patch.privacy or community.privacy,
            signup_policy=patch.signup_policy or community.signup_policy,
        )
        try:
            stored = await self._communities.update(updated)
        except ValueError as e:
            raise AlreadyExistsError(str(e)) from None
        if not stored:
            raise NotFoundError("community not found")
        logger.info("Updated community id=%d by=%d", community.id, actor_id)
        return await self._view(updated, Role.ADMIN, LinkStatus.ACCEPTED)

    async def delete(self, community_id: int, actor_id: int) -> None:
        """Delete the community with all of its links and request associations."""
        community = await self._require_community(community_id)
        await self._require_admin(community.id, actor_id)

        links = await self._links.delete_for_community(community.id)
        requests = await self._request_links.detach_community(community.id)
        await self._communities.delete(community.id)
        logger.info(
            "Deleted community id=%d by=%d links=%d requests=%d",
            community.id,
            actor_id,
            links,
            requests,
        )

    async def get(
        self, community_id: int, caller_id: int
    ) -> tuple[CommunityView, Role | None]:
        community = await self._require_community(community_id)
        return await self._visible(community, caller_id)

    async def get_by_short_code(
        self, short_code: str, caller_id: int
    ) -> tuple[CommunityView, Role | None]:
        community = await self._communities.get_by_short_code(short_code)
        if community is None:
            raise NotFoundError("community not found")
        return await self._visible(community, caller_id)

    async def list_public(
        self,
        sort_field: str = "name",
        sort_dir: str = "asc",
        limit: int = 500,
        offset: int = 0,
    ) -> list[CommunityView]:
        if limit < 0 or offset < 0:
            raise ValidationError(
                "count and offset must not be negative",
                data={"count": limit, "offset": offset},
            )
        field = sort_field.lower()
        direction = sort_dir.lower()
        communities = await self._communities.list_public(
            field if field in _SORT_FIELDS else "name",
            direction if direction in _SORT_DIRS else "asc",
            limit,
            offset,
        )
        return [await self._view(c) for c in communities]

    async def list_for_user(self, user_id: int) -> list[CommunityView]:
        """Every community the user has a link to, whatever its status, by name."""
        links = {
            link.community_id: link for link in await self._links.list_for_user(user_id)
        }
        communities = await self._communities.get_many(list(links))
        return [
            await self._view(c, links[c.id].role, links[c.id].status)
            for c in communities
        ]

    async def _visible(
        self, community: Community, caller_id: int
    ) -> tuple[CommunityView, Role | None]:
        role = await self._links.role_for(community.id, caller_id)
        if not can_view_community(community, role):
            logger.warning(
                "Community view refused id=%d user=%d", community.id, caller_id
            )
            raise PermissionDeniedError("you are not a member of this community")
        link = await self._links.get(community.id, caller_id)
        view = await self._view(
            community,
            link.role if link else None,
            link.status if link else None,
        )
        return view, role

    async def _view(
        self,
        community: Community,
        role: Role | None = None,
        status: LinkStatus | None = None,
    ) -> CommunityView:
        return CommunityView(
            community=community,
            member_count=await self._links.count_accepted(community.id),
            request_count=await self._request_links.count_for_community(community.id),
            user_role=role,
            user_status=status,
        )

    async def _require_community(self, community_id: int) -> Community:
        community = await self._communities.get_by_id(community_id)
        if community is None:
            raise NotFoundError("community not found")
        return community

    async def _require_admin(self, community_id: int, actor_id: int) -> None:
        role = await self._links.role_for(community_id, actor_id)
        if not can_manage_community(role):
            logger.warning(
                "Community admin action refused id=%d user=%d role=%s",
                community_id,
                actor_id,
                role,
            )
            raise PermissionDeniedError()

    async def _require_free_join_code(
        self, join_code: str, community_id: int | None
    ) -> None:
        other = await self._communities.get_by_join_code(join_code)
        if other is not None and other.id != community_id:
            logger.warning(
                "Rejected duplicate join code for community=%s", community_id
            )
            raise AlreadyExistsError("that join code is taken or reserved")
