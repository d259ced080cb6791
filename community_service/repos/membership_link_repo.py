from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from community_service.models.community import (
    LinkStatus,
    MemberProfile,
    MembershipLink,
    Role,
)
from community_service.repos.user_repo import UserRepo


class MembershipLinkRepo(Protocol):
    """Storage for (community, user) membership links.

    At most one link exists per pair.  ``upsert`` never overwrites an
    existing link; ``set_status`` and ``delete`` are unconditional, so the
    caller is responsible for checking that a change is legal.
    """

    async def upsert(self, link: MembershipLink) -> bool: ...
    async def set_status(
        self, community_id: int, user_id: int, status: LinkStatus
    ) -> None: ...
    async def delete(self, community_id: int, user_id: int) -> bool: ...
    async def delete_for_community(self, community_id: int) -> int: ...
    async def get(self, community_id: int, user_id: int) -> MembershipLink | None: ...
    async def list_for_community(
        self, community_id: int, status: LinkStatus | None = None
    ) -> list[MemberProfile]: ...
    async def list_for_user(self, user_id: int) -> list[MembershipLink]: ...
    async def role_for(self, community_id: int, user_id: int) -> Role | None: ...
    async def count_accepted(self, community_id: int) -> int: ...


class InMemoryMembershipLinkRepo:
    def __init__(self, users: UserRepo) -> None:
        self._users = users
        self._store: dict[tuple[int, int], MembershipLink] = {}

    async def upsert(self, link: MembershipLink) -> bool:
        key = (link.community_id, link.user_id)
        if key in self._store:
            return False
        self._store[key] = link
        return True

    async def set_status(
        self, community_id: int, user_id: int, status: LinkStatus
    ) -> None:
        key = (community_id, user_id)
        existing = self._store.get(key)
        if existing is None:
            return
        self._store[key] = replace(existing, status=status)

    async def delete(self, community_id: int, user_id: int) -> bool:
        return self._store.pop((community_id, user_id), None) is not None

    async def delete_for_community(self, community_id: int) -> int:
        keys = [k for k in self._store if k[0] == community_id]
        for key in keys:
            del self._store[key]
        return len(keys)

    async def get(self, community_id: int, user_id: int) -> MembershipLink | None:
        return self._store.get((community_id, user_id))

    async def list_for_community(
        self, community_id: int, status: LinkStatus | None = None
    ) -> list[MemberProfile]:
        links = [
            link
            for link in self._store.values()
            if link.community_id == community_id
            and (status is None or link.status == status)
        ]
        users = await self._users.get_many([link.user_id for link in links])
        profiles = []
        for link in links:
            user = users.get(link.user_id)
            if user is None:
                profiles.append(MemberProfile(link=link, username=""))
                continue
            profiles.append(
                MemberProfile(
                    link=link,
                    username=user.username,
                    first_name=user.first_name,
                    last_name=user.last_name,
                    email=user.email,
                )
            )
        profiles.sort(key=lambda p: (p.username, p.link.user_id))
        return profiles

    async def list_for_user(self, user_id: int) -> list[MembershipLink]:
        return [link for link in self._store.values() if link.user_id == user_id]

    async def role_for(self, community_id: int, user_id: int) -> Role | None:
        link = self._store.get((community_id, user_id))
        if link is None or link.status != LinkStatus.ACCEPTED:
            return None
        return link.role

    async def count_accepted(self, community_id: int) -> int:
        return sum(
            1
            for link in self._store.values()
            if link.community_id == community_id
            and link.status == LinkStatus.ACCEPTED
        )
