from __future__ import annotations

import itertools
from dataclasses import replace
from datetime import UTC, datetime
from typing import Literal, Protocol

from community_service.models.community import Community, Privacy

SortField = Literal["name", "created"]
SortDir = Literal["asc", "desc"]

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class CommunityRepo(Protocol):
    async def get_by_id(self, community_id: int) -> Community | None: ...
    async def get_by_name(self, name: str) -> Community | None: ...
    async def get_by_short_code(self, short_code: str) -> Community | None: ...
    async def get_by_join_code(self, join_code: str) -> Community | None: ...
    async def get_many(self, community_ids: list[int]) -> list[Community]: ...
    async def add(self, community: Community) -> Community: ...
    async def update(self, community: Community) -> bool: ...
    async def delete(self, community_id: int) -> bool: ...
    async def list_public(
        self, sort_field: SortField, sort_dir: SortDir, limit: int, offset: int
    ) -> list[Community]: ...


class InMemoryCommunityRepo:
    def __init__(self) -> None:
        self._by_id: dict[int, Community] = {}
        self._ids = itertools.count(1)

    async def get_by_id(self, community_id: int) -> Community | None:
        return self._by_id.get(community_id)

    async def get_by_name(self, name: str) -> Community | None:
        return next((c for c in self._by_id.values() if c.name == name), None)

    async def get_by_short_code(self, short_code: str) -> Community | None:
        return next(
            (c for c in self._by_id.values() if c.short_code == short_code), None
        )

    async def get_by_join_code(self, join_code: str) -> Community | None:
        return next(
            (c for c in self._by_id.values() if c.join_code == join_code), None
        )

    async def get_many(self, community_ids: list[int]) -> list[Community]:
        found = [self._by_id[cid] for cid in community_ids if cid in self._by_id]
        return sorted(found, key=lambda c: c.name)

    async def add(self, community: Community) -> Community:
        self._check_unique(community)
        stored = replace(community, id=next(self._ids))
        self._by_id[stored.id] = stored
        return stored

    async def update(self, community: Community) -> bool:
        if community.id not in self._by_id:
            return False
        self._check_unique(community)
        self._by_id[community.id] = community
        return True

    def _check_unique(self, community: Community) -> None:
        # mirrors the unique indexes on the communities table
        for other in self._by_id.values():
            if other.id == community.id:
                continue
            if other.name == community.name:
                raise ValueError("that name is taken or reserved")
            if other.short_code == community.short_code:
                raise ValueError("that short code is taken or reserved")
            if community.join_code and other.join_code == community.join_code:
                raise ValueError("that join code is taken or reserved")

    async def delete(self, community_id: int) -> bool:
        return self._by_id.pop(community_id, None) is not None

    async def list_public(
        self, sort_field: SortField, sort_dir: SortDir, limit: int, offset: int
    ) -> list[Community]:
        public = [c for c in self._by_id.values() if c.privacy == Privacy.PUBLIC]
        if sort_field == "created":
            public.sort(key=lambda c: c.created or _EPOCH, reverse=sort_dir == "desc")
        else:
            public.sort(key=lambda c: c.name, reverse=sort_dir == "desc")
        return public[offset : offset + limit]
