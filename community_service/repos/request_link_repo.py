from __future__ import annotations

from typing import Protocol

# Prayer requests are owned by another part of the platform; this store only
# tracks which requests are shared into which community so the community
# can report its request count and drop the associations when it is deleted.


class RequestLinkRepo(Protocol):
    async def add(self, community_id: int, request_id: int) -> None: ...
    async def count_for_community(self, community_id: int) -> int: ...
    async def detach_community(self, community_id: int) -> int: ...


class InMemoryRequestLinkRepo:
    def __init__(self) -> None:
        self._pairs: set[tuple[int, int]] = set()

    async def add(self, community_id: int, request_id: int) -> None:
        self._pairs.add((community_id, request_id))

    async def count_for_community(self, community_id: int) -> int:
        return sum(1 for cid, _ in self._pairs if cid == community_id)

    async def detach_community(self, community_id: int) -> int:
        doomed = {pair for pair in self._pairs if pair[0] == community_id}
        self._pairs -= doomed
        return len(doomed)
