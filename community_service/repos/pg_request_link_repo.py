"""PostgreSQL implementation of RequestLinkRepo."""

from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from community_service.db.tables import CommunityRequestLinkRow


class PgRequestLinkRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, community_id: int, request_id: int) -> None:
        stmt = (
            pg_insert(CommunityRequestLinkRow)
            .values(community_id=community_id, request_id=request_id)
            .on_conflict_do_nothing(index_elements=["community_id", "request_id"])
        )
        await self._session.execute(stmt)

    async def count_for_community(self, community_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(CommunityRequestLinkRow)
            .where(CommunityRequestLinkRow.community_id == community_id)
        )
        return (await self._session.execute(stmt)).scalar_one()

    async def detach_community(self, community_id: int) -> int:
        stmt = delete(CommunityRequestLinkRow).where(
            CommunityRequestLinkRow.community_id == community_id
        )
        result = await self._session.execute(stmt)
        return result.rowcount
