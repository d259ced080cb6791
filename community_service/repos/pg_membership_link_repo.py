"""PostgreSQL implementation of MembershipLinkRepo."""

from __future__ import annotations

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from community_service.db.tables import CommunityUserLinkRow, UserRow
from community_service.models.community import (
    LinkStatus,
    MemberProfile,
    MembershipLink,
    Role,
)


class PgMembershipLinkRepo:
    """Satisfies the MembershipLinkRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert(self, link: MembershipLink) -> bool:
        stmt = (
            pg_insert(CommunityUserLinkRow)
            .values(
                community_id=link.community_id,
                user_id=link.user_id,
                role=link.role.value,
                status=link.status.value,
                code=link.code,
            )
            .on_conflict_do_nothing(index_elements=["community_id", "user_id"])
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def set_status(
        self, community_id: int, user_id: int, status: LinkStatus
    ) -> None:
        stmt = (
            update(CommunityUserLinkRow)
            .where(
                CommunityUserLinkRow.community_id == community_id,
                CommunityUserLinkRow.user_id == user_id,
            )
            .values(status=status.value)
        )
        await self._session.execute(stmt)

    async def delete(self, community_id: int, user_id: int) -> bool:
        stmt = delete(CommunityUserLinkRow).where(
            CommunityUserLinkRow.community_id == community_id,
            CommunityUserLinkRow.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def delete_for_community(self, community_id: int) -> int:
        stmt = delete(CommunityUserLinkRow).where(
            CommunityUserLinkRow.community_id == community_id
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    async def get(self, community_id: int, user_id: int) -> MembershipLink | None:
        stmt = select(CommunityUserLinkRow).where(
            CommunityUserLinkRow.community_id == community_id,
            CommunityUserLinkRow.user_id == user_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_link(row)

    async def list_for_community(
        self, community_id: int, status: LinkStatus | None = None
    ) -> list[MemberProfile]:
        stmt = (
            select(CommunityUserLinkRow, UserRow)
            .outerjoin(UserRow, UserRow.id == CommunityUserLinkRow.user_id)
            .where(CommunityUserLinkRow.community_id == community_id)
            .order_by(UserRow.username, CommunityUserLinkRow.user_id)
        )
        if status is not None:
            stmt = stmt.where(CommunityUserLinkRow.status == status.value)

        profiles = []
        for link_row, user_row in (await self._session.execute(stmt)).all():
            link = _row_to_link(link_row)
            if user_row is None:
                profiles.append(MemberProfile(link=link, username=""))
                continue
            profiles.append(
                MemberProfile(
                    link=link,
                    username=user_row.username,
                    first_name=user_row.first_name or "",
                    last_name=user_row.last_name or "",
                    email=user_row.email or "",
                )
            )
        return profiles

    async def list_for_user(self, user_id: int) -> list[MembershipLink]:
        stmt = select(CommunityUserLinkRow).where(
            CommunityUserLinkRow.user_id == user_id
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_link(row) for row in rows]

    async def role_for(self, community_id: int, user_id: int) -> Role | None:
        stmt = select(CommunityUserLinkRow.role).where(
            CommunityUserLinkRow.community_id == community_id,
            CommunityUserLinkRow.user_id == user_id,
            CommunityUserLinkRow.status == LinkStatus.ACCEPTED.value,
        )
        role = (await self._session.execute(stmt)).scalar_one_or_none()
        return Role(role) if role is not None else None

    async def count_accepted(self, community_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(CommunityUserLinkRow)
            .where(
                CommunityUserLinkRow.community_id == community_id,
                CommunityUserLinkRow.status == LinkStatus.ACCEPTED.value,
            )
        )
        return (await self._session.execute(stmt)).scalar_one()


def _row_to_link(row: CommunityUserLinkRow) -> MembershipLink:
    return MembershipLink(
        community_id=row.community_id,
        user_id=row.user_id,
        role=Role(row.role),
        status=LinkStatus(row.status),
        code=row.code,
    )
