"""PostgreSQL implementation of CommunityRepo."""

from __future__ import annotations

from dataclasses import replace

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from community_service.db.tables import CommunityRow
from community_service.models.community import (
    Community,
    PlanTier,
    Privacy,
    SignupPolicy,
)
from community_service.repos.community_repo import SortDir, SortField

_SORT_COLUMNS = {
    "name": CommunityRow.name,
    "created": CommunityRow.created,
}


class PgCommunityRepo:
    """Satisfies the CommunityRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, community_id: int) -> Community | None:
        return await self._get_one(CommunityRow.id == community_id)

    async def get_by_name(self, name: str) -> Community | None:
        return await self._get_one(CommunityRow.name == name)

    async def get_by_join_code(self, join_code: str) -> Community | None:
        return await self._get_one(CommunityRow.join_code == join_code)

    async def get_by_short_code(self, short_code: str) -> Community | None:
        return await self._get_one(CommunityRow.short_code == short_code)

    async def get_many(self, community_ids: list[int]) -> list[Community]:
        if not community_ids:
            return []
        stmt = (
            select(CommunityRow)
            .where(CommunityRow.id.in_(community_ids))
            .order_by(CommunityRow.name)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_community(row) for row in rows]

    async def add(self, community: Community) -> Community:
        row = CommunityRow(
            name=community.name,
            description=community.description,
            short_code=community.short_code,
            join_code=community.join_code,
            privacy=community.privacy.value,
            signup_policy=community.signup_policy.value,
            plan=community.plan.value,
            plan_paid_through=community.plan_paid_through,
            plan_discount_percent=community.plan_discount_percent,
            stripe_subscription_id=community.stripe_subscription_id,
        )
        if community.created is not None:
            row.created = community.created
        self._session.add(row)
        try:
            await self._session.flush()
        except IntegrityError:
            raise ValueError("name, short code or join code already exists") from None
        return replace(community, id=row.id, created=row.created)

    async def update(self, community: Community) -> bool:
        stmt = (
            update(CommunityRow)
            .where(CommunityRow.id == community.id)
            .values(
                name=community.name,
                description=community.description,
                short_code=community.short_code,
                join_code=community.join_code,
                privacy=community.privacy.value,
                signup_policy=community.signup_policy.value,
            )
        )
        try:
            result = await self._session.execute(stmt)
        except IntegrityError:
            raise ValueError("name, short code or join code already exists") from None
        return result.rowcount > 0

    async def delete(self, community_id: int) -> bool:
        stmt = delete(CommunityRow).where(CommunityRow.id == community_id)
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def list_public(
        self, sort_field: SortField, sort_dir: SortDir, limit: int, offset: int
    ) -> list[Community]:
        column = _SORT_COLUMNS.get(sort_field, CommunityRow.name)
        order = column.desc() if sort_dir == "desc" else column.asc()
        stmt = (
            select(CommunityRow)
            .where(CommunityRow.privacy == Privacy.PUBLIC.value)
            .order_by(order)
            .limit(limit)
            .offset(offset)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_community(row) for row in rows]

    async def _get_one(self, condition) -> Community | None:
        stmt = select(CommunityRow).where(condition).limit(1)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_community(row)


def _row_to_community(row: CommunityRow) -> Community:
    return Community(
        id=row.id,
        name=row.name,
        short_code=row.short_code,
        description=row.description or "",
        join_code=row.join_code,
        privacy=Privacy(row.privacy),
        signup_policy=SignupPolicy(row.signup_policy or "approval_required"),
        plan=PlanTier(row.plan),
        plan_paid_through=row.plan_paid_through,
        plan_discount_percent=row.plan_discount_percent,
        stripe_subscription_id=row.stripe_subscription_id,
        created=row.created,
    )
