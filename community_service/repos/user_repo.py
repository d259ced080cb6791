from __future__ import annotations

from typing import Protocol

from community_service.models.user import User


class UserRepo(Protocol):
    async def get_by_id(self, user_id: int) -> User | None: ...
    async def get_many(self, user_ids: list[int]) -> dict[int, User]: ...
    async def add(self, user: User) -> None: ...


class InMemoryUserRepo:
    def __init__(self) -> None:
        self._by_id: dict[int, User] = {}

    async def get_by_id(self, user_id: int) -> User | None:
        return self._by_id.get(user_id)

    async def get_many(self, user_ids: list[int]) -> dict[int, User]:
        return {uid: self._by_id[uid] for uid in user_ids if uid in self._by_id}

    async def add(self, user: User) -> None:
        if user.id in self._by_id:
            raise ValueError("user already exists")
        self._by_id[user.id] = user
