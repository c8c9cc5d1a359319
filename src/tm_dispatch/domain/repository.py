from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_dispatch.domain.models import DispatchOverride


class DispatchRepositoryProtocol(Protocol):
    async def find_pending(
        self, db: AsyncSession, user_id: str, position: int
    ) -> DispatchOverride | None: ...

    async def upsert(
        self,
        db: AsyncSession,
        user_id: str,
        position: int,
        min_amount: int,
        max_amount: int,
    ) -> DispatchOverride: ...

    async def list_for_user(self, db: AsyncSession, user_id: str) -> list[DispatchOverride]: ...

    async def delete(self, db: AsyncSession, override_id: int) -> bool: ...

    async def mark_used(self, db: AsyncSession, override_id: int) -> bool: ...
