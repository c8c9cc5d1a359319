from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_tier.domain.models import TierDefinition


class TierRepositoryProtocol(Protocol):
    async def get_by_level(self, db: AsyncSession, level: int) -> TierDefinition | None: ...

    async def list_all(self, db: AsyncSession) -> list[TierDefinition]: ...

    async def upsert(self, db: AsyncSession, tier: TierDefinition) -> TierDefinition: ...

    async def delete(self, db: AsyncSession, level: int) -> bool: ...
