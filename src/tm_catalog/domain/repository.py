from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_catalog.domain.models import Product


class ProductRepositoryProtocol(Protocol):
    async def pick_random(
        self, db: AsyncSession, max_price: int | None, tier_level: int
    ) -> Product | None: ...

    async def create(
        self,
        db: AsyncSession,
        title: str,
        image_url: str | None,
        price: int,
        tier_level: int | None,
    ) -> Product: ...

    async def list_all(
        self, db: AsyncSession, cursor_id: int | None, limit: int
    ) -> list[Product]: ...

    async def delete(self, db: AsyncSession, product_id: int) -> bool: ...
