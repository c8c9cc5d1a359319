"""ProductCatalogService: admin create / list / delete."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_catalog.domain.models import Product
from src.tm_catalog.domain.repository import ProductRepositoryProtocol
from src.tm_catalog.infrastructure.persistence import ProductRepository
from src.tm_common.database import unit_of_work
from src.tm_common.errors import InvalidParameterError, ProductNotFoundError

logger = logging.getLogger(__name__)


class ProductCatalogService:
    def __init__(self, repo: ProductRepositoryProtocol | None = None) -> None:
        self._repo: ProductRepositoryProtocol = repo or ProductRepository()

    async def create(
        self,
        db: AsyncSession,
        title: str,
        image_url: str | None,
        price: int,
        tier_level: int | None = None,
    ) -> Product:
        if price <= 0:
            raise InvalidParameterError("price must be > 0")
        async with unit_of_work(db):
            product = await self._repo.create(db, title, image_url, price, tier_level)
        logger.info("Product %d created: %s @ %d", product.id, product.title, product.price)
        return product

    async def list_products(
        self, db: AsyncSession, cursor_id: int | None, limit: int
    ) -> tuple[list[Product], bool]:
        """Returns (page, has_more)."""
        products = await self._repo.list_all(db, cursor_id, limit + 1)
        return products[:limit], len(products) > limit

    async def delete(self, db: AsyncSession, product_id: int) -> None:
        async with unit_of_work(db):
            if not await self._repo.delete(db, product_id):
                raise ProductNotFoundError(product_id)
        logger.info("Product %d deleted", product_id)
