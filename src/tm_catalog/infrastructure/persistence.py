"""ProductRepository: raw SQL over the products table."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_catalog.domain.models import Product
from src.tm_common.errors import InternalError

_COLUMNS = "id, title, image_url, price, tier_level, created_at"

# max_price NULL means the account has no balance to compare against.
_PICK_RANDOM_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM products
    WHERE price > 0
      AND (CAST(:max_price AS BIGINT) IS NULL OR price <= :max_price)
      AND (tier_level IS NULL OR tier_level = 0 OR tier_level <= :tier_level)
    ORDER BY random()
    LIMIT 1
""")

_INSERT_SQL = text(f"""
    INSERT INTO products (title, image_url, price, tier_level)
    VALUES (:title, :image_url, :price, :tier_level)
    RETURNING {_COLUMNS}
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM products
    WHERE (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")

_DELETE_SQL = text("DELETE FROM products WHERE id = :id")


def _row_to_product(row: object) -> Product:
    return Product(
        id=row.id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        image_url=row.image_url,  # type: ignore[attr-defined]
        price=row.price,  # type: ignore[attr-defined]
        tier_level=row.tier_level,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class ProductRepository:
    async def pick_random(
        self, db: AsyncSession, max_price: int | None, tier_level: int
    ) -> Product | None:
        result = await db.execute(
            _PICK_RANDOM_SQL, {"max_price": max_price, "tier_level": tier_level}
        )
        row = result.fetchone()
        return _row_to_product(row) if row else None

    async def create(
        self,
        db: AsyncSession,
        title: str,
        image_url: str | None,
        price: int,
        tier_level: int | None,
    ) -> Product:
        result = await db.execute(
            _INSERT_SQL,
            {"title": title, "image_url": image_url, "price": price, "tier_level": tier_level},
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Product insert returned no rows")
        return _row_to_product(row)

    async def list_all(
        self, db: AsyncSession, cursor_id: int | None, limit: int
    ) -> list[Product]:
        result = await db.execute(_LIST_SQL, {"cursor_id": cursor_id, "limit": limit})
        return [_row_to_product(row) for row in result.fetchall()]

    async def delete(self, db: AsyncSession, product_id: int) -> bool:
        result = await db.execute(_DELETE_SQL, {"id": product_id})
        return (result.rowcount or 0) > 0  # type: ignore[attr-defined]
