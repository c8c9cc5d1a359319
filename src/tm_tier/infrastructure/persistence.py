"""TierRepository: raw SQL over the tiers table."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.errors import InternalError
from src.tm_tier.domain.models import TierDefinition

_COLUMNS = "level, name, commission_rate_bps, daily_quota, min_balance, created_at, updated_at"

_GET_SQL = text(f"SELECT {_COLUMNS} FROM tiers WHERE level = :level")

_LIST_SQL = text(f"SELECT {_COLUMNS} FROM tiers ORDER BY level ASC")

_UPSERT_SQL = text(f"""
    INSERT INTO tiers (level, name, commission_rate_bps, daily_quota, min_balance)
    VALUES (:level, :name, :commission_rate_bps, :daily_quota, :min_balance)
    ON CONFLICT (level) DO UPDATE
        SET name = EXCLUDED.name,
            commission_rate_bps = EXCLUDED.commission_rate_bps,
            daily_quota = EXCLUDED.daily_quota,
            min_balance = EXCLUDED.min_balance,
            updated_at = NOW()
    RETURNING {_COLUMNS}
""")

_DELETE_SQL = text("DELETE FROM tiers WHERE level = :level")


def _row_to_tier(row: object) -> TierDefinition:
    return TierDefinition(
        level=row.level,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        commission_rate_bps=row.commission_rate_bps,  # type: ignore[attr-defined]
        daily_quota=row.daily_quota,  # type: ignore[attr-defined]
        min_balance=row.min_balance,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class TierRepository:
    async def get_by_level(self, db: AsyncSession, level: int) -> TierDefinition | None:
        result = await db.execute(_GET_SQL, {"level": level})
        row = result.fetchone()
        return _row_to_tier(row) if row else None

    async def list_all(self, db: AsyncSession) -> list[TierDefinition]:
        result = await db.execute(_LIST_SQL)
        return [_row_to_tier(row) for row in result.fetchall()]

    async def upsert(self, db: AsyncSession, tier: TierDefinition) -> TierDefinition:
        result = await db.execute(
            _UPSERT_SQL,
            {
                "level": tier.level,
                "name": tier.name,
                "commission_rate_bps": tier.commission_rate_bps,
                "daily_quota": tier.daily_quota,
                "min_balance": tier.min_balance,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Tier upsert returned no rows")
        return _row_to_tier(row)

    async def delete(self, db: AsyncSession, level: int) -> bool:
        result = await db.execute(_DELETE_SQL, {"level": level})
        return (result.rowcount or 0) > 0  # type: ignore[attr-defined]
