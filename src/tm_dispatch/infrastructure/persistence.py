"""DispatchRepository: raw SQL over dispatch_overrides.

mark_used is conditional on status = 'PENDING', so an override is consumed
at most once even if two settlements race.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.errors import InternalError
from src.tm_dispatch.domain.models import DispatchOverride

_COLUMNS = """
    id, user_id, position, min_amount, max_amount, status,
    triggered_at, created_at, updated_at
"""

_FIND_PENDING_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM dispatch_overrides
    WHERE user_id = :user_id AND position = :position AND status = 'PENDING'
""")

_UPSERT_SQL = text(f"""
    INSERT INTO dispatch_overrides (user_id, position, min_amount, max_amount, status)
    VALUES (:user_id, :position, :min_amount, :max_amount, 'PENDING')
    ON CONFLICT (user_id, position) DO UPDATE
        SET min_amount = EXCLUDED.min_amount,
            max_amount = EXCLUDED.max_amount,
            status = 'PENDING',
            triggered_at = NULL,
            updated_at = NOW()
    RETURNING {_COLUMNS}
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM dispatch_overrides
    WHERE user_id = :user_id
    ORDER BY position ASC
""")

_DELETE_SQL = text("DELETE FROM dispatch_overrides WHERE id = :id")

_MARK_USED_SQL = text("""
    UPDATE dispatch_overrides
    SET status = 'USED', triggered_at = NOW(), updated_at = NOW()
    WHERE id = :id AND status = 'PENDING'
""")


def _row_to_override(row: object) -> DispatchOverride:
    return DispatchOverride(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        position=row.position,  # type: ignore[attr-defined]
        min_amount=row.min_amount,  # type: ignore[attr-defined]
        max_amount=row.max_amount,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        triggered_at=row.triggered_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class DispatchRepository:
    async def find_pending(
        self, db: AsyncSession, user_id: str, position: int
    ) -> DispatchOverride | None:
        result = await db.execute(_FIND_PENDING_SQL, {"user_id": user_id, "position": position})
        row = result.fetchone()
        return _row_to_override(row) if row else None

    async def upsert(
        self,
        db: AsyncSession,
        user_id: str,
        position: int,
        min_amount: int,
        max_amount: int,
    ) -> DispatchOverride:
        result = await db.execute(
            _UPSERT_SQL,
            {
                "user_id": user_id,
                "position": position,
                "min_amount": min_amount,
                "max_amount": max_amount,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Dispatch upsert returned no rows")
        return _row_to_override(row)

    async def list_for_user(self, db: AsyncSession, user_id: str) -> list[DispatchOverride]:
        result = await db.execute(_LIST_SQL, {"user_id": user_id})
        return [_row_to_override(row) for row in result.fetchall()]

    async def delete(self, db: AsyncSession, override_id: int) -> bool:
        result = await db.execute(_DELETE_SQL, {"id": override_id})
        return (result.rowcount or 0) > 0  # type: ignore[attr-defined]

    async def mark_used(self, db: AsyncSession, override_id: int) -> bool:
        result = await db.execute(_MARK_USED_SQL, {"id": override_id})
        return (result.rowcount or 0) > 0  # type: ignore[attr-defined]
