"""TaskOrderRepository: raw SQL persistence for task_orders.

complete_if_pending is the compare-and-swap that makes settlement
at-most-once: only a row still in PENDING is moved to COMPLETED.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_task.domain.models import TaskOrder

_SELECT_COLUMNS = """
    id, user_id, amount, commission, commission_rate_bps, status, origin,
    dispatch_override_id, product_id, product_title, product_image_url,
    unit_price, quantity, created_at, updated_at, settled_at
"""

_INSERT_ORDER_SQL = text("""
    INSERT INTO task_orders (id, user_id, amount, commission, commission_rate_bps,
        status, origin, dispatch_override_id, product_id, product_title,
        product_image_url, unit_price, quantity)
    VALUES (:id, :user_id, :amount, :commission, :commission_rate_bps,
        :status, :origin, :dispatch_override_id, :product_id, :product_title,
        :product_image_url, :unit_price, :quantity)
""")

_LOCK_ORDER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM task_orders WHERE id = :id
    FOR UPDATE
""")

_FIND_PENDING_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM task_orders
    WHERE user_id = :user_id AND status = 'PENDING'
    LIMIT 1
""")

_COMPLETE_IF_PENDING_SQL = text("""
    UPDATE task_orders
    SET status = 'COMPLETED', settled_at = NOW(), updated_at = NOW()
    WHERE id = :id AND status = 'PENDING'
""")

_CANCEL_PENDING_SQL = text(f"""
    UPDATE task_orders
    SET status = 'CANCELLED', updated_at = NOW()
    WHERE user_id = :user_id AND status = 'PENDING'
    RETURNING {_SELECT_COLUMNS}
""")

_LIST_ORDERS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM task_orders
    WHERE user_id = :user_id
      AND (CAST(:status AS TEXT) IS NULL OR status = :status)
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR CAST(id AS BIGINT) < :cursor_id)
    ORDER BY CAST(id AS BIGINT) DESC
    LIMIT :limit
""")


def _row_to_order(row: Any) -> TaskOrder:
    return TaskOrder(
        id=row.id,
        user_id=row.user_id,
        amount=row.amount,
        commission=row.commission,
        commission_rate_bps=row.commission_rate_bps,
        status=row.status,
        origin=row.origin,
        dispatch_override_id=row.dispatch_override_id,
        product_id=row.product_id,
        product_title=row.product_title,
        product_image_url=row.product_image_url,
        unit_price=row.unit_price,
        quantity=row.quantity,
        created_at=row.created_at,
        updated_at=row.updated_at,
        settled_at=row.settled_at,
    )


class TaskOrderRepository:
    async def create(self, db: AsyncSession, order: TaskOrder) -> None:
        await db.execute(
            _INSERT_ORDER_SQL,
            {
                "id": order.id,
                "user_id": order.user_id,
                "amount": order.amount,
                "commission": order.commission,
                "commission_rate_bps": order.commission_rate_bps,
                "status": order.status,
                "origin": order.origin,
                "dispatch_override_id": order.dispatch_override_id,
                "product_id": order.product_id,
                "product_title": order.product_title,
                "product_image_url": order.product_image_url,
                "unit_price": order.unit_price,
                "quantity": order.quantity,
            },
        )

    async def lock_by_id(self, db: AsyncSession, order_id: str) -> TaskOrder | None:
        result = await db.execute(_LOCK_ORDER_SQL, {"id": order_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def find_pending_for_user(
        self, db: AsyncSession, user_id: str
    ) -> TaskOrder | None:
        result = await db.execute(_FIND_PENDING_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def complete_if_pending(self, db: AsyncSession, order_id: str) -> bool:
        result = await db.execute(_COMPLETE_IF_PENDING_SQL, {"id": order_id})
        return (result.rowcount or 0) == 1  # type: ignore[attr-defined]

    async def cancel_pending_for_user(
        self, db: AsyncSession, user_id: str
    ) -> list[TaskOrder]:
        result = await db.execute(_CANCEL_PENDING_SQL, {"user_id": user_id})
        return [_row_to_order(row) for row in result.fetchall()]

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[TaskOrder]:
        result = await db.execute(
            _LIST_ORDERS_SQL,
            {
                "user_id": user_id,
                "status": status,
                "cursor_id": int(cursor_id) if cursor_id else None,
                "limit": limit,
            },
        )
        return [_row_to_order(row) for row in result.fetchall()]
