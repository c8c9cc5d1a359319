"""TaskApplicationService: wires matcher, settlement and order listing for the API."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_task.application.schemas import (
    MatchResponse,
    OrderItem,
    OrderListResponse,
    SettlementResponse,
)
from src.tm_task.cache.match_cache import MatchCache
from src.tm_task.cache.provider import get_match_cache
from src.tm_task.domain.repository import TaskOrderRepositoryProtocol
from src.tm_task.engine.matcher import OrderMatcher
from src.tm_task.engine.settlement import SettlementEngine
from src.tm_task.infrastructure.persistence import TaskOrderRepository


class TaskApplicationService:
    def __init__(
        self,
        cache: MatchCache | None = None,
        matcher: OrderMatcher | None = None,
        settlement: SettlementEngine | None = None,
        order_repo: TaskOrderRepositoryProtocol | None = None,
    ) -> None:
        if cache is None:
            cache = get_match_cache()
        self._matcher = matcher or OrderMatcher(cache)
        self._settlement = settlement or SettlementEngine(cache)
        self._order_repo: TaskOrderRepositoryProtocol = order_repo or TaskOrderRepository()

    async def match(self, db: AsyncSession, user_id: str) -> MatchResponse:
        result = await self._matcher.match(db, user_id)
        return MatchResponse.from_context(result.token, result.context)

    async def confirm(self, db: AsyncSession, user_id: str, token: str) -> SettlementResponse:
        result = await self._settlement.confirm(db, user_id, token)
        return SettlementResponse.from_result(result)

    async def submit(self, db: AsyncSession, user_id: str, order_id: str) -> SettlementResponse:
        result = await self._settlement.submit(db, user_id, order_id)
        return SettlementResponse.from_result(result)

    async def list_orders(
        self,
        db: AsyncSession,
        user_id: str,
        status: str | None,
        cursor: str | None,
        limit: int,
    ) -> OrderListResponse:
        orders = await self._order_repo.list_by_user(db, user_id, status, cursor, limit + 1)
        has_more = len(orders) > limit
        page = orders[:limit]
        return OrderListResponse(
            items=[OrderItem.from_order(o) for o in page],
            next_cursor=page[-1].id if has_more and page else None,
            has_more=has_more,
        )


_service: TaskApplicationService | None = None


def get_task_service() -> TaskApplicationService:
    """FastAPI dependency: process-wide service bound to the shared match cache."""
    global _service  # noqa: PLW0603
    if _service is None:
        _service = TaskApplicationService()
    return _service
