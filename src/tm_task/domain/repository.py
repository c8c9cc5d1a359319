"""Repository Protocols for tm_task."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_task.domain.models import MatchParams, TaskOrder


class TaskOrderRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, order: TaskOrder) -> None: ...

    async def lock_by_id(self, db: AsyncSession, order_id: str) -> TaskOrder | None: ...

    async def find_pending_for_user(
        self, db: AsyncSession, user_id: str
    ) -> TaskOrder | None: ...

    async def complete_if_pending(self, db: AsyncSession, order_id: str) -> bool: ...

    async def cancel_pending_for_user(
        self, db: AsyncSession, user_id: str
    ) -> list[TaskOrder]: ...

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[TaskOrder]: ...


class MatchParamsRepositoryProtocol(Protocol):
    async def load(self, db: AsyncSession) -> MatchParams: ...

    async def save(self, db: AsyncSession, params: MatchParams) -> MatchParams: ...
