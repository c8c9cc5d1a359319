"""DispatchOverrideService: admin management of per-position overrides.

Never touches balances. Overrides are consumed only by settlement.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_account.domain.repository import AccountRepositoryProtocol
from src.tm_account.infrastructure.persistence import AccountRepository
from src.tm_common.database import unit_of_work
from src.tm_common.errors import (
    AccountNotFoundError,
    DispatchOverrideNotFoundError,
    InvalidParameterError,
)
from src.tm_dispatch.domain.models import DispatchOverride
from src.tm_dispatch.domain.repository import DispatchRepositoryProtocol
from src.tm_dispatch.infrastructure.persistence import DispatchRepository

logger = logging.getLogger(__name__)


class DispatchOverrideService:
    def __init__(
        self,
        repo: DispatchRepositoryProtocol | None = None,
        account_repo: AccountRepositoryProtocol | None = None,
    ) -> None:
        self._repo: DispatchRepositoryProtocol = repo or DispatchRepository()
        self._account_repo: AccountRepositoryProtocol = account_repo or AccountRepository()

    async def upsert(
        self,
        db: AsyncSession,
        user_id: str,
        position: int,
        min_amount: int,
        max_amount: int,
    ) -> DispatchOverride:
        """Create or replace the override for (user, position); resets it to PENDING."""
        if position < 1:
            raise InvalidParameterError("position must be >= 1")
        if min_amount < 0 or min_amount > max_amount:
            raise InvalidParameterError("require 0 <= min_amount <= max_amount")

        async with unit_of_work(db):
            if await self._account_repo.get_account_by_user_id(db, user_id) is None:
                raise AccountNotFoundError(user_id)
            override = await self._repo.upsert(db, user_id, position, min_amount, max_amount)
        logger.info(
            "Dispatch override set user=%s position=%d range=[%d, %d]",
            user_id, position, min_amount, max_amount,
        )
        return override

    async def list_for_user(self, db: AsyncSession, user_id: str) -> list[DispatchOverride]:
        return await self._repo.list_for_user(db, user_id)

    async def delete(self, db: AsyncSession, override_id: int) -> None:
        async with unit_of_work(db):
            deleted = await self._repo.delete(db, override_id)
            if not deleted:
                raise DispatchOverrideNotFoundError(override_id)
        logger.info("Dispatch override %d deleted", override_id)
