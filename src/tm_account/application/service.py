"""Use cases behind /account: balance, deposit, withdraw, ledger history."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_account.application.schemas import (
    BalanceResponse,
    FundsMovedResponse,
    LedgerEntryItem,
    LedgerResponse,
    cursor_decode,
    cursor_encode,
)
from src.tm_account.domain.repository import AccountRepositoryProtocol
from src.tm_account.infrastructure.persistence import AccountRepository
from src.tm_common.database import unit_of_work
from src.tm_common.errors import AccountNotFoundError

logger = logging.getLogger(__name__)


class AccountApplicationService:
    def __init__(self, repo: AccountRepositoryProtocol | None = None) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        account = await self._repo.get_account_by_user_id(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return BalanceResponse.from_account(account)

    async def deposit(self, db: AsyncSession, user_id: str, amount_cents: int) -> FundsMovedResponse:
        async with unit_of_work(db):
            account, entry = await self._repo.deposit(db, user_id, amount_cents)
        logger.info("Deposit user=%s amount=%d balance=%d", user_id, amount_cents, account.balance)
        return FundsMovedResponse.from_result(account, entry)

    async def withdraw(self, db: AsyncSession, user_id: str, amount_cents: int) -> FundsMovedResponse:
        async with unit_of_work(db):
            account, entry = await self._repo.withdraw(db, user_id, amount_cents)
        logger.info("Withdraw user=%s amount=%d balance=%d", user_id, amount_cents, account.balance)
        return FundsMovedResponse.from_result(account, entry)

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        """Newest first. One extra row is fetched to tell whether a next page exists."""
        rows = await self._repo.list_ledger_entries(
            db, user_id, cursor_decode(cursor), limit + 1, entry_type
        )
        page, has_more = rows[:limit], len(rows) > limit
        return LedgerResponse(
            items=[LedgerEntryItem.from_entry(e) for e in page],
            next_cursor=cursor_encode(page[-1].id) if has_more else None,
            has_more=has_more,
        )
