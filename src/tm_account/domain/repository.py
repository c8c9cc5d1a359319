"""Repository Protocol: dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_account.domain.models import Account, LedgerEntry


class AccountRepositoryProtocol(Protocol):
    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None: ...

    async def lock_account(self, db: AsyncSession, user_id: str) -> Account | None: ...

    async def deposit(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> tuple[Account, LedgerEntry]: ...

    async def withdraw(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> tuple[Account, LedgerEntry]: ...

    async def apply_settlement(
        self, db: AsyncSession, user_id: str, amount: int, total_return: int
    ) -> Account | None: ...

    async def apply_legacy_settlement(
        self, db: AsyncSession, user_id: str, amount: int, total_return: int
    ) -> Account | None: ...

    async def refund_reserve(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> Account | None: ...

    async def reset_daily_count(self, db: AsyncSession, user_id: str) -> Account | None: ...

    async def reset_all_daily_counts(self, db: AsyncSession) -> int: ...

    async def set_grab_enabled(
        self, db: AsyncSession, user_id: str, enabled: bool
    ) -> Account | None: ...

    async def set_tier_level(
        self, db: AsyncSession, user_id: str, tier_level: int
    ) -> Account | None: ...

    async def adjust_balance(
        self, db: AsyncSession, user_id: str, delta: int
    ) -> Account | None: ...

    async def count_accounts_on_tier(self, db: AsyncSession, tier_level: int) -> int: ...

    async def append_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        entry_type: str,
        amount: int,
        balance_after: int,
        reference_type: str | None,
        reference_id: str | None,
        description: str | None,
        created_by: str | None,
    ) -> LedgerEntry: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...
