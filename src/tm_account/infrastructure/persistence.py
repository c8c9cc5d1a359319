"""AccountRepository: concrete implementation of AccountRepositoryProtocol.

All balance-mutating operations use atomic PostgreSQL UPDATE ... RETURNING.
A result of 0 rows means a business constraint was violated (insufficient
funds) or the account does not exist.

Transaction ownership: the CALLER (application service) commits or rolls
back. Nothing in this module calls commit().
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_account.domain.models import Account, LedgerEntry
from src.tm_common.enums import LedgerEntryType, LedgerReferenceType
from src.tm_common.errors import InsufficientBalanceError, InternalError

_ACCOUNT_COLUMNS = """
    id, user_id, balance, frozen_balance, tier_level,
    daily_order_count, grab_enabled, version, created_at, updated_at
"""

# ---------------------------------------------------------------------------
# SQL: accounts reads
# ---------------------------------------------------------------------------

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
""")

_LOCK_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
    FOR UPDATE
""")

_COUNT_ON_TIER_SQL = text("""
    SELECT COUNT(*) FROM accounts WHERE tier_level = :tier_level
""")

# ---------------------------------------------------------------------------
# SQL: accounts mutations
# ---------------------------------------------------------------------------

_DEPOSIT_SQL = text(f"""
    UPDATE accounts
    SET balance = balance + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_WITHDRAW_SQL = text(f"""
    UPDATE accounts
    SET balance = balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

# Match / dispatch settlement: debit the order amount, credit amount+commission.
_SETTLE_SQL = text(f"""
    UPDATE accounts
    SET balance = balance - :amount + :total_return,
        daily_order_count = daily_order_count + 1,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

# Legacy settlement: amount was pre-debited into frozen_balance.
_SETTLE_LEGACY_SQL = text(f"""
    UPDATE accounts
    SET frozen_balance = frozen_balance - :amount,
        balance = balance + :total_return,
        daily_order_count = daily_order_count + 1,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND frozen_balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_REFUND_RESERVE_SQL = text(f"""
    UPDATE accounts
    SET frozen_balance = frozen_balance - :amount,
        balance = balance + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND frozen_balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_RESET_DAILY_COUNT_SQL = text(f"""
    UPDATE accounts
    SET daily_order_count = 0,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_RESET_ALL_DAILY_COUNTS_SQL = text("""
    UPDATE accounts
    SET daily_order_count = 0,
        version = version + 1,
        updated_at = NOW()
    WHERE daily_order_count <> 0
""")

_SET_GRAB_SQL = text(f"""
    UPDATE accounts
    SET grab_enabled = :enabled,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_SET_TIER_SQL = text(f"""
    UPDATE accounts
    SET tier_level = :tier_level,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

# delta may be negative; the guard keeps balance >= 0.
_ADJUST_SQL = text(f"""
    UPDATE accounts
    SET balance = balance + :delta,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND balance + :delta >= 0
    RETURNING {_ACCOUNT_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: ledger
# ---------------------------------------------------------------------------

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description, created_by)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description, :created_by)
    RETURNING id, user_id, entry_type, amount, balance_after,
              reference_type, reference_id, description, created_by, created_at
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, description, created_by, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:entry_type AS VARCHAR) IS NULL OR entry_type = :entry_type)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_account(row: object) -> Account:
    return Account(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        frozen_balance=row.frozen_balance,  # type: ignore[attr-defined]
        tier_level=row.tier_level,  # type: ignore[attr-defined]
        daily_order_count=row.daily_order_count,  # type: ignore[attr-defined]
        grab_enabled=row.grab_enabled,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_by=row.created_by,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class AccountRepository:
    """Concrete repository: all operations atomic at the SQL level."""

    async def _fetch_account(
        self, db: AsyncSession, sql: object, params: dict
    ) -> Account | None:
        result = await db.execute(sql, params)  # type: ignore[arg-type]
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None:
        return await self._fetch_account(db, _GET_ACCOUNT_SQL, {"user_id": user_id})

    async def lock_account(self, db: AsyncSession, user_id: str) -> Account | None:
        """SELECT ... FOR UPDATE: holds the row lock until the caller's transaction ends."""
        return await self._fetch_account(db, _LOCK_ACCOUNT_SQL, {"user_id": user_id})

    async def count_accounts_on_tier(self, db: AsyncSession, tier_level: int) -> int:
        result = await db.execute(_COUNT_ON_TIER_SQL, {"tier_level": tier_level})
        return int(result.scalar_one())

    async def deposit(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> tuple[Account, LedgerEntry]:
        account = await self._fetch_account(
            db, _DEPOSIT_SQL, {"user_id": user_id, "amount": amount}
        )
        if account is None:
            raise InternalError(f"Account not found for user {user_id}")
        entry = await self.append_ledger(
            db,
            user_id=user_id,
            entry_type=LedgerEntryType.DEPOSIT,
            amount=amount,
            balance_after=account.balance,
            reference_type=LedgerReferenceType.DEPOSIT,
            reference_id=None,
            description="Simulated deposit",
            created_by=user_id,
        )
        return account, entry

    async def withdraw(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> tuple[Account, LedgerEntry]:
        account = await self._fetch_account(
            db, _WITHDRAW_SQL, {"user_id": user_id, "amount": amount}
        )
        if account is None:
            current = await self.get_account_by_user_id(db, user_id)
            raise InsufficientBalanceError(amount, current.balance if current else 0)
        entry = await self.append_ledger(
            db,
            user_id=user_id,
            entry_type=LedgerEntryType.WITHDRAW,
            amount=-amount,
            balance_after=account.balance,
            reference_type=LedgerReferenceType.WITHDRAW,
            reference_id=None,
            description="Simulated withdrawal",
            created_by=user_id,
        )
        return account, entry

    async def apply_settlement(
        self, db: AsyncSession, user_id: str, amount: int, total_return: int
    ) -> Account | None:
        """Returns None when balance < amount (nothing changed)."""
        return await self._fetch_account(
            db,
            _SETTLE_SQL,
            {"user_id": user_id, "amount": amount, "total_return": total_return},
        )

    async def apply_legacy_settlement(
        self, db: AsyncSession, user_id: str, amount: int, total_return: int
    ) -> Account | None:
        """Returns None when frozen_balance < amount (nothing changed)."""
        return await self._fetch_account(
            db,
            _SETTLE_LEGACY_SQL,
            {"user_id": user_id, "amount": amount, "total_return": total_return},
        )

    async def refund_reserve(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> Account | None:
        return await self._fetch_account(
            db, _REFUND_RESERVE_SQL, {"user_id": user_id, "amount": amount}
        )

    async def reset_daily_count(self, db: AsyncSession, user_id: str) -> Account | None:
        return await self._fetch_account(db, _RESET_DAILY_COUNT_SQL, {"user_id": user_id})

    async def reset_all_daily_counts(self, db: AsyncSession) -> int:
        result = await db.execute(_RESET_ALL_DAILY_COUNTS_SQL)
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def set_grab_enabled(
        self, db: AsyncSession, user_id: str, enabled: bool
    ) -> Account | None:
        return await self._fetch_account(
            db, _SET_GRAB_SQL, {"user_id": user_id, "enabled": enabled}
        )

    async def set_tier_level(
        self, db: AsyncSession, user_id: str, tier_level: int
    ) -> Account | None:
        return await self._fetch_account(
            db, _SET_TIER_SQL, {"user_id": user_id, "tier_level": tier_level}
        )

    async def adjust_balance(
        self, db: AsyncSession, user_id: str, delta: int
    ) -> Account | None:
        """Returns None when the account is missing or a debit would go negative."""
        return await self._fetch_account(
            db, _ADJUST_SQL, {"user_id": user_id, "delta": delta}
        )

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
    ) -> LedgerEntry:
        result = await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": user_id,
                "entry_type": str(getattr(entry_type, "value", entry_type)),
                "amount": amount,
                "balance_after": balance_after,
                "reference_type": (
                    str(getattr(reference_type, "value", reference_type))
                    if reference_type is not None
                    else None
                ),
                "reference_id": reference_id,
                "description": description,
                "created_by": created_by,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_ledger(row)

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_ledger(row) for row in result.fetchall()]
