"""Admin application service: tiers, account controls, match parameters.

Every mutating operation runs in its own unit_of_work. Balance changes made
here always leave a ledger entry naming the acting admin.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_account.domain.repository import AccountRepositoryProtocol
from src.tm_account.infrastructure.persistence import AccountRepository
from src.tm_common.database import unit_of_work
from src.tm_common.enums import (
    AdjustDirection,
    LedgerEntryType,
    LedgerReferenceType,
    OrderOrigin,
)
from src.tm_common.errors import (
    AccountNotFoundError,
    InsufficientBalanceError,
    InternalError,
    InvalidParameterError,
    TierInUseError,
    TierNotFoundError,
)
from src.tm_task.domain.models import MatchParams
from src.tm_task.domain.repository import (
    MatchParamsRepositoryProtocol,
    TaskOrderRepositoryProtocol,
)
from src.tm_task.infrastructure.match_params import MatchParamsRepository
from src.tm_task.infrastructure.persistence import TaskOrderRepository
from src.tm_tier.domain.models import TierDefinition
from src.tm_tier.domain.repository import TierRepositoryProtocol
from src.tm_tier.domain.resolver import qualifying_level
from src.tm_tier.infrastructure.persistence import TierRepository

logger = logging.getLogger(__name__)

RESERVE_REFUND_REASON = "Reserve refunded on progress reset"


class AdminService:
    def __init__(
        self,
        account_repo: AccountRepositoryProtocol | None = None,
        order_repo: TaskOrderRepositoryProtocol | None = None,
        tier_repo: TierRepositoryProtocol | None = None,
        params_repo: MatchParamsRepositoryProtocol | None = None,
    ) -> None:
        self._account_repo: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._order_repo: TaskOrderRepositoryProtocol = order_repo or TaskOrderRepository()
        self._tier_repo: TierRepositoryProtocol = tier_repo or TierRepository()
        self._params_repo: MatchParamsRepositoryProtocol = params_repo or MatchParamsRepository()

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    async def list_tiers(self, db: AsyncSession) -> list[TierDefinition]:
        return await self._tier_repo.list_all(db)

    async def upsert_tier(self, db: AsyncSession, tier: TierDefinition) -> TierDefinition:
        async with unit_of_work(db):
            saved = await self._tier_repo.upsert(db, tier)
        logger.info(
            "Tier %d saved: rate=%dbps quota=%d", saved.level, saved.commission_rate_bps,
            saved.daily_quota,
        )
        return saved

    async def delete_tier(self, db: AsyncSession, level: int) -> None:
        async with unit_of_work(db):
            in_use = await self._account_repo.count_accounts_on_tier(db, level)
            if in_use > 0:
                raise TierInUseError(level, in_use)
            if not await self._tier_repo.delete(db, level):
                raise TierNotFoundError(level)
        logger.info("Tier %d deleted", level)

    # ------------------------------------------------------------------
    # Account controls
    # ------------------------------------------------------------------

    async def reset_progress(
        self, db: AsyncSession, user_id: str, actor_id: str
    ) -> dict[str, Any]:
        """Cancel every pending order and zero the daily counter.

        Only LEGACY orders held a reserve, so only they are refunded.
        """
        async with unit_of_work(db):
            account = await self._account_repo.lock_account(db, user_id)
            if account is None:
                raise AccountNotFoundError(user_id)

            cancelled = await self._order_repo.cancel_pending_for_user(db, user_id)
            refunded = 0
            for order in cancelled:
                if order.origin != OrderOrigin.LEGACY.value:
                    continue
                updated = await self._account_repo.refund_reserve(db, user_id, order.amount)
                if updated is None:
                    raise InternalError(
                        f"Reserve for order {order.id} exceeds frozen balance of {user_id}"
                    )
                await self._account_repo.append_ledger(
                    db,
                    user_id=user_id,
                    entry_type=LedgerEntryType.RESERVE_REFUND,
                    amount=order.amount,
                    balance_after=updated.balance,
                    reference_type=LedgerReferenceType.ORDER,
                    reference_id=order.id,
                    description=RESERVE_REFUND_REASON,
                    created_by=actor_id,
                )
                refunded += order.amount

            await self._account_repo.reset_daily_count(db, user_id)

        logger.info(
            "Progress reset user=%s by=%s cancelled=%d refunded=%d previous_count=%d",
            user_id, actor_id, len(cancelled), refunded, account.daily_order_count,
        )
        return {
            "user_id": user_id,
            "cancelled_orders": len(cancelled),
            "refunded_cents": refunded,
            "previous_daily_count": account.daily_order_count,
            "daily_order_count": 0,
        }

    async def toggle_grab(self, db: AsyncSession, user_id: str) -> dict[str, Any]:
        async with unit_of_work(db):
            account = await self._account_repo.lock_account(db, user_id)
            if account is None:
                raise AccountNotFoundError(user_id)
            updated = await self._account_repo.set_grab_enabled(
                db, user_id, not account.grab_enabled
            )
            if updated is None:
                raise AccountNotFoundError(user_id)
        logger.info("Grab %s for user=%s", "enabled" if updated.grab_enabled else "disabled", user_id)
        return {"user_id": user_id, "grab_enabled": updated.grab_enabled}

    async def set_tier(
        self, db: AsyncSession, user_id: str, level: int | None, auto: bool
    ) -> dict[str, Any]:
        """Assign an explicit tier level, or the highest one the balance qualifies for."""
        async with unit_of_work(db):
            account = await self._account_repo.lock_account(db, user_id)
            if account is None:
                raise AccountNotFoundError(user_id)

            if auto:
                target = qualifying_level(await self._tier_repo.list_all(db), account.balance)
                if target is None:
                    raise InvalidParameterError("No tier qualifies for the current balance")
            else:
                if level is None:
                    raise InvalidParameterError("level is required unless auto is set")
                if await self._tier_repo.get_by_level(db, level) is None:
                    raise TierNotFoundError(level)
                target = level

            await self._account_repo.set_tier_level(db, user_id, target)

        logger.info("Tier set user=%s %d -> %d (auto=%s)", user_id, account.tier_level, target, auto)
        return {"user_id": user_id, "previous_tier_level": account.tier_level, "tier_level": target}

    async def adjust_balance(
        self,
        db: AsyncSession,
        user_id: str,
        direction: AdjustDirection,
        amount: int,
        reason: str,
        actor_id: str,
    ) -> dict[str, Any]:
        if amount <= 0:
            raise InvalidParameterError("amount must be > 0")
        credit = direction == AdjustDirection.CREDIT
        delta = amount if credit else -amount

        async with unit_of_work(db):
            account = await self._account_repo.lock_account(db, user_id)
            if account is None:
                raise AccountNotFoundError(user_id)
            updated = await self._account_repo.adjust_balance(db, user_id, delta)
            if updated is None:
                raise InsufficientBalanceError(amount, account.balance)
            entry = await self._account_repo.append_ledger(
                db,
                user_id=user_id,
                entry_type=LedgerEntryType.ADMIN_CREDIT if credit else LedgerEntryType.ADMIN_DEBIT,
                amount=delta,
                balance_after=updated.balance,
                reference_type=LedgerReferenceType.ADMIN,
                reference_id=actor_id,
                description=reason,
                created_by=actor_id,
            )

        logger.info(
            "Balance adjusted user=%s by=%s delta=%d balance=%d reason=%r",
            user_id, actor_id, delta, updated.balance, reason,
        )
        return {
            "user_id": user_id,
            "direction": direction.value,
            "amount_cents": amount,
            "balance_cents": updated.balance,
            "ledger_entry_id": entry.id,
        }

    async def reset_daily_counters(self, db: AsyncSession) -> dict[str, Any]:
        async with unit_of_work(db):
            count = await self._account_repo.reset_all_daily_counts(db)
        logger.info("Daily counters reset on %d account(s)", count)
        return {"accounts_reset": count}

    # ------------------------------------------------------------------
    # Match parameters
    # ------------------------------------------------------------------

    async def get_match_params(self, db: AsyncSession) -> MatchParams:
        return await self._params_repo.load(db)

    async def update_match_params(self, db: AsyncSession, params: MatchParams) -> MatchParams:
        if params.min_ratio_bps > params.max_ratio_bps:
            raise InvalidParameterError("min_ratio_bps must be <= max_ratio_bps")
        if params.max_quantity < 1 or params.min_line_total < 1:
            raise InvalidParameterError("max_quantity and min_line_total must be >= 1")
        async with unit_of_work(db):
            saved = await self._params_repo.save(db, params)
        logger.info("Match params updated: %s", saved)
        return saved
