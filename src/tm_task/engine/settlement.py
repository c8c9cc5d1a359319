"""SettlementEngine: the single place where a task order moves money.

confirm (by match token) and submit (by order id) both end in settle().
settle() is one transaction:
  1. lock account row (FOR UPDATE)          missing    -> USER_NOT_FOUND
  2. lock order row (FOR UPDATE)            missing    -> ORDER_NOT_FOUND
                                            not PENDING -> ALREADY_PROCESSED
  3. re-check funds                         short      -> INSUFFICIENT_BALANCE
  4. PENDING -> COMPLETED compare-and-swap  0 rows     -> ALREADY_PROCESSED
  5. account: debit amount, credit amount + commission, daily count + 1
  6. dispatch override -> USED (if any)
  7. ledger entries
Any failure rolls the whole transaction back.

LEGACY-origin orders were pre-debited into frozen_balance by the retired
flow, so they release the reserve instead of debiting balance.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_account.domain.models import Account
from src.tm_account.domain.repository import AccountRepositoryProtocol
from src.tm_account.infrastructure.persistence import AccountRepository
from src.tm_common.database import unit_of_work
from src.tm_common.enums import (
    LedgerEntryType,
    LedgerReferenceType,
    OrderOrigin,
    OrderStatus,
)
from src.tm_common.errors import (
    InsufficientBalanceError,
    InvalidMatchTokenError,
    OrderAlreadyProcessedError,
    OrderNotFoundError,
    UserNotFoundError,
)
from src.tm_dispatch.domain.repository import DispatchRepositoryProtocol
from src.tm_dispatch.infrastructure.persistence import DispatchRepository
from src.tm_task.cache.match_cache import MatchCache
from src.tm_task.domain.models import SettlementResult, TaskOrder
from src.tm_task.domain.repository import TaskOrderRepositoryProtocol
from src.tm_task.infrastructure.persistence import TaskOrderRepository

logger = logging.getLogger(__name__)

COMMISSION_REASON = "Task commission"
RESERVE_RELEASE_REASON = "Reserve released on settlement"


class SettlementEngine:
    def __init__(
        self,
        cache: MatchCache,
        account_repo: AccountRepositoryProtocol | None = None,
        order_repo: TaskOrderRepositoryProtocol | None = None,
        dispatch_repo: DispatchRepositoryProtocol | None = None,
    ) -> None:
        self._cache = cache
        self._account_repo: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._order_repo: TaskOrderRepositoryProtocol = order_repo or TaskOrderRepository()
        self._dispatch_repo: DispatchRepositoryProtocol = dispatch_repo or DispatchRepository()

    async def confirm(self, db: AsyncSession, user_id: str, token: str) -> SettlementResult:
        """Consume a match token and settle its order.

        A token owned by another user is rejected without being consumed.
        If settlement fails for lack of funds the token is put back with its
        original issue time, so the user can top up and retry within the TTL.
        """
        ctx = await self._cache.get(token)
        if ctx is None or ctx.user_id != user_id:
            raise InvalidMatchTokenError()
        if not await self._cache.delete(token):
            # Another request consumed it between get and delete
            raise InvalidMatchTokenError()

        try:
            return await self.settle(db, user_id, ctx.order_id)
        except InsufficientBalanceError:
            await self._cache.put(token, ctx)
            raise

    async def submit(self, db: AsyncSession, user_id: str, order_id: str) -> SettlementResult:
        return await self.settle(db, user_id, order_id)

    async def settle(self, db: AsyncSession, user_id: str, order_id: str) -> SettlementResult:
        async with unit_of_work(db):
            account = await self._account_repo.lock_account(db, user_id)
            if account is None:
                raise UserNotFoundError(user_id)

            order = await self._order_repo.lock_by_id(db, order_id)
            if order is None or order.user_id != user_id:
                raise OrderNotFoundError(order_id)
            if order.status != OrderStatus.PENDING.value:
                raise OrderAlreadyProcessedError(order_id, order.status)

            legacy = order.origin == OrderOrigin.LEGACY.value
            available = account.frozen_balance if legacy else account.balance
            if available < order.amount:
                logger.info(
                    "Settlement rejected order=%s: need %d, have %d",
                    order_id, order.amount, available,
                )
                raise InsufficientBalanceError(order.amount, available)

            if not await self._order_repo.complete_if_pending(db, order_id):
                raise OrderAlreadyProcessedError(order_id, OrderStatus.COMPLETED.value)

            updated = await self._apply_funds(db, order, legacy)

            if order.dispatch_override_id is not None:
                used = await self._dispatch_repo.mark_used(db, order.dispatch_override_id)
                if not used:
                    logger.warning(
                        "Dispatch override %d was not PENDING at settlement of %s",
                        order.dispatch_override_id, order_id,
                    )

            await self._write_ledger(db, order, updated, legacy)

        logger.info(
            "Order settled user=%s order=%s amount=%d commission=%d balance=%d",
            user_id, order_id, order.amount, order.commission, updated.balance,
        )
        return SettlementResult(
            order_id=order_id,
            amount=order.amount,
            commission=order.commission,
            total_return=order.total_return,
            new_daily_count=updated.daily_order_count,
            balance=updated.balance,
        )

    async def _apply_funds(self, db: AsyncSession, order: TaskOrder, legacy: bool) -> Account:
        if legacy:
            updated = await self._account_repo.apply_legacy_settlement(
                db, order.user_id, order.amount, order.total_return
            )
        else:
            updated = await self._account_repo.apply_settlement(
                db, order.user_id, order.amount, order.total_return
            )
        if updated is None:
            # Guard in the UPDATE failed; the row lock makes this unreachable in practice
            raise InsufficientBalanceError(order.amount, 0)
        return updated

    async def _write_ledger(
        self, db: AsyncSession, order: TaskOrder, account: Account, legacy: bool
    ) -> None:
        if legacy:
            await self._account_repo.append_ledger(
                db,
                user_id=order.user_id,
                entry_type=LedgerEntryType.RESERVE_RELEASE,
                amount=order.amount,
                balance_after=account.balance - order.commission,
                reference_type=LedgerReferenceType.ORDER,
                reference_id=order.id,
                description=RESERVE_RELEASE_REASON,
                created_by=order.user_id,
            )
        await self._account_repo.append_ledger(
            db,
            user_id=order.user_id,
            entry_type=LedgerEntryType.TASK_COMMISSION,
            amount=order.commission,
            balance_after=account.balance,
            reference_type=LedgerReferenceType.ORDER,
            reference_id=order.id,
            description=COMMISSION_REASON,
            created_by=order.user_id,
        )
