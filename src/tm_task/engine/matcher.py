"""OrderMatcher: builds a provisional order without moving funds.

match() runs in one transaction:
  1. lock the account row (FOR UPDATE) so concurrent matches serialize
  2. preconditions, first failure wins:
       pending order -> account exists -> grab enabled
       -> balance floor -> daily quota
  3. target amount: dispatch override for the next position, else a
     random share of the balance
  4. optional product binding (quantity sized toward the target)
  5. insert one PENDING order and commit
Then a match token is issued and the context cached. The account row is
never written here.
"""

import logging
import random

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_account.domain.repository import AccountRepositoryProtocol
from src.tm_account.infrastructure.persistence import AccountRepository
from src.tm_catalog.domain.repository import ProductRepositoryProtocol
from src.tm_catalog.infrastructure.persistence import ProductRepository
from src.tm_common.database import unit_of_work
from src.tm_common.datetime_utils import utc_timestamp
from src.tm_common.enums import OrderOrigin, OrderStatus
from src.tm_common.errors import (
    AccountNotFoundError,
    GrabDisabledError,
    InsufficientBalanceError,
    PendingOrderExistsError,
    QuotaExceededError,
)
from src.tm_common.id_generator import generate_id, generate_match_token
from src.tm_common.money import calculate_commission
from src.tm_dispatch.domain.repository import DispatchRepositoryProtocol
from src.tm_dispatch.infrastructure.persistence import DispatchRepository
from src.tm_task.cache.match_cache import MatchCache
from src.tm_task.domain.models import MatchContext, MatchResult, ProductLine, TaskOrder
from src.tm_task.domain.pricing import build_line, draw_dispatch_amount, draw_target_amount
from src.tm_task.domain.repository import (
    MatchParamsRepositoryProtocol,
    TaskOrderRepositoryProtocol,
)
from src.tm_task.infrastructure.match_params import MatchParamsRepository
from src.tm_task.infrastructure.persistence import TaskOrderRepository
from src.tm_tier.domain.resolver import TierResolver

logger = logging.getLogger(__name__)


class OrderMatcher:
    def __init__(
        self,
        cache: MatchCache,
        account_repo: AccountRepositoryProtocol | None = None,
        order_repo: TaskOrderRepositoryProtocol | None = None,
        dispatch_repo: DispatchRepositoryProtocol | None = None,
        product_repo: ProductRepositoryProtocol | None = None,
        params_repo: MatchParamsRepositoryProtocol | None = None,
        tier_resolver: TierResolver | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._cache = cache
        self._account_repo: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._order_repo: TaskOrderRepositoryProtocol = order_repo or TaskOrderRepository()
        self._dispatch_repo: DispatchRepositoryProtocol = dispatch_repo or DispatchRepository()
        self._product_repo: ProductRepositoryProtocol = product_repo or ProductRepository()
        self._params_repo: MatchParamsRepositoryProtocol = params_repo or MatchParamsRepository()
        self._tier_resolver = tier_resolver or TierResolver()
        self._rng = rng or random.SystemRandom()

    async def match(self, db: AsyncSession, user_id: str) -> MatchResult:
        try:
            async with unit_of_work(db):
                order = await self._build_order(db, user_id)
        except IntegrityError:
            # Lost the race on the one-pending-order index
            existing = await self._order_repo.find_pending_for_user(db, user_id)
            if existing is None:
                raise
            raise PendingOrderExistsError(existing.id) from None

        ctx = MatchContext(
            user_id=user_id,
            order_id=order.id,
            amount=order.amount,
            commission=order.commission,
            commission_rate_bps=order.commission_rate_bps,
            total_return=order.total_return,
            origin=order.origin,
            issued_at=utc_timestamp(),
            dispatch_override_id=order.dispatch_override_id,
            product_label=order.product_label,
            unit_price=order.unit_price,
            quantity=order.quantity,
        )
        token = generate_match_token()
        await self._cache.put(token, ctx)
        logger.info(
            "Order matched user=%s order=%s amount=%d commission=%d origin=%s",
            user_id, order.id, order.amount, order.commission, order.origin,
        )
        return MatchResult(token=token, context=ctx)

    async def _build_order(self, db: AsyncSession, user_id: str) -> TaskOrder:
        account = await self._account_repo.lock_account(db, user_id)

        pending = await self._order_repo.find_pending_for_user(db, user_id)
        if pending is not None:
            logger.info("Match rejected user=%s: pending order %s", user_id, pending.id)
            raise PendingOrderExistsError(pending.id)
        if account is None:
            raise AccountNotFoundError(user_id)
        if not account.grab_enabled:
            logger.info("Match rejected user=%s: grab disabled", user_id)
            raise GrabDisabledError()

        params = await self._params_repo.load(db)
        if account.balance < params.min_balance:
            raise InsufficientBalanceError(params.min_balance, account.balance)

        terms = await self._tier_resolver.resolve(db, account.tier_level)
        if account.daily_order_count >= terms.daily_quota:
            logger.info(
                "Match rejected user=%s: quota %d reached", user_id, terms.daily_quota
            )
            raise QuotaExceededError(terms.daily_quota)

        override = await self._dispatch_repo.find_pending(
            db, user_id, account.next_order_position
        )
        if override is not None:
            target = draw_dispatch_amount(
                override.min_amount, override.max_amount, params, self._rng
            )
            origin = OrderOrigin.DISPATCH
        else:
            target = draw_target_amount(account.balance, params, self._rng)
            origin = OrderOrigin.MATCH

        product = await self._product_repo.pick_random(
            db,
            max_price=account.balance if account.balance > 0 else None,
            tier_level=account.tier_level,
        )
        line = build_line(target, product, params)
        commission = calculate_commission(line.amount, terms.commission_rate_bps)

        order = TaskOrder(
            id=generate_id(),
            user_id=user_id,
            amount=line.amount,
            commission=commission,
            commission_rate_bps=terms.commission_rate_bps,
            status=OrderStatus.PENDING.value,
            origin=origin.value,
            dispatch_override_id=override.id if override is not None else None,
        )
        if isinstance(line, ProductLine):
            order.product_id = line.product_id
            order.product_title = line.title
            order.product_image_url = line.image_url
            order.unit_price = line.unit_price
            order.quantity = line.quantity

        await self._order_repo.create(db, order)
        return order
