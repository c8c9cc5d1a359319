"""Unit tests for OrderMatcher: preconditions, target selection, product binding."""

import random
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from src.tm_account.domain.models import Account
from src.tm_catalog.domain.models import Product
from src.tm_common.errors import (
    AccountNotFoundError,
    GrabDisabledError,
    InsufficientBalanceError,
    PendingOrderExistsError,
    QuotaExceededError,
)
from src.tm_dispatch.domain.models import DispatchOverride
from src.tm_task.cache.match_cache import InMemoryMatchCache
from src.tm_task.domain.models import MatchParams, TaskOrder
from src.tm_task.engine.matcher import OrderMatcher
from src.tm_tier.domain.models import TierTerms

PARAMS = MatchParams(
    min_balance=1000,
    min_line_total=1000,
    max_quantity=1000,
    min_ratio_bps=1000,
    max_ratio_bps=7000,
)


def _make_account(
    balance: int = 100000,
    daily: int = 0,
    grab: bool = True,
    tier: int = 1,
) -> Account:
    return Account(
        id="acc-1",
        user_id="user-1",
        balance=balance,
        frozen_balance=0,
        tier_level=tier,
        daily_order_count=daily,
        grab_enabled=grab,
        version=1,
    )


def _pending_order(order_id: str = "ord-existing") -> TaskOrder:
    return TaskOrder(
        id=order_id,
        user_id="user-1",
        amount=40000,
        commission=200,
        commission_rate_bps=50,
        status="PENDING",
        origin="MATCH",
    )


def _fixed_rng(value: int) -> MagicMock:
    rng = MagicMock(spec=random.Random)
    rng.randint.return_value = value
    return rng


class _Harness:
    def __init__(self, account: Account | None, rng: random.Random | None = None) -> None:
        self.cache = InMemoryMatchCache(300)
        self.db = AsyncMock()
        self.account_repo = AsyncMock()
        self.account_repo.lock_account.return_value = account
        self.order_repo = AsyncMock()
        self.order_repo.find_pending_for_user.return_value = None
        self.dispatch_repo = AsyncMock()
        self.dispatch_repo.find_pending.return_value = None
        self.product_repo = AsyncMock()
        self.product_repo.pick_random.return_value = None
        self.params_repo = AsyncMock()
        self.params_repo.load.return_value = PARAMS
        self.tier_resolver = AsyncMock()
        self.tier_resolver.resolve.return_value = TierTerms(commission_rate_bps=50, daily_quota=40)
        self.matcher = OrderMatcher(
            self.cache,
            account_repo=self.account_repo,
            order_repo=self.order_repo,
            dispatch_repo=self.dispatch_repo,
            product_repo=self.product_repo,
            params_repo=self.params_repo,
            tier_resolver=self.tier_resolver,
            rng=rng or _fixed_rng(4000),
        )


class TestMatchSuccess:
    async def test_ratio_target_and_commission(self) -> None:
        h = _Harness(_make_account(balance=100000))

        result = await h.matcher.match(h.db, "user-1")

        ctx = result.context
        assert result.token.startswith("mt_")
        assert ctx.amount == 40000
        assert ctx.commission == 200
        assert ctx.total_return == 40200
        assert ctx.commission_rate_bps == 50
        assert ctx.origin == "MATCH"
        assert ctx.dispatch_override_id is None
        h.db.commit.assert_awaited_once()

    async def test_inserts_one_pending_order(self) -> None:
        h = _Harness(_make_account())

        result = await h.matcher.match(h.db, "user-1")

        h.order_repo.create.assert_awaited_once()
        order = h.order_repo.create.call_args.args[1]
        assert order.status == "PENDING"
        assert order.id == result.context.order_id
        assert order.amount == 40000

    async def test_token_cached(self) -> None:
        h = _Harness(_make_account())

        result = await h.matcher.match(h.db, "user-1")

        assert await h.cache.get(result.token) == result.context

    async def test_no_funds_move(self) -> None:
        h = _Harness(_make_account())

        await h.matcher.match(h.db, "user-1")

        h.account_repo.apply_settlement.assert_not_awaited()
        h.account_repo.append_ledger.assert_not_awaited()

    async def test_tier_resolved_for_account_level(self) -> None:
        h = _Harness(_make_account(tier=3))
        h.tier_resolver.resolve.return_value = TierTerms(commission_rate_bps=100, daily_quota=50)

        result = await h.matcher.match(h.db, "user-1")

        h.tier_resolver.resolve.assert_awaited_once_with(h.db, 3)
        assert result.context.commission == 400


class TestMatchPreconditions:
    async def test_pending_order_rejected(self) -> None:
        h = _Harness(_make_account())
        h.order_repo.find_pending_for_user.return_value = _pending_order()

        with pytest.raises(PendingOrderExistsError) as exc_info:
            await h.matcher.match(h.db, "user-1")

        assert exc_info.value.details["order_id"] == "ord-existing"
        h.order_repo.create.assert_not_awaited()
        h.db.rollback.assert_awaited_once()

    async def test_pending_checked_before_everything_else(self) -> None:
        h = _Harness(_make_account(balance=0, daily=40, grab=False))
        h.order_repo.find_pending_for_user.return_value = _pending_order()

        with pytest.raises(PendingOrderExistsError):
            await h.matcher.match(h.db, "user-1")

    async def test_account_not_found(self) -> None:
        h = _Harness(None)

        with pytest.raises(AccountNotFoundError):
            await h.matcher.match(h.db, "user-1")

    async def test_grab_disabled(self) -> None:
        h = _Harness(_make_account(grab=False))

        with pytest.raises(GrabDisabledError):
            await h.matcher.match(h.db, "user-1")

    async def test_grab_checked_before_balance(self) -> None:
        h = _Harness(_make_account(balance=0, grab=False))

        with pytest.raises(GrabDisabledError):
            await h.matcher.match(h.db, "user-1")

    async def test_balance_below_floor(self) -> None:
        h = _Harness(_make_account(balance=999))

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await h.matcher.match(h.db, "user-1")

        assert exc_info.value.details == {"required_cents": 1000, "available_cents": 999}

    async def test_balance_checked_before_quota(self) -> None:
        h = _Harness(_make_account(balance=0, daily=40))

        with pytest.raises(InsufficientBalanceError):
            await h.matcher.match(h.db, "user-1")

    async def test_quota_reached(self) -> None:
        h = _Harness(_make_account(daily=40))

        with pytest.raises(QuotaExceededError):
            await h.matcher.match(h.db, "user-1")

        assert len(h.cache) == 0
        h.order_repo.create.assert_not_awaited()

    async def test_one_below_quota_allowed(self) -> None:
        h = _Harness(_make_account(daily=39))

        result = await h.matcher.match(h.db, "user-1")

        assert result.context.amount == 40000


class TestDispatchOverride:
    def _override(self, low: int = 20000, high: int = 30000) -> DispatchOverride:
        return DispatchOverride(
            id=9,
            user_id="user-1",
            position=3,
            min_amount=low,
            max_amount=high,
            status="PENDING",
        )

    async def test_override_for_next_position(self) -> None:
        h = _Harness(_make_account(daily=2), rng=random.Random(3))
        h.dispatch_repo.find_pending.return_value = self._override()

        result = await h.matcher.match(h.db, "user-1")

        h.dispatch_repo.find_pending.assert_awaited_once_with(h.db, "user-1", 3)
        ctx = result.context
        assert 20000 <= ctx.amount <= 30000
        assert ctx.amount % 100 == 0
        assert ctx.origin == "DISPATCH"
        assert ctx.dispatch_override_id == 9

    async def test_override_not_consumed_at_match(self) -> None:
        h = _Harness(_make_account(daily=2), rng=random.Random(3))
        h.dispatch_repo.find_pending.return_value = self._override()

        await h.matcher.match(h.db, "user-1")

        h.dispatch_repo.mark_used.assert_not_awaited()

    async def test_override_may_exceed_balance(self) -> None:
        h = _Harness(_make_account(balance=5000, daily=2), rng=random.Random(3))
        h.dispatch_repo.find_pending.return_value = self._override(50000, 50000)

        result = await h.matcher.match(h.db, "user-1")

        assert result.context.amount == 50000
        assert result.context.commission == 250


class TestProductBinding:
    async def test_quantity_sized_toward_target(self) -> None:
        # 14250 * 40% = 5700 -> 5 x 12.00 = 60.00
        h = _Harness(_make_account(balance=14250))
        h.product_repo.pick_random.return_value = Product(
            id=7, title="Desk Lamp", image_url=None, price=1200
        )

        result = await h.matcher.match(h.db, "user-1")

        ctx = result.context
        assert ctx.amount == 6000
        assert ctx.quantity == 5
        assert ctx.unit_price == 1200
        assert ctx.product_label == "Desk Lamp x 5"
        assert ctx.commission == 30
        h.product_repo.pick_random.assert_awaited_once_with(
            h.db, max_price=14250, tier_level=1
        )

    async def test_order_row_carries_product(self) -> None:
        h = _Harness(_make_account(balance=14250))
        h.product_repo.pick_random.return_value = Product(
            id=7, title="Desk Lamp", image_url="https://img/1.png", price=1200
        )

        await h.matcher.match(h.db, "user-1")

        order = h.order_repo.create.call_args.args[1]
        assert order.product_id == 7
        assert order.product_image_url == "https://img/1.png"
        assert order.quantity == 5


class TestConcurrentMatch:
    async def test_unique_index_violation_reports_existing_order(self) -> None:
        h = _Harness(_make_account())
        h.order_repo.create.side_effect = IntegrityError("INSERT", {}, Exception("dup"))
        h.order_repo.find_pending_for_user.side_effect = [None, _pending_order("ord-winner")]

        with pytest.raises(PendingOrderExistsError) as exc_info:
            await h.matcher.match(h.db, "user-1")

        assert exc_info.value.details["order_id"] == "ord-winner"
        h.db.rollback.assert_awaited_once()
        assert len(h.cache) == 0

    async def test_other_integrity_errors_propagate(self) -> None:
        h = _Harness(_make_account())
        h.order_repo.create.side_effect = IntegrityError("INSERT", {}, Exception("fk"))

        with pytest.raises(IntegrityError):
            await h.matcher.match(h.db, "user-1")
