"""Pydantic request/response schemas for tm_task API."""

from pydantic import BaseModel, Field

from src.tm_common.money import bps_to_display, cents_to_display
from src.tm_task.domain.models import MatchContext, SettlementResult, TaskOrder

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ConfirmRequest(BaseModel):
    match_token: str = Field(..., min_length=1, max_length=128)


class SubmitRequest(BaseModel):
    order_id: str = Field(..., min_length=1, max_length=64)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class MatchResponse(BaseModel):
    match_token: str
    order_id: str
    amount_cents: int
    amount_display: str
    product_label: str | None
    unit_price_cents: int | None
    quantity: int | None
    commission_cents: int
    commission_display: str
    commission_rate_bps: int
    commission_rate_display: str
    total_return_cents: int
    total_return_display: str
    origin: str

    @classmethod
    def from_context(cls, token: str, ctx: MatchContext) -> "MatchResponse":
        return cls(
            match_token=token,
            order_id=ctx.order_id,
            amount_cents=ctx.amount,
            amount_display=cents_to_display(ctx.amount),
            product_label=ctx.product_label,
            unit_price_cents=ctx.unit_price,
            quantity=ctx.quantity,
            commission_cents=ctx.commission,
            commission_display=cents_to_display(ctx.commission),
            commission_rate_bps=ctx.commission_rate_bps,
            commission_rate_display=bps_to_display(ctx.commission_rate_bps),
            total_return_cents=ctx.total_return,
            total_return_display=cents_to_display(ctx.total_return),
            origin=ctx.origin,
        )


class SettlementResponse(BaseModel):
    order_id: str
    amount_cents: int
    commission_cents: int
    commission_display: str
    total_return_cents: int
    total_return_display: str
    new_daily_count: int
    balance_cents: int
    balance_display: str

    @classmethod
    def from_result(cls, result: SettlementResult) -> "SettlementResponse":
        return cls(
            order_id=result.order_id,
            amount_cents=result.amount,
            commission_cents=result.commission,
            commission_display=cents_to_display(result.commission),
            total_return_cents=result.total_return,
            total_return_display=cents_to_display(result.total_return),
            new_daily_count=result.new_daily_count,
            balance_cents=result.balance,
            balance_display=cents_to_display(result.balance),
        )


class OrderItem(BaseModel):
    order_id: str
    status: str
    origin: str
    amount_cents: int
    amount_display: str
    commission_cents: int
    commission_rate_bps: int
    total_return_cents: int
    product_label: str | None
    product_image_url: str | None
    unit_price_cents: int | None
    quantity: int | None
    created_at: str
    settled_at: str | None

    @classmethod
    def from_order(cls, order: TaskOrder) -> "OrderItem":
        return cls(
            order_id=order.id,
            status=order.status,
            origin=order.origin,
            amount_cents=order.amount,
            amount_display=cents_to_display(order.amount),
            commission_cents=order.commission,
            commission_rate_bps=order.commission_rate_bps,
            total_return_cents=order.total_return,
            product_label=order.product_label,
            product_image_url=order.product_image_url,
            unit_price_cents=order.unit_price,
            quantity=order.quantity,
            created_at=order.created_at.isoformat() if order.created_at else "",
            settled_at=order.settled_at.isoformat() if order.settled_at else None,
        )


class OrderListResponse(BaseModel):
    items: list[OrderItem]
    next_cursor: str | None
    has_more: bool
