"""Admin request bodies and serializers."""

from dataclasses import asdict
from typing import Any

from pydantic import BaseModel, Field, model_validator

from src.tm_catalog.domain.models import Product
from src.tm_common.enums import AdjustDirection
from src.tm_common.money import bps_to_display, cents_to_display
from src.tm_dispatch.domain.models import DispatchOverride
from src.tm_tier.domain.models import TierDefinition


class TierUpsertRequest(BaseModel):
    level: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=64)
    commission_rate_bps: int = Field(..., ge=0, le=10_000)
    daily_quota: int = Field(..., ge=0)
    min_balance_cents: int = Field(0, ge=0)


class DispatchUpsertRequest(BaseModel):
    position: int = Field(..., ge=1, description="1-based order position in the day")
    min_amount_cents: int = Field(..., ge=0)
    max_amount_cents: int = Field(..., ge=0)

    @model_validator(mode="after")
    def check_range(self) -> "DispatchUpsertRequest":
        if self.min_amount_cents > self.max_amount_cents:
            raise ValueError("min_amount_cents must be <= max_amount_cents")
        return self


class ProductCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    image_url: str | None = Field(None, max_length=500)
    price_cents: int = Field(..., gt=0)
    tier_level: int | None = Field(None, ge=0, description="None or 0 = all tiers")


class SetTierRequest(BaseModel):
    """Either an explicit level or auto=true (qualify from balance)."""

    level: int | None = Field(None, ge=1)
    auto: bool = False

    @model_validator(mode="after")
    def check_one_of(self) -> "SetTierRequest":
        if self.auto == (self.level is not None):
            raise ValueError("Provide exactly one of `level` or `auto=true`")
        return self


class AdjustBalanceRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=64)
    direction: AdjustDirection
    amount_cents: int = Field(..., gt=0)
    reason: str = Field(..., min_length=1, max_length=500)


class MatchParamsRequest(BaseModel):
    min_balance_cents: int = Field(..., ge=0)
    min_line_total_cents: int = Field(..., ge=1)
    max_quantity: int = Field(..., ge=1)
    min_ratio_bps: int = Field(..., ge=0, le=10_000)
    max_ratio_bps: int = Field(..., ge=0, le=10_000)

    @model_validator(mode="after")
    def check_window(self) -> "MatchParamsRequest":
        if self.min_ratio_bps > self.max_ratio_bps:
            raise ValueError("min_ratio_bps must be <= max_ratio_bps")
        return self


def tier_to_dict(tier: TierDefinition) -> dict[str, Any]:
    return {
        "level": tier.level,
        "name": tier.name,
        "commission_rate_bps": tier.commission_rate_bps,
        "commission_rate_display": bps_to_display(tier.commission_rate_bps),
        "daily_quota": tier.daily_quota,
        "min_balance_cents": tier.min_balance,
        "min_balance_display": cents_to_display(tier.min_balance),
    }


def dispatch_to_dict(override: DispatchOverride) -> dict[str, Any]:
    return {
        "id": override.id,
        "user_id": override.user_id,
        "position": override.position,
        "min_amount_cents": override.min_amount,
        "max_amount_cents": override.max_amount,
        "status": override.status,
        "triggered_at": override.triggered_at.isoformat() if override.triggered_at else None,
        "created_at": override.created_at.isoformat() if override.created_at else None,
    }


def product_to_dict(product: Product) -> dict[str, Any]:
    data = asdict(product)
    data["price_cents"] = data.pop("price")
    data["price_display"] = cents_to_display(product.price)
    data["created_at"] = product.created_at.isoformat() if product.created_at else None
    return data
