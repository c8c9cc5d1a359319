"""Admin REST API. Every endpoint requires the ADMIN role."""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_admin.application.schemas import (
    AdjustBalanceRequest,
    DispatchUpsertRequest,
    MatchParamsRequest,
    ProductCreateRequest,
    SetTierRequest,
    TierUpsertRequest,
    dispatch_to_dict,
    product_to_dict,
    tier_to_dict,
)
from src.tm_admin.application.service import AdminService
from src.tm_catalog.application.service import ProductCatalogService
from src.tm_common.database import get_db_session
from src.tm_common.response import ApiResponse, success_response
from src.tm_dispatch.application.service import DispatchOverrideService
from src.tm_gateway.auth.dependencies import require_admin
from src.tm_gateway.middleware.request_log import get_request_id
from src.tm_gateway.user.db_models import UserModel
from src.tm_task.domain.models import MatchParams
from src.tm_tier.domain.models import TierDefinition

router = APIRouter(prefix="/admin", tags=["admin"])

_service = AdminService()
_dispatch = DispatchOverrideService()
_catalog = ProductCatalogService()

AdminUser = Annotated[UserModel, Depends(require_admin)]
Db = Annotated[AsyncSession, Depends(get_db_session)]


def _ok(request: Request, data: object = None, message: str = "success") -> ApiResponse:
    resp = success_response(data, message)
    resp.request_id = get_request_id(request)
    return resp


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------


@router.get("/tiers")
async def list_tiers(admin: AdminUser, db: Db, request: Request) -> ApiResponse:
    tiers = await _service.list_tiers(db)
    return _ok(request, [tier_to_dict(t) for t in tiers])


@router.put("/tiers")
async def upsert_tier(
    body: TierUpsertRequest, admin: AdminUser, db: Db, request: Request
) -> ApiResponse:
    tier = await _service.upsert_tier(
        db,
        TierDefinition(
            level=body.level,
            name=body.name,
            commission_rate_bps=body.commission_rate_bps,
            daily_quota=body.daily_quota,
            min_balance=body.min_balance_cents,
        ),
    )
    return _ok(request, tier_to_dict(tier), "Tier saved")


@router.delete("/tiers/{level}")
async def delete_tier(level: int, admin: AdminUser, db: Db, request: Request) -> ApiResponse:
    await _service.delete_tier(db, level)
    return _ok(request, {"level": level}, "Tier deleted")


# ---------------------------------------------------------------------------
# Dispatch overrides
# ---------------------------------------------------------------------------


@router.get("/accounts/{user_id}/dispatch-overrides")
async def list_dispatch_overrides(
    user_id: str, admin: AdminUser, db: Db, request: Request
) -> ApiResponse:
    overrides = await _dispatch.list_for_user(db, user_id)
    return _ok(request, [dispatch_to_dict(o) for o in overrides])


@router.put("/accounts/{user_id}/dispatch-overrides")
async def upsert_dispatch_override(
    user_id: str,
    body: DispatchUpsertRequest,
    admin: AdminUser,
    db: Db,
    request: Request,
) -> ApiResponse:
    override = await _dispatch.upsert(
        db, user_id, body.position, body.min_amount_cents, body.max_amount_cents
    )
    return _ok(request, dispatch_to_dict(override), "Dispatch override saved")


@router.delete("/dispatch-overrides/{override_id}")
async def delete_dispatch_override(
    override_id: int, admin: AdminUser, db: Db, request: Request
) -> ApiResponse:
    await _dispatch.delete(db, override_id)
    return _ok(request, {"id": override_id}, "Dispatch override deleted")


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


@router.get("/products")
async def list_products(
    admin: AdminUser,
    db: Db,
    request: Request,
    cursor: int | None = Query(None, description="Pagination cursor (product ID)"),
    limit: int = Query(50, ge=1, le=100),
) -> ApiResponse:
    products, has_more = await _catalog.list_products(db, cursor, limit)
    return _ok(
        request,
        {
            "items": [product_to_dict(p) for p in products],
            "next_cursor": products[-1].id if has_more and products else None,
            "has_more": has_more,
        },
    )


@router.post("/products", status_code=201)
async def create_product(
    body: ProductCreateRequest, admin: AdminUser, db: Db, request: Request
) -> ApiResponse:
    product = await _catalog.create(
        db, body.title, body.image_url, body.price_cents, body.tier_level
    )
    return _ok(request, product_to_dict(product), "Product created")


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: int, admin: AdminUser, db: Db, request: Request
) -> ApiResponse:
    await _catalog.delete(db, product_id)
    return _ok(request, {"id": product_id}, "Product deleted")


# ---------------------------------------------------------------------------
# Account controls
# ---------------------------------------------------------------------------


@router.post("/accounts/reset-daily-counters")
async def reset_daily_counters(admin: AdminUser, db: Db, request: Request) -> ApiResponse:
    return _ok(request, await _service.reset_daily_counters(db), "Daily counters reset")


@router.post("/accounts/{user_id}/reset-progress")
async def reset_progress(user_id: str, admin: AdminUser, db: Db, request: Request) -> ApiResponse:
    data = await _service.reset_progress(db, user_id, actor_id=str(admin.id))
    return _ok(request, data, "Progress reset")


@router.post("/accounts/{user_id}/toggle-grab")
async def toggle_grab(user_id: str, admin: AdminUser, db: Db, request: Request) -> ApiResponse:
    return _ok(request, await _service.toggle_grab(db, user_id))


@router.put("/accounts/{user_id}/tier")
async def set_tier(
    user_id: str, body: SetTierRequest, admin: AdminUser, db: Db, request: Request
) -> ApiResponse:
    data = await _service.set_tier(db, user_id, body.level, body.auto)
    return _ok(request, data, "Tier updated")


@router.post("/adjust-balance")
async def adjust_balance(
    body: AdjustBalanceRequest, admin: AdminUser, db: Db, request: Request
) -> ApiResponse:
    data = await _service.adjust_balance(
        db,
        body.user_id,
        body.direction,
        body.amount_cents,
        body.reason,
        actor_id=str(admin.id),
    )
    return _ok(request, data, "Balance adjusted")


# ---------------------------------------------------------------------------
# Match parameters
# ---------------------------------------------------------------------------


def _params_to_dict(params: MatchParams) -> dict[str, int]:
    data = asdict(params)
    return {
        "min_balance_cents": data["min_balance"],
        "min_line_total_cents": data["min_line_total"],
        "max_quantity": data["max_quantity"],
        "min_ratio_bps": data["min_ratio_bps"],
        "max_ratio_bps": data["max_ratio_bps"],
    }


@router.get("/system-params")
async def get_system_params(admin: AdminUser, db: Db, request: Request) -> ApiResponse:
    return _ok(request, _params_to_dict(await _service.get_match_params(db)))


@router.put("/system-params")
async def update_system_params(
    body: MatchParamsRequest, admin: AdminUser, db: Db, request: Request
) -> ApiResponse:
    saved = await _service.update_match_params(
        db,
        MatchParams(
            min_balance=body.min_balance_cents,
            min_line_total=body.min_line_total_cents,
            max_quantity=body.max_quantity,
            min_ratio_bps=body.min_ratio_bps,
            max_ratio_bps=body.max_ratio_bps,
        ),
    )
    return _ok(request, _params_to_dict(saved), "System params updated")
