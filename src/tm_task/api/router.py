"""tm_task REST API: match -> confirm (or submit), order history.

All endpoints require JWT authentication.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.database import get_db_session
from src.tm_common.enums import OrderStatus
from src.tm_common.errors import LegacyFlowRetiredError
from src.tm_common.response import ApiResponse, success_response
from src.tm_gateway.auth.dependencies import get_current_user
from src.tm_gateway.middleware.request_log import get_request_id
from src.tm_gateway.user.db_models import UserModel
from src.tm_task.application.schemas import ConfirmRequest, SubmitRequest
from src.tm_task.application.service import TaskApplicationService, get_task_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("/match")
async def match(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[TaskApplicationService, Depends(get_task_service)],
    request: Request,
) -> ApiResponse:
    data = await service.match(db, str(current_user.id))
    resp = success_response(data.model_dump(), "Order matched")
    resp.request_id = get_request_id(request)
    return resp


@router.post("/confirm")
async def confirm(
    body: ConfirmRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[TaskApplicationService, Depends(get_task_service)],
    request: Request,
) -> ApiResponse:
    data = await service.confirm(db, str(current_user.id), body.match_token)
    resp = success_response(data.model_dump(), "Order completed")
    resp.request_id = get_request_id(request)
    return resp


@router.post("/submit")
async def submit(
    body: SubmitRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[TaskApplicationService, Depends(get_task_service)],
    request: Request,
) -> ApiResponse:
    data = await service.submit(db, str(current_user.id), body.order_id)
    resp = success_response(data.model_dump(), "Order completed")
    resp.request_id = get_request_id(request)
    return resp


@router.get("/my-orders")
async def my_orders(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[TaskApplicationService, Depends(get_task_service)],
    request: Request,
    status: OrderStatus | None = Query(None, description="Filter by order status"),
    limit: int = Query(50, ge=1, le=100, description="Items per page"),
    cursor: str | None = Query(
        None, pattern=r"^\d{1,19}$", description="Pagination cursor (order ID)"
    ),
) -> ApiResponse:
    data = await service.list_orders(
        db, str(current_user.id), status.value if status else None, cursor, limit
    )
    resp = success_response(data.model_dump())
    resp.request_id = get_request_id(request)
    return resp


@router.post("/start", status_code=410)
async def start(
    current_user: Annotated[UserModel, Depends(get_current_user)],
) -> ApiResponse:
    logger.warning("Retired /tasks/start called by user %s", current_user.id)
    raise LegacyFlowRetiredError()
