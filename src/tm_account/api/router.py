"""/account endpoints. All of them act on the caller's own account."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_account.application.schemas import DepositRequest, WithdrawRequest
from src.tm_account.application.service import AccountApplicationService
from src.tm_common.database import get_db_session
from src.tm_common.enums import LedgerEntryType
from src.tm_common.response import ApiResponse, success_response
from src.tm_gateway.auth.dependencies import get_current_user
from src.tm_gateway.middleware.request_log import get_request_id
from src.tm_gateway.user.db_models import UserModel

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService()

CurrentUser = Annotated[UserModel, Depends(get_current_user)]
Db = Annotated[AsyncSession, Depends(get_db_session)]


def _reply(request: Request, data: Any) -> ApiResponse:
    resp = success_response(data.model_dump())
    resp.request_id = get_request_id(request)
    return resp


@router.get("/balance")
async def get_balance(current_user: CurrentUser, db: Db, request: Request) -> ApiResponse:
    return _reply(request, await _service.get_balance(db, str(current_user.id)))


@router.post("/deposit")
async def deposit(
    body: DepositRequest, current_user: CurrentUser, db: Db, request: Request
) -> ApiResponse:
    return _reply(request, await _service.deposit(db, str(current_user.id), body.amount_cents))


@router.post("/withdraw")
async def withdraw(
    body: WithdrawRequest, current_user: CurrentUser, db: Db, request: Request
) -> ApiResponse:
    return _reply(request, await _service.withdraw(db, str(current_user.id), body.amount_cents))


@router.get("/ledger")
async def list_ledger(
    current_user: CurrentUser,
    db: Db,
    request: Request,
    cursor: str | None = Query(None, description="next_cursor from the previous page"),
    limit: int = Query(20, ge=1, le=100),
    entry_type: LedgerEntryType | None = Query(None),
) -> ApiResponse:
    data = await _service.list_ledger(
        db, str(current_user.id), cursor, limit, entry_type.value if entry_type else None
    )
    return _reply(request, data)
