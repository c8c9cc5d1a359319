"""Auth API: register, login, refresh. No endpoint here requires a token."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tm_common.database import get_db_session, unit_of_work
from src.tm_common.response import ApiResponse, success_response
from src.tm_gateway.middleware.request_log import get_request_id
from src.tm_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)
from src.tm_gateway.user.service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()

_ACCESS_TTL_SECONDS = settings.JWT_EXPIRE_MINUTES * 60

Db = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
async def register(body: RegisterRequest, db: Db, request: Request) -> ApiResponse:
    """Create a USER and its zero-balance account in one transaction."""
    async with unit_of_work(db):
        user = await _service.register(body.username, body.email, body.password, db)

    data = RegisterResponse(
        user_id=str(user.id),
        username=user.username,
        email=user.email,
        role=user.role,
        created_at=user.created_at.isoformat(),
    )
    resp = success_response(data.model_dump(), "User registered successfully")
    resp.request_id = get_request_id(request)
    return resp


@router.post("/login", response_model=ApiResponse)
async def login(body: LoginRequest, db: Db, request: Request) -> ApiResponse:
    user, access_token, refresh_token = await _service.login(body.username, body.password, db)
    logger.info("Login user=%s role=%s", user.id, user.role)

    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=_ACCESS_TTL_SECONDS,
        user=UserInfo(
            user_id=str(user.id),
            username=user.username,
            email=user.email,
            role=user.role,
        ),
    )
    resp = success_response(data.model_dump(), "Login successful")
    resp.request_id = get_request_id(request)
    return resp


@router.post("/refresh", response_model=ApiResponse)
async def refresh_token(body: RefreshRequest, request: Request) -> ApiResponse:
    access_token = await _service.refresh(body.refresh_token)
    data = RefreshResponse(access_token=access_token, expires_in=_ACCESS_TTL_SECONDS)
    resp = success_response(data.model_dump(), "Token refreshed")
    resp.request_id = get_request_id(request)
    return resp
