"""Auth dependencies for routers.

    @router.post("/tasks/match")
    async def match(user: Annotated[UserModel, Depends(get_current_user)]): ...

    @router.get("/admin/tiers")
    async def tiers(admin: Annotated[UserModel, Depends(require_admin)]): ...

A missing, malformed or expired access token is a plain HTTP 401 with a
WWW-Authenticate header. A valid token for a disabled user, or a non-admin
on an admin route, is an AppError (403) rendered in the envelope.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.database import get_db_session
from src.tm_common.errors import AccountDisabledError, AdminRequiredError, InvalidCredentialsError
from src.tm_gateway.auth.jwt_handler import decode_token
from src.tm_gateway.user.db_models import UserModel

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    try:
        user_id = decode_token(token, expected_type="access").get("sub")
    except InvalidCredentialsError:
        raise _unauthorized() from None
    if not user_id:
        raise _unauthorized()

    user = (
        await db.execute(select(UserModel).where(UserModel.id == user_id))
    ).scalar_one_or_none()
    if user is None:
        raise _unauthorized()
    if not user.is_active:
        raise AccountDisabledError()
    return user


async def require_admin(current_user: UserModel = Depends(get_current_user)) -> UserModel:
    if not current_user.is_admin:
        raise AdminRequiredError()
    return current_user
