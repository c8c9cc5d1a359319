"""Registration, login, token refresh and the startup admin.

Nothing here commits: routers wrap writes in unit_of_work and the lifespan
commits the admin bootstrap itself.
"""

import logging
from typing import Any

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from config.settings import settings
from src.tm_common.enums import UserRole
from src.tm_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    UsernameExistsError,
)
from src.tm_gateway.auth.jwt_handler import (
    REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.tm_gateway.auth.password import hash_password, verify_password
from src.tm_gateway.user.db_models import UserModel

logger = logging.getLogger(__name__)

# Every user owns exactly one account, opened empty on the default tier.
_OPEN_ACCOUNT_SQL = text("""
    INSERT INTO accounts (user_id, balance, frozen_balance, tier_level,
                          daily_order_count, grab_enabled, version)
    VALUES (:user_id, 0, 0, :tier_level, 0, TRUE, 0)
""")


async def _find_user(
    db: AsyncSession, column: InstrumentedAttribute[Any], value: str
) -> UserModel | None:
    return (await db.execute(select(UserModel).where(column == value))).scalar_one_or_none()


class UserService:
    """Holds no state; one instance serves every request."""

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        db: AsyncSession,
        role: UserRole = UserRole.USER,
    ) -> UserModel:
        if await _find_user(db, UserModel.username, username) is not None:
            raise UsernameExistsError()
        if await _find_user(db, UserModel.email, email) is not None:
            raise EmailExistsError()

        user = UserModel(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=role.value,
            is_active=True,
        )
        db.add(user)
        await db.flush()  # assigns user.id

        await db.execute(
            _OPEN_ACCOUNT_SQL,
            {"user_id": str(user.id), "tier_level": settings.DEFAULT_TIER_LEVEL},
        )
        logger.info("Registered %s user=%s id=%s", role.value, user.username, user.id)
        return user

    async def login(
        self, username: str, password: str, db: AsyncSession
    ) -> tuple[UserModel, str, str]:
        """Return (user, access_token, refresh_token).

        Unknown username and wrong password raise the same error.
        """
        user = await _find_user(db, UserModel.username, username)
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        if not user.is_active:
            raise AccountDisabledError()

        subject = str(user.id)
        return user, create_access_token(subject), create_refresh_token(subject)

    async def refresh(self, refresh_token: str) -> str:
        claims = decode_token(refresh_token, expected_type=REFRESH)
        return create_access_token(str(claims["sub"]))

    async def ensure_admin(self, db: AsyncSession) -> UserModel | None:
        """Create ADMIN_USERNAME with role ADMIN unless it already exists.

        Skipped entirely when ADMIN_PASSWORD is empty.
        """
        if not settings.ADMIN_PASSWORD:
            return None
        existing = await _find_user(db, UserModel.username, settings.ADMIN_USERNAME)
        if existing is not None:
            return existing
        return await self.register(
            settings.ADMIN_USERNAME,
            settings.ADMIN_EMAIL,
            settings.ADMIN_PASSWORD,
            db,
            role=UserRole.ADMIN,
        )
