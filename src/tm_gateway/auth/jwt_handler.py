"""Access and refresh tokens (HS256, shared JWT_SECRET).

There is no revocation list; a token is good until ``exp``. The ``type``
claim keeps a refresh token from being replayed as an access token and
the reverse.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.tm_common.errors import AppError, InvalidCredentialsError, InvalidRefreshTokenError

ACCESS = "access"
REFRESH = "refresh"

_ALGORITHM = settings.JWT_ALGORITHM
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
_REFRESH_EXPIRE = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)

_REJECTION: dict[str, type[AppError]] = {
    ACCESS: InvalidCredentialsError,
    REFRESH: InvalidRefreshTokenError,
}


def _issue(subject: str, token_type: str, ttl: timedelta) -> str:
    issued_at = datetime.now(UTC)
    claims: dict[str, Any] = {
        "sub": subject,
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + ttl,
    }
    return str(jwt.encode(claims, settings.JWT_SECRET, algorithm=_ALGORITHM))


def create_access_token(user_id: str) -> str:
    return _issue(user_id, ACCESS, _ACCESS_EXPIRE)


def create_refresh_token(user_id: str) -> str:
    return _issue(user_id, REFRESH, _REFRESH_EXPIRE)


def decode_token(token: str, expected_type: str) -> dict[str, Any]:
    """Verify signature, expiry and ``type``; return the claims.

    Failures raise InvalidCredentialsError for access tokens and
    InvalidRefreshTokenError for refresh tokens.
    """
    rejection = _REJECTION[expected_type]
    try:
        claims: dict[str, Any] = jwt.decode(token, settings.JWT_SECRET, algorithms=[_ALGORITHM])
    except JWTError as exc:
        raise rejection() from exc
    if claims.get("type") != expected_type:
        raise rejection()
    return claims
