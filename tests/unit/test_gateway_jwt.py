"""Unit tests for the JWT handler and the auth dependencies."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from jose import jwt

from src.tm_common.errors import (
    AdminRequiredError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
)
from src.tm_gateway.auth.dependencies import require_admin
from src.tm_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.tm_gateway.user.db_models import UserModel


class TestTokenClaims:
    def test_access_claims(self) -> None:
        payload = jwt.get_unverified_claims(create_access_token("shopper-1"))
        assert payload["sub"] == "shopper-1"
        assert payload["type"] == "access"
        assert payload["exp"] > payload["iat"]

    def test_refresh_outlives_access(self) -> None:
        access = jwt.get_unverified_claims(create_access_token("shopper-1"))
        refresh = jwt.get_unverified_claims(create_refresh_token("shopper-1"))
        assert refresh["type"] == "refresh"
        assert refresh["exp"] > access["exp"]


class TestDecode:
    def test_round_trip(self) -> None:
        payload = decode_token(create_refresh_token("shopper-1"), expected_type="refresh")
        assert payload["sub"] == "shopper-1"

    def test_type_confusion_rejected(self) -> None:
        with pytest.raises(InvalidRefreshTokenError):
            decode_token(create_access_token("shopper-1"), expected_type="refresh")
        with pytest.raises(InvalidCredentialsError):
            decode_token(create_refresh_token("shopper-1"), expected_type="access")

    def test_expired_access(self) -> None:
        with patch("src.tm_gateway.auth.jwt_handler._ACCESS_EXPIRE", timedelta(seconds=-1)):
            token = create_access_token("shopper-1")
        with pytest.raises(InvalidCredentialsError):
            decode_token(token, expected_type="access")

    def test_expired_refresh(self) -> None:
        with patch("src.tm_gateway.auth.jwt_handler._REFRESH_EXPIRE", timedelta(seconds=-1)):
            token = create_refresh_token("shopper-1")
        with pytest.raises(InvalidRefreshTokenError):
            decode_token(token, expected_type="refresh")

    def test_forged_signature(self) -> None:
        forged = jwt.encode({"sub": "shopper-1", "type": "access"}, "other-secret", algorithm="HS256")
        with pytest.raises(InvalidCredentialsError):
            decode_token(forged, expected_type="access")


class TestRequireAdmin:
    async def test_admin_passes(self) -> None:
        admin = UserModel(username="ops", role="ADMIN", is_active=True)
        assert await require_admin(admin) is admin

    async def test_user_rejected(self) -> None:
        with pytest.raises(AdminRequiredError):
            await require_admin(UserModel(username="shopper", role="USER", is_active=True))
