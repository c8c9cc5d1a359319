"""Request/response bodies for /auth. Routers wrap them in ApiResponse."""

import re

from pydantic import BaseModel, EmailStr, Field, field_validator

# (pattern, message) pairs a password must all satisfy
_PASSWORD_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"\d"), "Password must contain at least one digit"),
)


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=64, pattern=r"^[a-zA-Z0-9_]+$")
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        for pattern, message in _PASSWORD_RULES:
            if not pattern.search(v):
                raise ValueError(message)
        return v


class LoginRequest(BaseModel):
    username: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserInfo(BaseModel):
    user_id: str
    username: str
    email: str
    role: str


class RegisterResponse(BaseModel):
    user_id: str
    username: str
    email: str
    role: str
    created_at: str


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int                  # seconds, from JWT_EXPIRE_MINUTES
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int
