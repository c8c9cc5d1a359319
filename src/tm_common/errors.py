"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Account
  4xxx: Task order (match / settle)
  6xxx: Admin (tier / dispatch / catalog / params)
  9xxx: System

Every error also carries a stable machine-readable `reason`
(e.g. "PENDING_ORDER") that clients switch on; the numeric code
is kept for the response envelope.
"""

from typing import Any


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        reason: str = "ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.reason = reason
        self.details = details or {}
        super().__init__(message)


# --- 1xxx: Auth/User ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409, "USERNAME_EXISTS")


class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409, "EMAIL_EXISTS")


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401, "INVALID_CREDENTIALS")


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403, "ACCOUNT_DISABLED")


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401, "INVALID_REFRESH_TOKEN")


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Admin role required", 403, "ADMIN_REQUIRED")


# --- 2xxx: Account ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
            "INSUFFICIENT_BALANCE",
            {"required_cents": required, "available_cents": available},
        )


class AccountNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Account not found for user {user_id}", 404, "ACCOUNT_NOT_FOUND")


class UserNotFoundError(AppError):
    """Raised by settlement when the account row vanished between match and confirm."""

    def __init__(self, user_id: str) -> None:
        super().__init__(2003, f"User not found: {user_id}", 404, "USER_NOT_FOUND")


class GrabDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(2004, "Order grabbing is disabled for this account", 422, "GRAB_DISABLED")


# --- 4xxx: Task order ---

class PendingOrderExistsError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(
            4001,
            "You have an uncompleted order. Please complete it first.",
            409,
            "PENDING_ORDER",
            {"order_id": order_id},
        )


class QuotaExceededError(AppError):
    def __init__(self, daily_quota: int) -> None:
        super().__init__(
            4002,
            f"Daily order limit reached ({daily_quota})",
            422,
            "QUOTA_EXCEEDED",
            {"daily_quota": daily_quota},
        )


class InvalidMatchTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(
            4003,
            "Invalid or expired match. Please match again.",
            422,
            "INVALID_OR_EXPIRED_TOKEN",
        )


class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404, "ORDER_NOT_FOUND")


class OrderAlreadyProcessedError(AppError):
    def __init__(self, order_id: str, status: str) -> None:
        super().__init__(
            4005,
            f"Order {order_id} already processed (status={status})",
            409,
            "ALREADY_PROCESSED",
            {"order_id": order_id, "status": status},
        )


class LegacyFlowRetiredError(AppError):
    def __init__(self) -> None:
        super().__init__(
            4006,
            "Deprecated. Use POST /tasks/match then POST /tasks/confirm.",
            410,
            "USE_MATCH_CONFIRM",
        )


# --- 6xxx: Admin ---

class TierNotFoundError(AppError):
    def __init__(self, level: int) -> None:
        super().__init__(6001, f"Tier not found: level {level}", 404, "TIER_NOT_FOUND")


class TierInUseError(AppError):
    def __init__(self, level: int, accounts: int) -> None:
        super().__init__(
            6002,
            f"Tier {level} is assigned to {accounts} account(s)",
            409,
            "TIER_IN_USE",
            {"accounts": accounts},
        )


class DispatchOverrideNotFoundError(AppError):
    def __init__(self, override_id: int) -> None:
        super().__init__(
            6003, f"Dispatch override not found: {override_id}", 404, "DISPATCH_NOT_FOUND"
        )


class ProductNotFoundError(AppError):
    def __init__(self, product_id: int) -> None:
        super().__init__(6004, f"Product not found: {product_id}", 404, "PRODUCT_NOT_FOUND")


class InvalidParameterError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6005, detail, 400, "INVALID_PARAMETER")


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500, "INTERNAL_ERROR")


class RequestValidationFailedError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9003, detail, 422, "VALIDATION_ERROR")
