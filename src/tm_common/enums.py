"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class OrderOrigin(str, Enum):
    """How an order came to exist: decides how settlement and reset move funds."""
    # Retired pre-debit flow: amount already moved into frozen_balance
    LEGACY = "LEGACY"
    # match → confirm flow: nothing debited until settlement
    MATCH = "MATCH"
    # match flow whose amount came from a dispatch override
    DISPATCH = "DISPATCH"


class DispatchStatus(str, Enum):
    PENDING = "PENDING"
    USED = "USED"


class AdjustDirection(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class LedgerEntryType(str, Enum):
    # Deposit/Withdraw (simulated)
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    # Settlement
    TASK_COMMISSION = "TASK_COMMISSION"
    # Legacy reserve: released on settlement, refunded on admin reset
    RESERVE_RELEASE = "RESERVE_RELEASE"
    RESERVE_REFUND = "RESERVE_REFUND"
    # Admin manual adjustment (audited exception path)
    ADMIN_CREDIT = "ADMIN_CREDIT"
    ADMIN_DEBIT = "ADMIN_DEBIT"


class LedgerReferenceType(str, Enum):
    ORDER = "ORDER"
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    ADMIN = "ADMIN"
