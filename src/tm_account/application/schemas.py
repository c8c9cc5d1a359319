"""Request/response models for /account and the ledger page cursor."""

import base64
import binascii

from pydantic import BaseModel, Field

from src.tm_account.domain.models import Account, LedgerEntry
from src.tm_common.money import cents_to_display

_CURSOR_PREFIX = "le:"


def cursor_encode(last_id: int) -> str:
    """Opaque cursor for the ledger entry the page ended on."""
    return base64.urlsafe_b64encode(f"{_CURSOR_PREFIX}{last_id}".encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Inverse of cursor_encode. Garbage decodes to None, i.e. the first page."""
    if not cursor:
        return None
    try:
        raw = base64.urlsafe_b64decode(cursor.encode()).decode()
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    if not raw.startswith(_CURSOR_PREFIX):
        return None
    try:
        return int(raw[len(_CURSOR_PREFIX):])
    except ValueError:
        return None


class DepositRequest(BaseModel):
    amount_cents: int = Field(..., gt=0)


class WithdrawRequest(BaseModel):
    amount_cents: int = Field(..., gt=0)


class BalanceResponse(BaseModel):
    user_id: str
    balance_cents: int
    balance_display: str
    frozen_balance_cents: int
    frozen_balance_display: str
    total_balance_cents: int
    total_balance_display: str
    tier_level: int
    daily_order_count: int
    grab_enabled: bool

    @classmethod
    def from_account(cls, account: Account) -> "BalanceResponse":
        total = account.total_balance
        return cls(
            user_id=account.user_id,
            balance_cents=account.balance,
            balance_display=cents_to_display(account.balance),
            frozen_balance_cents=account.frozen_balance,
            frozen_balance_display=cents_to_display(account.frozen_balance),
            total_balance_cents=total,
            total_balance_display=cents_to_display(total),
            tier_level=account.tier_level,
            daily_order_count=account.daily_order_count,
            grab_enabled=account.grab_enabled,
        )


class FundsMovedResponse(BaseModel):
    """Result of a deposit or withdrawal: the amount moved and the new balance."""

    entry_type: str
    amount_cents: int
    amount_display: str
    balance_cents: int
    balance_display: str
    ledger_entry_id: int

    @classmethod
    def from_result(cls, account: Account, entry: LedgerEntry) -> "FundsMovedResponse":
        moved = abs(entry.amount)
        return cls(
            entry_type=entry.entry_type,
            amount_cents=moved,
            amount_display=cents_to_display(moved),
            balance_cents=account.balance,
            balance_display=cents_to_display(account.balance),
            ledger_entry_id=entry.id,
        )


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount_cents: int
    amount_display: str
    balance_after_cents: int
    balance_after_display: str
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_by: str | None
    created_at: str

    @classmethod
    def from_entry(cls, entry: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=entry.id,
            entry_type=entry.entry_type,
            amount_cents=entry.amount,
            amount_display=cents_to_display(entry.amount),
            balance_after_cents=entry.balance_after,
            balance_after_display=cents_to_display(entry.balance_after),
            reference_type=entry.reference_type,
            reference_id=entry.reference_id,
            description=entry.description,
            created_by=entry.created_by,
            created_at=entry.created_at.isoformat() if entry.created_at else "",
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
