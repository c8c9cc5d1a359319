"""Domain models for tm_account: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    id: str
    user_id: str
    balance: int             # cents, available funds
    frozen_balance: int      # cents, legacy pre-debit reserve (read-mostly)
    tier_level: int
    daily_order_count: int
    grab_enabled: bool
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_balance(self) -> int:
        return self.balance + self.frozen_balance

    @property
    def next_order_position(self) -> int:
        """1-based sequence position of the order this account would grab next."""
        return self.daily_order_count + 1


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # cents, positive=income negative=expense
    balance_after: int               # cents, balance snapshot after op
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None   # reason
    created_by: str | None = None    # actor user_id
    created_at: datetime | None = None
