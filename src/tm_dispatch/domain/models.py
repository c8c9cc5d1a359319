"""Domain models for tm_dispatch."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class DispatchOverride:
    """Admin-seeded amount range for the Nth order of an account's day.

    `position` is 1-based and matched against daily_order_count + 1.
    """

    id: int
    user_id: str
    position: int
    min_amount: int          # cents
    max_amount: int          # cents
    status: str              # DispatchStatus value
    triggered_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
