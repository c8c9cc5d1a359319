"""Domain models for tm_tier."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TierDefinition:
    level: int
    name: str
    commission_rate_bps: int
    daily_quota: int
    min_balance: int                 # cents, auto-qualification threshold
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class TierTerms:
    """What a tier grants an account: its rate and how many orders per day."""

    commission_rate_bps: int
    daily_quota: int
