"""Tier resolution: account tier level -> commission rate and daily quota.

Resolution never fails. A level with no tiers row (deleted tier, bad data)
falls back to the configured default terms.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tm_tier.domain.models import TierDefinition, TierTerms
from src.tm_tier.domain.repository import TierRepositoryProtocol
from src.tm_tier.infrastructure.persistence import TierRepository

logger = logging.getLogger(__name__)


def default_terms() -> TierTerms:
    return TierTerms(
        commission_rate_bps=settings.DEFAULT_COMMISSION_RATE_BPS,
        daily_quota=settings.DEFAULT_DAILY_QUOTA,
    )


def qualifying_level(tiers: list[TierDefinition], balance: int) -> int | None:
    """Highest tier level whose min_balance is covered by `balance`, or None."""
    eligible = [t.level for t in tiers if t.min_balance <= balance]
    return max(eligible) if eligible else None


class TierResolver:
    def __init__(self, repo: TierRepositoryProtocol | None = None) -> None:
        self._repo: TierRepositoryProtocol = repo or TierRepository()

    async def resolve(self, db: AsyncSession, tier_level: int) -> TierTerms:
        tier = await self._repo.get_by_level(db, tier_level)
        if tier is None:
            logger.warning("Tier level %d not defined, using default terms", tier_level)
            return default_terms()
        return TierTerms(
            commission_rate_bps=tier.commission_rate_bps,
            daily_quota=tier.daily_quota,
        )
