"""MatchParamsRepository: match tunables from system_settings over Settings defaults.

Each MatchParams field is stored as one key/value row. A missing or
unparsable row falls back to the value configured in Settings.
"""

import logging
from dataclasses import asdict, fields

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tm_task.domain.models import MatchParams

logger = logging.getLogger(__name__)

_KEY_PREFIX = "match."

_LOAD_SQL = text("SELECT key, value FROM system_settings WHERE key LIKE 'match.%'")

_UPSERT_SQL = text("""
    INSERT INTO system_settings (key, value)
    VALUES (:key, :value)
    ON CONFLICT (key) DO UPDATE
        SET value = EXCLUDED.value,
            updated_at = NOW()
""")


def default_match_params() -> MatchParams:
    return MatchParams(
        min_balance=settings.MATCH_MIN_BALANCE_CENTS,
        min_line_total=settings.MATCH_MIN_LINE_TOTAL_CENTS,
        max_quantity=settings.MATCH_MAX_QUANTITY,
        min_ratio_bps=settings.MATCH_MIN_RATIO_BPS,
        max_ratio_bps=settings.MATCH_MAX_RATIO_BPS,
    )


class MatchParamsRepository:
    async def load(self, db: AsyncSession) -> MatchParams:
        values = asdict(default_match_params())
        result = await db.execute(_LOAD_SQL)
        for row in result.fetchall():
            name = row.key[len(_KEY_PREFIX):]
            if name not in values:
                continue
            try:
                values[name] = int(row.value)
            except ValueError:
                logger.warning("Ignoring non-integer system setting %s=%r", row.key, row.value)
        return MatchParams(**values)

    async def save(self, db: AsyncSession, params: MatchParams) -> MatchParams:
        for f in fields(params):
            await db.execute(
                _UPSERT_SQL,
                {"key": _KEY_PREFIX + f.name, "value": str(getattr(params, f.name))},
            )
        return params
