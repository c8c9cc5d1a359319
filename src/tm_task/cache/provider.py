"""Process-wide match cache: backend selection, Redis connection, sweeper.

Redis is only ever connected when MATCH_CACHE_BACKEND="redis"; balances
and order state never go through it.
"""

import asyncio
import logging

from redis.asyncio import Redis

from config.settings import settings
from src.tm_task.cache.match_cache import InMemoryMatchCache, MatchCache, RedisMatchCache

logger = logging.getLogger(__name__)

_cache: MatchCache | None = None
_redis: Redis | None = None


def get_match_cache() -> MatchCache:
    global _cache, _redis  # noqa: PLW0603
    if _cache is None:
        backend = settings.MATCH_CACHE_BACKEND.lower()
        ttl = settings.MATCH_TOKEN_TTL_SECONDS
        if backend == "redis":
            _redis = Redis.from_url(settings.REDIS_URL, decode_responses=True)
            _cache = RedisMatchCache(_redis, ttl)
        elif backend == "memory":
            _cache = InMemoryMatchCache(ttl)
        else:
            raise ValueError(f"Unknown MATCH_CACHE_BACKEND: {settings.MATCH_CACHE_BACKEND}")
        logger.info("Match cache backend: %s (ttl=%ds)", backend, ttl)
    return _cache


async def close_match_cache() -> None:
    """Forget the cache instance and close its Redis connection, if one was opened."""
    global _cache, _redis  # noqa: PLW0603
    if _redis is not None:
        await _redis.aclose()
    _cache = None
    _redis = None


async def run_sweeper(cache: MatchCache, interval_seconds: float) -> None:
    """Purge expired tokens every `interval_seconds` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            purged = await cache.purge_expired()
        except Exception:
            logger.exception("Match cache sweep failed")
            continue
        if purged:
            logger.debug("Match cache sweep purged %d token(s)", purged)
