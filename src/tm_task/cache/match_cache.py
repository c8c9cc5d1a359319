"""Match cache: single-use, TTL-bounded match tokens.

A token maps to the MatchContext of the pending order it was issued for.
Expired entries behave exactly like missing ones. `delete` reports whether
this caller removed the entry, so of two concurrent consumers only one wins.

Two backends share the MatchCache protocol:
  - InMemoryMatchCache: process-local dict, swept periodically.
  - RedisMatchCache: SET ... EX, shared across workers; Redis expires keys.
"""

import asyncio
import json
import logging
from typing import Protocol

from redis.asyncio import Redis

from src.tm_common.datetime_utils import is_expired, utc_timestamp
from src.tm_task.domain.models import MatchContext

logger = logging.getLogger(__name__)


class MatchCache(Protocol):
    async def put(self, token: str, ctx: MatchContext) -> None: ...

    async def get(self, token: str) -> MatchContext | None: ...

    async def delete(self, token: str) -> bool: ...

    async def purge_expired(self) -> int: ...


class InMemoryMatchCache:
    def __init__(self, ttl_seconds: int) -> None:
        self._ttl = ttl_seconds
        self._entries: dict[str, MatchContext] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    async def put(self, token: str, ctx: MatchContext) -> None:
        async with self._lock:
            self._entries[token] = ctx

    async def get(self, token: str) -> MatchContext | None:
        async with self._lock:
            ctx = self._entries.get(token)
            if ctx is None:
                return None
            if is_expired(ctx.issued_at, self._ttl):
                del self._entries[token]
                return None
            return ctx

    async def delete(self, token: str) -> bool:
        async with self._lock:
            ctx = self._entries.pop(token, None)
        return ctx is not None and not is_expired(ctx.issued_at, self._ttl)

    async def purge_expired(self) -> int:
        now = utc_timestamp()
        async with self._lock:
            stale = [
                token
                for token, ctx in self._entries.items()
                if is_expired(ctx.issued_at, self._ttl, now)
            ]
            for token in stale:
                del self._entries[token]
        return len(stale)


class RedisMatchCache:
    """Redis-backed cache. Keys expire server-side, so purge_expired is a no-op."""

    KEY_PREFIX = "tm:match:"

    def __init__(self, redis: Redis, ttl_seconds: int) -> None:
        self._redis = redis
        self._ttl = ttl_seconds

    def _key(self, token: str) -> str:
        return f"{self.KEY_PREFIX}{token}"

    async def put(self, token: str, ctx: MatchContext) -> None:
        # A restored token keeps its original issue time, so only the remainder is left
        remaining = self._ttl - int(utc_timestamp() - ctx.issued_at)
        if remaining <= 0:
            return
        await self._redis.set(self._key(token), json.dumps(ctx.to_dict()), ex=remaining)

    async def get(self, token: str) -> MatchContext | None:
        raw = await self._redis.get(self._key(token))
        if raw is None:
            return None
        ctx = MatchContext.from_dict(json.loads(raw))
        if is_expired(ctx.issued_at, self._ttl):
            return None
        return ctx

    async def delete(self, token: str) -> bool:
        return await self._redis.delete(self._key(token)) == 1

    async def purge_expired(self) -> int:
        return 0
