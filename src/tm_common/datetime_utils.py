"""UTC datetime utilities."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def utc_timestamp() -> float:
    """Seconds since the epoch, UTC. Safe to share across processes (unlike monotonic)."""
    return utc_now().timestamp()


def is_expired(issued_at: float, ttl_seconds: int, now: float | None = None) -> bool:
    """True once `ttl_seconds` have fully elapsed since `issued_at`."""
    current = utc_timestamp() if now is None else now
    return current - issued_at >= ttl_seconds
