"""Order ids and match tokens.

Order ids are snowflake integers rendered as decimal strings. Later ids are
numerically greater, so ``ORDER BY CAST(id AS BIGINT) DESC`` is newest-first
and the last id of a page works as the pagination cursor. Compared as text
they only sort correctly while all ids have the same number of digits.

Match tokens carry 128 random bits and are never reissued.
"""

import secrets
import threading
import time

from config.settings import settings

MATCH_TOKEN_PREFIX = "mt_"
MATCH_TOKEN_BYTES = 16

_EPOCH_MS = 1_700_000_000_000
_MACHINE_BITS = 10
_SEQUENCE_BITS = 12
_SEQUENCE_MASK = (1 << _SEQUENCE_BITS) - 1
_MAX_MACHINE_ID = (1 << _MACHINE_BITS) - 1


class SnowflakeIdGenerator:
    """41-bit ms timestamp | 10-bit machine id | 12-bit per-ms sequence."""

    def __init__(self, machine_id: int = 0) -> None:
        if machine_id < 0 or machine_id > _MAX_MACHINE_ID:
            raise ValueError(f"machine_id out of range 0..{_MAX_MACHINE_ID}: {machine_id}")
        self._machine_id = machine_id
        self._last_ms = -1
        self._seq = 0
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            # never step back in time, even if the wall clock does
            now = max(self._current_ms(), self._last_ms)
            if now == self._last_ms:
                self._seq = (self._seq + 1) & _SEQUENCE_MASK
                if self._seq == 0:
                    now = self._spin_until_after(now)
            else:
                self._seq = 0
            self._last_ms = now
            return str(self._compose(now))

    def _compose(self, ms: int) -> int:
        elapsed = ms - _EPOCH_MS
        return (elapsed << (_MACHINE_BITS + _SEQUENCE_BITS)) | (self._machine_id << _SEQUENCE_BITS) | self._seq

    def _current_ms(self) -> int:
        return time.time_ns() // 1_000_000

    def _spin_until_after(self, ms: int) -> int:
        now = self._current_ms()
        while now <= ms:
            now = self._current_ms()
        return now


_order_ids = SnowflakeIdGenerator(settings.ORDER_ID_MACHINE_ID)


def generate_id() -> str:
    return _order_ids.next_id()


def generate_match_token() -> str:
    """``mt_`` followed by 32 hex characters."""
    return MATCH_TOKEN_PREFIX + secrets.token_hex(MATCH_TOKEN_BYTES)
