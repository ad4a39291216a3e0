"""Short-lived cache of trigger results keyed by caller idempotency keys."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from shopfloor.models import IdempotencyCheck

DEFAULT_TTL_SECONDS = 24 * 60 * 60


@dataclass
class _Record:
    response: Any
    expires_at: float


class IdempotencyCache:
    """Maps an idempotency key to the first response produced for it.

    Expiry is lazy: ``check()`` treats an expired record as absent even if
    the periodic ``sweep()`` has not removed it yet, so a stale response is
    never replayed.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._records: dict[str, _Record] = {}

    def check(self, key: str) -> IdempotencyCheck:
        record = self._records.get(key)
        if record is not None and self._clock() < record.expires_at:
            return IdempotencyCheck(is_duplicate=True, cached_response=record.response)
        return IdempotencyCheck(is_duplicate=False)

    def store(self, key: str, response: Any) -> None:
        """Insert or overwrite ``key`` with a fresh TTL."""
        self._records[key] = _Record(response=response, expires_at=self._clock() + self.ttl_seconds)

    def sweep(self) -> int:
        """Remove expired records. Returns the number removed."""
        now = self._clock()
        expired = [key for key, record in self._records.items() if now >= record.expires_at]
        for key in expired:
            del self._records[key]
        return len(expired)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
