"""Fixed-window rate limiting keyed by an arbitrary identifier.

Windows are not sliding: a burst straddling a window boundary can reach
twice the limit. That approximation is accepted in exchange for a single
counter per identifier.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from shopfloor.logging import get_logger
from shopfloor.models import RateLimitResult

logger = get_logger(__name__)


@dataclass
class _Window:
    count: int
    reset_time: float


class RateLimiter:
    """In-memory fixed-window rate limiter.

    A window starts lazily on the first call after the previous window's
    reset time has passed. Expired windows are dropped by ``sweep()``,
    which the webhook service runs every minute.

    Example:
        ```python
        limiter = RateLimiter(window_seconds=1.0, max_requests=2)
        limiter.check("whk_1").allowed  # True
        limiter.check("whk_1").allowed  # True
        limiter.check("whk_1").allowed  # False until the window resets
        ```
    """

    def __init__(
        self,
        window_seconds: float = 60.0,
        max_requests: int = 100,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def check(
        self,
        identifier: str,
        window_seconds: float | None = None,
        max_requests: int | None = None,
    ) -> RateLimitResult:
        """Count one call against ``identifier`` and report whether it is allowed.

        Args:
            identifier: Key to count against (endpoint id, client address).
            window_seconds: Window override for this identifier.
            max_requests: Limit override for this identifier.
        """
        window_seconds = window_seconds if window_seconds is not None else self.window_seconds
        max_requests = max_requests if max_requests is not None else self.max_requests
        now = self._clock()

        window = self._windows.get(identifier)
        if window is None or now > window.reset_time:
            window = _Window(count=1, reset_time=now + window_seconds)
            self._windows[identifier] = window
            return RateLimitResult(
                allowed=True,
                remaining=max(0, max_requests - 1),
                reset_time=window.reset_time,
            )

        if window.count >= max_requests:
            logger.warning(
                "Rate limit exceeded",
                identifier=identifier,
                limit=max_requests,
                reset_time=window.reset_time,
            )
            return RateLimitResult(allowed=False, remaining=0, reset_time=window.reset_time)

        window.count += 1
        return RateLimitResult(
            allowed=True,
            remaining=max_requests - window.count,
            reset_time=window.reset_time,
        )

    def sweep(self) -> int:
        """Drop windows whose reset time has passed. Returns the number removed."""
        now = self._clock()
        expired = [key for key, window in self._windows.items() if now > window.reset_time]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def reset(self, identifier: str | None = None) -> None:
        if identifier is None:
            self._windows.clear()
        else:
            self._windows.pop(identifier, None)

    def now(self) -> float:
        return self._clock()

    def __len__(self) -> int:
        return len(self._windows)
