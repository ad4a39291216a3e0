"""Per-endpoint delivery health tracking.

Two independent signals come out of the tracker:

- ``record()`` reports ``should_disable`` once an endpoint reaches the
  consecutive-failure threshold. The tracker never disables anything
  itself; operators decide.
- ``score()`` folds the success rate and the current failure streak into
  0-100. The delivery engine skips endpoints scoring below its threshold.

An endpoint with a long successful history can raise ``should_disable``
while still scoring above the gate; both signals are reported as-is.
"""

from __future__ import annotations

import math

from shopfloor.logging import get_logger
from shopfloor.models import HealthRecordResult, HealthStats, utc_now

logger = get_logger(__name__)

DEFAULT_FAILURE_THRESHOLD = 5
MAX_STREAK_PENALTY = 50
STREAK_PENALTY_PER_FAILURE = 10


class HealthTracker:
    """Process-wide rolling statistics keyed by endpoint id.

    All mutation happens synchronously between awaits, so concurrent
    deliveries on the event loop cannot interleave inside one update.
    """

    def __init__(self, failure_threshold: int = DEFAULT_FAILURE_THRESHOLD) -> None:
        self.failure_threshold = failure_threshold
        self._stats: dict[str, HealthStats] = {}

    def record(self, endpoint_id: str, success: bool, latency_ms: float) -> HealthRecordResult:
        """Record one attempt outcome.

        Average latency is an incremental mean over successful attempts only.
        """
        stats = self._stats.setdefault(endpoint_id, HealthStats())
        stats.total_calls += 1

        if success:
            stats.success_count += 1
            stats.last_success = utc_now()
            stats.consecutive_failures = 0
            n = stats.success_count
            stats.average_latency_ms = (stats.average_latency_ms * (n - 1) + latency_ms) / n
        else:
            stats.failure_count += 1
            stats.last_failure = utc_now()
            stats.consecutive_failures += 1

        should_disable = stats.consecutive_failures >= self.failure_threshold
        if should_disable:
            logger.warning(
                "Endpoint has consecutive failures, consider disabling",
                endpoint_id=endpoint_id,
                consecutive_failures=stats.consecutive_failures,
            )

        return HealthRecordResult(
            should_disable=should_disable,
            consecutive_failures=stats.consecutive_failures,
        )

    def get(self, endpoint_id: str) -> HealthStats | None:
        """Copy of the endpoint's statistics, or None if never recorded."""
        stats = self._stats.get(endpoint_id)
        return stats.model_copy() if stats is not None else None

    def score(self, endpoint_id: str) -> int:
        """Health score 0-100; endpoints with no recorded calls score 100."""
        stats = self._stats.get(endpoint_id)
        if stats is None or stats.total_calls == 0:
            return 100

        penalty = min(stats.consecutive_failures * STREAK_PENALTY_PER_FAILURE, MAX_STREAK_PENALTY)
        # Halves round up, not to even.
        return max(0, math.floor(stats.success_rate * 100 - penalty + 0.5))

    def reset(self, endpoint_id: str) -> None:
        self._stats.pop(endpoint_id, None)

    def snapshot(self) -> dict[str, HealthStats]:
        return {endpoint_id: stats.model_copy() for endpoint_id, stats in self._stats.items()}
