"""Bounded in-memory queue of deliveries that exhausted their retries."""

from __future__ import annotations

from collections import OrderedDict
from typing import TYPE_CHECKING

from shopfloor.exceptions import NotFoundError
from shopfloor.logging import get_logger
from shopfloor.models import (
    DeadLetterEntry,
    DeliveryResult,
    WebhookEndpoint,
    WebhookPayload,
    utc_now,
)

if TYPE_CHECKING:
    from .delivery import DeliveryEngine

logger = get_logger(__name__)

DEFAULT_CAPACITY = 1000


class DeadLetterQueue:
    """FIFO buffer of dead letters; the oldest entry is evicted at capacity.

    Example:
        ```python
        queue = DeadLetterQueue(capacity=100)
        entry = queue.push(endpoint, payload, "HTTP 500: Internal Server Error", attempts=3)
        result = await queue.retry(entry.id, engine)
        ```
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self.capacity = capacity
        self._entries: OrderedDict[str, DeadLetterEntry] = OrderedDict()

    def push(
        self,
        endpoint: WebhookEndpoint,
        payload: WebhookPayload,
        error: str,
        attempts: int,
    ) -> DeadLetterEntry:
        while len(self._entries) >= self.capacity:
            evicted_id, evicted = self._entries.popitem(last=False)
            logger.warning(
                "Dead letter queue full, evicting oldest entry",
                entry_id=evicted_id,
                endpoint_id=evicted.endpoint_id,
            )

        entry = DeadLetterEntry.for_delivery(endpoint, payload, error, attempts)
        self._entries[entry.id] = entry
        logger.info(
            "Delivery dead-lettered",
            entry_id=entry.id,
            endpoint_id=endpoint.id,
            delivery_id=payload.delivery_id,
            attempts=attempts,
            error=error,
        )
        return entry

    def list(self) -> list[DeadLetterEntry]:
        """Snapshot of all entries, oldest first."""
        return [entry.model_copy() for entry in self._entries.values()]

    def get(self, entry_id: str) -> DeadLetterEntry:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise NotFoundError("dead_letter_entry", entry_id)
        return entry

    def remove(self, entry_id: str) -> bool:
        return self._entries.pop(entry_id, None) is not None

    async def retry(self, entry_id: str, engine: DeliveryEngine) -> DeliveryResult:
        """Re-send one entry with a single attempt.

        On success the entry is removed. On failure it stays queued with its
        attempt counter, error and last-attempt time updated.

        Raises:
            NotFoundError: If no entry has this id.
        """
        entry = self.get(entry_id)

        result = await engine.send(
            entry.endpoint,
            entry.payload,
            max_attempts=1,
            health_gate=False,
            dead_letter=False,
        )

        if result.success:
            self.remove(entry_id)
            logger.info("Dead letter retry succeeded", entry_id=entry_id)
            return result

        # The entry may have been evicted or cleared while the send was in flight.
        if entry_id in self._entries:
            entry.attempts += 1
            entry.error = result.error or "Unknown error"
            entry.last_attempt_at = utc_now()
        logger.warning(
            "Dead letter retry failed",
            entry_id=entry_id,
            attempts=entry.attempts,
            error=result.error,
        )
        return result

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
