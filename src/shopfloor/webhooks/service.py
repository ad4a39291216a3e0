"""WebhookService: the public surface of the webhook delivery pipeline.

Owns one instance of each process-wide component (health tracker,
idempotency cache, rate limiter, dead letter queue) and wires them into the
delivery engine and the event dispatcher. Tests build isolated services
instead of sharing module-level state.

Example:
    ```python
    from shopfloor.storage import InMemoryEndpointRegistry
    from shopfloor.webhooks import WebhookService

    registry = InMemoryEndpointRegistry()
    async with WebhookService.create(registry=registry) as webhooks:
        result = await webhooks.trigger_webhook(
            "work_order_created", {"wo_number": "WO-001"}
        )
    ```
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from shopfloor.config import Settings
from shopfloor.exceptions import ValidationError
from shopfloor.logging import get_logger
from shopfloor.models import (
    DeadLetterEntry,
    DeliveryResult,
    HealthStats,
    TriggerResult,
    WebhookEndpoint,
    WebhookPayload,
)
from shopfloor.storage import (
    DeliveryLogSink,
    EndpointRegistry,
    InMemoryEndpointRegistry,
    NullDeliveryLog,
)

from .dead_letter import DeadLetterQueue
from .delivery import DeliveryEngine, SleepFn
from .dispatcher import EventDispatcher
from .health import HealthTracker
from .hints import diagnose
from .idempotency import IdempotencyCache
from .rate_limit import RateLimiter
from .sweeper import sweep_task

logger = get_logger(__name__)

TEST_EVENT = "webhook.test"
TEST_ENDPOINT_ID = "test"


class WebhookService:
    """Facade over the webhook components.

    Use ``create()`` for default wiring. ``initialize()`` starts the
    periodic sweeps of the idempotency cache and rate limiter; ``close()``
    stops them. Both are called by the async context manager.
    """

    def __init__(
        self,
        settings: Settings,
        registry: EndpointRegistry,
        engine: DeliveryEngine,
        dispatcher: EventDispatcher,
        idempotency: IdempotencyCache,
        rate_limiter: RateLimiter,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.engine = engine
        self.dispatcher = dispatcher
        self.idempotency = idempotency
        self.rate_limiter = rate_limiter
        self._sweepers: list[asyncio.Task[None]] = []

    @property
    def health(self) -> HealthTracker:
        return self.engine.health

    @property
    def dead_letters(self) -> DeadLetterQueue:
        return self.engine.dead_letters

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        *,
        registry: EndpointRegistry | None = None,
        log_sink: DeliveryLogSink | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFn = asyncio.sleep,
        endpoint_rate_limit: bool = False,
    ) -> WebhookService:
        """Create a WebhookService with default components.

        Args:
            settings: Optional settings. Uses defaults if None.
            registry: Endpoint registry. Defaults to an empty in-memory one.
            log_sink: Delivery log. Defaults to discarding entries.
            transport: httpx transport override for the delivery engine.
            sleep: Backoff sleep override for the delivery engine.
            endpoint_rate_limit: Limit deliveries per endpoint per window.

        Returns:
            Configured WebhookService instance.
        """
        if settings is None:
            settings = Settings()

        engine = DeliveryEngine(
            settings,
            health=HealthTracker(settings.health_failure_threshold),
            dead_letters=DeadLetterQueue(settings.dead_letter_capacity),
            log_sink=log_sink or NullDeliveryLog(),
            transport=transport,
            sleep=sleep,
        )
        idempotency = IdempotencyCache(settings.idempotency_ttl_seconds)
        rate_limiter = RateLimiter(
            window_seconds=settings.rate_limit_window_seconds,
            max_requests=settings.rate_limit_max_requests,
        )
        registry = registry or InMemoryEndpointRegistry()
        dispatcher = EventDispatcher(
            registry,
            engine,
            idempotency,
            rate_limiter=rate_limiter if endpoint_rate_limit else None,
        )
        return cls(settings, registry, engine, dispatcher, idempotency, rate_limiter)

    async def initialize(self) -> None:
        """Start the periodic sweeps."""
        if self._sweepers:
            return
        self._sweepers = [
            asyncio.create_task(
                sweep_task(
                    "idempotency",
                    self.idempotency.sweep,
                    self.settings.idempotency_sweep_interval_seconds,
                )
            ),
            asyncio.create_task(
                sweep_task(
                    "rate_limit",
                    self.rate_limiter.sweep,
                    self.settings.rate_limit_sweep_interval_seconds,
                )
            ),
        ]
        logger.info("Webhook service started")

    async def close(self) -> None:
        """Stop the periodic sweeps."""
        for task in self._sweepers:
            task.cancel()
        await asyncio.gather(*self._sweepers, return_exceptions=True)
        self._sweepers = []
        logger.info("Webhook service stopped")

    async def __aenter__(self) -> WebhookService:
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def trigger_webhook(
        self,
        event_type: str,
        data: dict[str, Any] | None = None,
        idempotency_key: str | None = None,
        priority: str | None = None,
    ) -> TriggerResult:
        """Deliver an event to every enabled subscriber. Never raises."""
        return await self.dispatcher.trigger(
            event_type,
            data,
            idempotency_key=idempotency_key,
            priority=priority,
        )

    async def send_test_webhook(self, url: str, secret: str | None = None) -> DeliveryResult:
        """Send a single test event to ``url`` to verify an endpoint.

        One attempt, no health gate, no health recording and no dead
        lettering. The result carries an operator hint.

        Raises:
            ValidationError: If no URL is given.
        """
        url = url.strip()
        if not url:
            raise ValidationError("url", "A webhook URL is required")

        endpoint = WebhookEndpoint(
            id=TEST_ENDPOINT_ID,
            name="Test webhook",
            url=url,
            event_type=TEST_EVENT,
            secret=secret,
        )
        payload = WebhookPayload.create(
            TEST_EVENT,
            {"test": True, "message": "This is a test webhook from Shopfloor"},
        )
        result = await self.engine.send(
            endpoint,
            payload,
            max_attempts=1,
            health_gate=False,
            dead_letter=False,
            record_health=False,
        )
        return result.model_copy(update={"hint": diagnose(result)})

    def get_dead_letter_queue(self) -> list[DeadLetterEntry]:
        return self.dead_letters.list()

    async def retry_dead_letter_entry(self, entry_id: str) -> DeliveryResult:
        """Re-send a dead letter with a single attempt.

        Raises:
            NotFoundError: If no entry has this id.
        """
        return await self.dead_letters.retry(entry_id, self.engine)

    def clear_dead_letter_queue(self) -> None:
        self.dead_letters.clear()
        logger.info("Dead letter queue cleared")

    def get_webhook_health(self, endpoint_id: str) -> HealthStats | None:
        return self.health.get(endpoint_id)

    def calculate_health_score(self, endpoint_id: str) -> int:
        return self.health.score(endpoint_id)

    def reset_webhook_health(self, endpoint_id: str) -> None:
        self.health.reset(endpoint_id)
        logger.info("Endpoint health reset", endpoint_id=endpoint_id)
