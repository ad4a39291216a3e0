"""Event fan-out to every endpoint subscribed to an event type."""

from __future__ import annotations

import asyncio
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from shopfloor.logging import bind_context, get_logger, unbind_context
from shopfloor.models import (
    DeliveryOutcome,
    DeliveryResult,
    TriggerResult,
    WebhookEndpoint,
    WebhookPayload,
)
from shopfloor.storage import EndpointRegistry

from .delivery import DeliveryEngine
from .idempotency import IdempotencyCache
from .rate_limit import RateLimiter

logger = get_logger(__name__)


class EventDispatcher:
    """Dispatches business events to registered endpoints.

    Handles:
    - Replaying cached results for repeated idempotency keys
    - Finding enabled endpoints subscribed to the event type
    - Delivering to all of them concurrently
    - Converting any per-endpoint exception into a failure result

    ``trigger()`` never raises for webhook infrastructure problems; callers
    fire business events and must not be blocked by them.

    Example:
        ```python
        dispatcher = EventDispatcher(registry, engine, idempotency)
        result = await dispatcher.trigger(
            "work_order_created",
            {"wo_number": "WO-001"},
            idempotency_key="wo-001-created",
        )
        print(result.sent, result.failed)
        ```
    """

    def __init__(
        self,
        registry: EndpointRegistry,
        engine: DeliveryEngine,
        idempotency: IdempotencyCache,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Endpoint lookup.
            engine: Delivery engine shared by all endpoints.
            idempotency: Cache of aggregate results by idempotency key.
            rate_limiter: When set, each endpoint is limited per window and
                deliveries over quota become ``rate_limited`` results.
        """
        self._registry = registry
        self._engine = engine
        self._idempotency = idempotency
        self._rate_limiter = rate_limiter
        self._in_flight: dict[str, asyncio.Future[TriggerResult]] = {}

    async def trigger(
        self,
        event_type: str,
        data: dict[str, Any] | None = None,
        idempotency_key: str | None = None,
        priority: str | None = None,
    ) -> TriggerResult:
        """Deliver an event to all of its subscribers.

        Args:
            event_type: Event name, e.g. ``work_order_created``.
            data: Event data placed under ``data`` in the payload.
            idempotency_key: Repeated keys within the cache TTL return the
                first aggregate result without any network calls.
            priority: Accepted for API compatibility; only logged.

        Returns:
            Aggregate of per-endpoint results.
        """
        bind_context(event_type=event_type)
        try:
            if not idempotency_key:
                return await self._dispatch(event_type, data, None, priority)

            cached = self._idempotency.check(idempotency_key)
            if cached.is_duplicate:
                logger.info("Duplicate trigger, returning cached result", idempotency_key=idempotency_key)
                return cached.cached_response.model_copy(deep=True)

            pending = self._in_flight.get(idempotency_key)
            if pending is not None:
                logger.info("Duplicate trigger in flight, awaiting result", idempotency_key=idempotency_key)
                result = await asyncio.shield(pending)
                return result.model_copy(deep=True)

            future: asyncio.Future[TriggerResult] = asyncio.get_running_loop().create_future()
            self._in_flight[idempotency_key] = future
            try:
                result = await self._dispatch(event_type, data, idempotency_key, priority)
                future.set_result(result.model_copy(deep=True))
                return result
            except asyncio.CancelledError:
                future.cancel()
                raise
            finally:
                self._in_flight.pop(idempotency_key, None)
        finally:
            unbind_context("event_type")

    async def _dispatch(
        self,
        event_type: str,
        data: dict[str, Any] | None,
        idempotency_key: str | None,
        priority: str | None,
    ) -> TriggerResult:
        try:
            return await self._fan_out(event_type, data, idempotency_key, priority)
        except Exception:
            logger.exception("Webhook dispatch failed")
            return TriggerResult()

    async def _fan_out(
        self,
        event_type: str,
        data: dict[str, Any] | None,
        idempotency_key: str | None,
        priority: str | None,
    ) -> TriggerResult:
        try:
            endpoints = await self._registry.get_endpoints_for_event(event_type)
        except Exception:
            logger.exception("Endpoint registry lookup failed")
            return TriggerResult()

        endpoints = [endpoint for endpoint in endpoints if endpoint.enabled]
        if not endpoints:
            logger.debug("No endpoints subscribed to event")
            return TriggerResult()

        try:
            payload = WebhookPayload.create(event_type, data, idempotency_key)
        except (TypeError, ValueError) as e:
            detail = e.errors()[0]["msg"] if isinstance(e, PydanticValidationError) else str(e)
            error = f"Invalid payload: {detail}"
            logger.warning("Webhook payload rejected", error=error)
            results = [
                DeliveryResult(
                    success=False,
                    error=error,
                    endpoint_id=endpoint.id,
                    outcome=DeliveryOutcome.REJECTED,
                )
                for endpoint in endpoints
            ]
        else:
            results = await self._deliver_all(endpoints, payload, priority)

        result = TriggerResult.from_results(results)
        logger.info("Webhook event dispatched", sent=result.sent, failed=result.failed)

        if idempotency_key:
            self._idempotency.store(idempotency_key, result.model_copy(deep=True))
        return result

    async def _deliver_all(
        self,
        endpoints: list[WebhookEndpoint],
        payload: WebhookPayload,
        priority: str | None,
    ) -> list[DeliveryResult]:
        logger.info("Dispatching webhook event", endpoints=len(endpoints), priority=priority)

        outcomes = await asyncio.gather(
            *(self._deliver(endpoint, payload) for endpoint in endpoints),
            return_exceptions=True,
        )

        results: list[DeliveryResult] = []
        for endpoint, outcome in zip(endpoints, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                logger.error(
                    "Webhook delivery task raised",
                    endpoint_id=endpoint.id,
                    error=str(outcome),
                    exc_info=outcome,
                )
                results.append(
                    DeliveryResult(
                        success=False,
                        error=str(outcome) or type(outcome).__name__,
                        endpoint_id=endpoint.id,
                        outcome=DeliveryOutcome.ERROR,
                    )
                )
            else:
                results.append(outcome)
        return results

    async def _deliver(self, endpoint: WebhookEndpoint, payload: WebhookPayload) -> DeliveryResult:
        if self._rate_limiter is not None:
            quota = self._rate_limiter.check(endpoint.id)
            if not quota.allowed:
                retry_after = quota.retry_after(self._rate_limiter.now())
                return DeliveryResult(
                    success=False,
                    error=f"Rate limit exceeded. Retry after {retry_after}s",
                    endpoint_id=endpoint.id,
                    outcome=DeliveryOutcome.RATE_LIMITED,
                )
        return await self._engine.send(endpoint, payload)
