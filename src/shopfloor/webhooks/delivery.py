"""Webhook delivery with HMAC signatures and exponential backoff retry.

One ``send()`` call delivers one payload to one endpoint:

1. Pre-flight: SSRF-safe URL validation, payload validation, health gate.
   Rejections here are never retried and never touch the network.
2. Attempt loop: POST with a per-attempt timeout; timeouts, connection
   errors and non-2xx responses are retried with a 2s, 4s, 8s... backoff.
   Every attempt outcome is recorded in the health tracker.
3. Exhaustion: the delivery is pushed to the dead letter queue and logged.

The inter-attempt sleep is an ``await``, so backoff for one endpoint never
delays deliveries to another.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from shopfloor.config import Settings
from shopfloor.exceptions import DeliveryError
from shopfloor.logging import get_logger
from shopfloor.models import (
    DeliveryLogEntry,
    DeliveryOutcome,
    DeliveryResult,
    ValidationResult,
    WebhookEndpoint,
    WebhookPayload,
    generate_id,
)
from shopfloor.storage import DeliveryLogSink, NullDeliveryLog

from .dead_letter import DeadLetterQueue
from .health import HealthTracker
from .signing import compute_signature
from .validation import validate_payload, validate_resolved_webhook_url, validate_webhook_url

logger = get_logger(__name__)

SIGNATURE_HEADER = "X-Webhook-Signature"

SleepFn = Callable[[float], Awaitable[Any]]


def _log_retry(retry_state: RetryCallState) -> None:
    """Log the failed attempt and the upcoming backoff."""
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.info(
        "Webhook attempt failed, retrying",
        attempt=retry_state.attempt_number,
        backoff_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        error=str(exception) if exception else None,
    )


@dataclass
class _AttemptState:
    number: int = 0
    latency_ms: int = 0
    status_code: int | None = None
    response_body: Any = None
    should_disable: bool = False


class DeliveryEngine:
    """Sends webhooks to single endpoints.

    Example:
        ```python
        engine = DeliveryEngine(settings, health=tracker, dead_letters=queue, log_sink=log)
        result = await engine.send(endpoint, WebhookPayload.create("work_order_created", data))
        ```
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        health: HealthTracker | None = None,
        dead_letters: DeadLetterQueue | None = None,
        log_sink: DeliveryLogSink | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        """Initialize the delivery engine.

        Args:
            settings: Timeouts, attempt budget, backoff and gate thresholds.
            health: Shared health tracker.
            dead_letters: Shared dead letter queue.
            log_sink: Persistence for delivery outcomes (best effort).
            transport: httpx transport override, used by tests.
            sleep: Backoff sleep, injectable so tests do not wait.
        """
        self._settings = settings or Settings()
        self.health = health or HealthTracker(self._settings.health_failure_threshold)
        self.dead_letters = dead_letters or DeadLetterQueue(self._settings.dead_letter_capacity)
        self._log_sink = log_sink or NullDeliveryLog()
        self._transport = transport
        self._sleep = sleep

    def build_headers(
        self, endpoint: WebhookEndpoint, payload: WebhookPayload, body: str
    ) -> httpx.Headers:
        """Delivery headers; endpoint headers are applied before the signature."""
        headers = httpx.Headers(
            {
                "Content-Type": "application/json",
                "X-Webhook-Event": payload.event,
                "X-Webhook-Timestamp": payload.timestamp,
                "X-Webhook-Delivery": payload.delivery_id or "",
                "User-Agent": self._settings.webhook_user_agent,
            }
        )
        headers.update(endpoint.headers)

        # An endpoint header must never pose as, or replace, the signature.
        if SIGNATURE_HEADER in headers:
            del headers[SIGNATURE_HEADER]
        if endpoint.secret:
            headers[SIGNATURE_HEADER] = compute_signature(body, endpoint.secret)
        return headers

    async def validate(self, endpoint: WebhookEndpoint, payload: WebhookPayload) -> ValidationResult:
        if self._settings.webhook_resolve_dns:
            result = await validate_resolved_webhook_url(endpoint.url)
        else:
            result = validate_webhook_url(endpoint.url)
        if not result.valid:
            return result
        return validate_payload(payload, self._settings.max_payload_bytes)

    async def send(
        self,
        endpoint: WebhookEndpoint,
        payload: WebhookPayload,
        max_attempts: int | None = None,
        *,
        health_gate: bool = True,
        dead_letter: bool = True,
        record_health: bool = True,
    ) -> DeliveryResult:
        """Deliver one payload to one endpoint.

        Args:
            endpoint: Destination endpoint.
            payload: Envelope to send; never mutated.
            max_attempts: Attempt budget. Defaults to the endpoint's
                ``retry_count``, then ``webhook_max_attempts``.
            health_gate: Skip the endpoint when its health score is too low.
            dead_letter: Push to the dead letter queue when attempts run out.
            record_health: Record attempt outcomes in the health tracker.

        Returns:
            DeliveryResult. Delivery failures are reported, never raised.
        """
        log = logger.bind(endpoint_id=endpoint.id, event_type=payload.event)

        validation = await self.validate(endpoint, payload)
        if not validation.valid:
            log.warning("Webhook rejected before delivery", error=validation.error)
            return DeliveryResult(
                success=False,
                error=validation.error,
                endpoint_id=endpoint.id,
                outcome=DeliveryOutcome.REJECTED,
            )

        if health_gate:
            score = self.health.score(endpoint.id)
            threshold = self._settings.health_score_threshold
            if score < threshold:
                log.warning("Webhook skipped, endpoint unhealthy", score=score, threshold=threshold)
                return DeliveryResult(
                    success=False,
                    error=f"Skipped: health score {score} is below {threshold}",
                    endpoint_id=endpoint.id,
                    outcome=DeliveryOutcome.SKIPPED,
                )

        # Keep an existing delivery id so manual retries stay correlated.
        delivery_id = payload.delivery_id or generate_id("del")
        outgoing = payload.with_delivery_id(delivery_id)
        body = outgoing.serialize()
        headers = self.build_headers(endpoint, outgoing, body)
        timeout = (
            endpoint.timeout_ms / 1000
            if endpoint.timeout_ms
            else self._settings.webhook_timeout_seconds
        )
        if max_attempts is None:
            max_attempts = endpoint.retry_count or self._settings.webhook_max_attempts

        log = log.bind(delivery_id=delivery_id)
        state = _AttemptState()

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(
                multiplier=self._settings.webhook_backoff_multiplier,
                max=self._settings.webhook_backoff_max_seconds,
            ),
            retry=retry_if_exception_type(DeliveryError),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    state.number = attempt.retry_state.attempt_number
                    log.debug("Sending webhook", attempt=state.number, max_attempts=max_attempts)
                    await self._attempt(endpoint, body, headers, timeout, state, record_health)
        except DeliveryError as e:
            return await self._exhausted(
                endpoint, outgoing, e, state, dead_letter=dead_letter, log=log
            )

        log.info(
            "Webhook delivered",
            status_code=state.status_code,
            latency_ms=state.latency_ms,
            attempt=state.number,
        )
        await self._persist(
            DeliveryLogEntry(
                endpoint_id=endpoint.id,
                event_type=outgoing.event,
                payload=outgoing.to_body(),
                status_code=state.status_code,
                response_body=state.response_body,
                latency_ms=state.latency_ms,
                delivery_id=delivery_id,
                attempt_count=state.number,
            )
        )
        return DeliveryResult(
            success=True,
            status_code=state.status_code,
            latency_ms=state.latency_ms,
            endpoint_id=endpoint.id,
            delivery_id=delivery_id,
            attempts=state.number,
            outcome=DeliveryOutcome.SUCCEEDED,
            should_disable=state.should_disable,
        )

    async def _attempt(
        self,
        endpoint: WebhookEndpoint,
        body: str,
        headers: httpx.Headers,
        timeout: float,
        state: _AttemptState,
        record_health: bool,
    ) -> None:
        """One POST. Raises DeliveryError on timeout, network error or non-2xx."""
        state.status_code = None
        state.response_body = None
        start = time.monotonic()
        try:
            response = await self._post(endpoint.url, body, headers, timeout)
            state.status_code = response.status_code
            state.response_body = self._read_body(response)
            if not response.is_success:
                raise DeliveryError(
                    f"HTTP {response.status_code}: {response.reason_phrase}",
                    status_code=response.status_code,
                    response_body=state.response_body,
                )
        except DeliveryError:
            self._record(endpoint.id, False, start, state, record_health)
            raise
        self._record(endpoint.id, True, start, state, record_health)

    async def _post(
        self, url: str, body: str, headers: httpx.Headers, timeout: float
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=timeout) as client:
                return await asyncio.wait_for(
                    client.post(url, content=body.encode("utf-8"), headers=headers),
                    timeout=timeout,
                )
        except (TimeoutError, httpx.TimeoutException) as e:
            raise DeliveryError(f"Request timed out after {timeout:g}s") from e
        except httpx.HTTPError as e:
            raise DeliveryError(f"Request failed: {e or type(e).__name__}") from e

    def _record(
        self,
        endpoint_id: str,
        success: bool,
        start: float,
        state: _AttemptState,
        record_health: bool,
    ) -> None:
        state.latency_ms = int((time.monotonic() - start) * 1000)
        if record_health:
            signal = self.health.record(endpoint_id, success, state.latency_ms)
            state.should_disable = signal.should_disable

    def _read_body(self, response: httpx.Response) -> Any:
        text = response.text
        limit = self._settings.webhook_response_body_limit
        if len(text) > limit:
            return text[:limit]
        try:
            return response.json()
        except ValueError:
            return text or None

    async def _exhausted(
        self,
        endpoint: WebhookEndpoint,
        outgoing: WebhookPayload,
        error: DeliveryError,
        state: _AttemptState,
        *,
        dead_letter: bool,
        log: Any,
    ) -> DeliveryResult:
        message = error.message
        log.warning(
            "Webhook delivery failed, attempts exhausted",
            attempts=state.number,
            error=message,
        )

        outcome = DeliveryOutcome.FAILED
        if dead_letter:
            self.dead_letters.push(endpoint, outgoing, message, state.number)
            outcome = DeliveryOutcome.DEAD_LETTERED

        assert outgoing.delivery_id is not None
        await self._persist(
            DeliveryLogEntry(
                endpoint_id=endpoint.id,
                event_type=outgoing.event,
                payload=outgoing.to_body(),
                latency_ms=state.latency_ms,
                error=message,
                delivery_id=outgoing.delivery_id,
                attempt_count=state.number,
            )
        )
        return DeliveryResult(
            success=False,
            status_code=error.status_code,
            latency_ms=state.latency_ms,
            error=message,
            endpoint_id=endpoint.id,
            delivery_id=outgoing.delivery_id,
            attempts=state.number,
            outcome=outcome,
            should_disable=state.should_disable,
        )

    async def _persist(self, entry: DeliveryLogEntry) -> None:
        """Write a delivery log entry; failures are logged and swallowed."""
        try:
            await self._log_sink.log(entry)
        except Exception:
            logger.exception(
                "Failed to persist webhook delivery log",
                endpoint_id=entry.endpoint_id,
                delivery_id=entry.delivery_id,
            )
