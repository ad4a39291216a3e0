"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from shopfloor.config import Settings
from shopfloor.models import WebhookEndpoint
from shopfloor.storage import InMemoryDeliveryLog
from shopfloor.webhooks import DeadLetterQueue, DeliveryEngine, HealthTracker

Outcome = int | Exception


class FakeClock:
    """Manually advanced clock for rate limiter and idempotency tests."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Backoff sleep that returns immediately and remembers each delay."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class Receiver:
    """Webhook receiver behind an httpx.MockTransport.

    Each host answers with a scripted sequence of outcomes (a status code
    or an exception to raise); the last outcome repeats. Unscripted hosts
    answer 200.

    Example:
        ```python
        receiver.respond("erp.example.com", 503, 200)
        receiver.respond("mes.example.com", httpx.ConnectError("refused"))
        ```
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._scripts: dict[str, list[Outcome]] = {}

    def respond(self, host: str, *outcomes: Outcome) -> None:
        self._scripts[host] = list(outcomes)

    def requests_to(self, host: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.host == host]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        script = self._scripts.get(request.url.host)
        outcome: Outcome = 200
        if script:
            outcome = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, json={"received": outcome < 400})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)


@pytest.fixture
def settings() -> Settings:
    """Default settings, isolated from any local .env file."""
    return Settings(env="test", _env_file=None)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def receiver() -> Receiver:
    return Receiver()


@pytest.fixture
def delivery_log() -> InMemoryDeliveryLog:
    return InMemoryDeliveryLog()


@pytest.fixture
def make_endpoint() -> Callable[..., WebhookEndpoint]:
    """Factory for endpoints subscribed to work_order_created."""

    def factory(**overrides: Any) -> WebhookEndpoint:
        fields: dict[str, Any] = {
            "id": "whk_erp",
            "name": "ERP sync",
            "url": "https://erp.example.com/hooks/shopfloor",
            "event_type": "work_order_created",
        }
        fields.update(overrides)
        return WebhookEndpoint(**fields)

    return factory


@pytest.fixture
def engine(
    settings: Settings,
    receiver: Receiver,
    sleeper: RecordingSleep,
    delivery_log: InMemoryDeliveryLog,
) -> DeliveryEngine:
    """Delivery engine wired to the mock receiver, with instant backoff."""
    return DeliveryEngine(
        settings,
        health=HealthTracker(settings.health_failure_threshold),
        dead_letters=DeadLetterQueue(settings.dead_letter_capacity),
        log_sink=delivery_log,
        transport=receiver.transport,
        sleep=sleeper,
    )
