"""In-memory registry and delivery log, used by tests and single-process setups."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping
from typing import Any

from shopfloor.models import DeliveryLogEntry, WebhookEndpoint

from .base import DeliveryLogSink, EndpointRegistry, parse_endpoint_rows


class InMemoryEndpointRegistry(EndpointRegistry):
    """Endpoint registry held in a dict keyed by endpoint id.

    Example:
        ```python
        registry = InMemoryEndpointRegistry()
        registry.register({
            "id": "whk_1",
            "name": "ERP sync",
            "webhook_url": "https://hooks.example.com/erp",
            "event_type": "work_order_created",
        })
        ```
    """

    def __init__(
        self, endpoints: Iterable[Mapping[str, Any] | WebhookEndpoint] | None = None
    ) -> None:
        self._endpoints: dict[str, WebhookEndpoint] = {}
        for endpoint in parse_endpoint_rows(endpoints or []):
            self._endpoints[endpoint.id] = endpoint

    def register(self, endpoint: Mapping[str, Any] | WebhookEndpoint) -> WebhookEndpoint:
        """Add or replace an endpoint; raw rows are validated first."""
        [parsed] = parse_endpoint_rows([endpoint])
        self._endpoints[parsed.id] = parsed
        return parsed

    def remove(self, endpoint_id: str) -> bool:
        return self._endpoints.pop(endpoint_id, None) is not None

    def list_endpoints(self) -> list[WebhookEndpoint]:
        return list(self._endpoints.values())

    async def get_endpoints_for_event(self, event_type: str) -> list[WebhookEndpoint]:
        return [ep for ep in self._endpoints.values() if ep.subscribes_to(event_type)]


class InMemoryDeliveryLog(DeliveryLogSink):
    """Bounded delivery log, oldest entries dropped first."""

    def __init__(self, max_entries: int = 10_000) -> None:
        self._entries: deque[DeliveryLogEntry] = deque(maxlen=max_entries)

    async def log(self, entry: DeliveryLogEntry) -> None:
        self._entries.append(entry)

    @property
    def entries(self) -> list[DeliveryLogEntry]:
        return list(self._entries)

    def for_endpoint(self, endpoint_id: str) -> list[DeliveryLogEntry]:
        return [entry for entry in self._entries if entry.endpoint_id == endpoint_id]

    def latest(self, endpoint_id: str | None = None) -> DeliveryLogEntry | None:
        """Newest entry overall, or for one endpoint."""
        for entry in reversed(self._entries):
            if endpoint_id is None or entry.endpoint_id == endpoint_id:
                return entry
        return None

    def __len__(self) -> int:
        return len(self._entries)


class NullDeliveryLog(DeliveryLogSink):
    """Discards every entry."""

    async def log(self, entry: DeliveryLogEntry) -> None:
        return None
