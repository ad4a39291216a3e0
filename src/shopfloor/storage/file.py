"""Endpoint registry backed by a JSON file.

The file holds a JSON array of endpoint rows using the same column names
as the persisted configuration store::

    [
      {
        "id": "whk_erp",
        "name": "ERP sync",
        "webhook_url": "https://hooks.example.com/erp",
        "event_type": "work_order_created",
        "enabled": true,
        "secret_key": "9f2c...",
        "headers": {"X-Plant": "NL-01"},
        "timeout_ms": 5000,
        "retry_count": 3
      }
    ]

The file is re-read on every lookup so edits take effect without a restart.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

from shopfloor.exceptions import RegistryError
from shopfloor.models import WebhookEndpoint

from .base import EndpointRegistry, parse_endpoint_rows


class JsonFileEndpointRegistry(EndpointRegistry):
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[WebhookEndpoint]:
        """Read and validate every row in the file.

        Raises:
            RegistryError: If the file is missing, unreadable or invalid.
        """
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise RegistryError(f"Cannot read endpoint registry {self._path}: {e}") from e

        if not isinstance(raw, list):
            raise RegistryError(f"Endpoint registry {self._path} must hold a JSON array")

        return parse_endpoint_rows(raw)

    async def get_endpoints_for_event(self, event_type: str) -> list[WebhookEndpoint]:
        endpoints = await asyncio.to_thread(self.load)
        return [ep for ep in endpoints if ep.subscribes_to(event_type)]
