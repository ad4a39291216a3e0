"""Interfaces for the collaborators the webhook core depends on.

The endpoint registry and the delivery log live outside the core (in
production, tables of the hosted database). The core only talks to these
two abstract classes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from shopfloor.exceptions import RegistryError
from shopfloor.models import DeliveryLogEntry, WebhookEndpoint


class EndpointRegistry(ABC):
    """Source of webhook endpoints.

    Implementations must return only enabled endpoints subscribed to the
    requested event type, and should raise RegistryError when the
    underlying store cannot be read.
    """

    @abstractmethod
    async def get_endpoints_for_event(self, event_type: str) -> list[WebhookEndpoint]:
        """Get all enabled endpoints subscribed to an event type."""
        ...


class DeliveryLogSink(ABC):
    """Best-effort persistence for delivery outcomes.

    Callers swallow any exception raised here; a logging failure never
    changes a delivery result.
    """

    @abstractmethod
    async def log(self, entry: DeliveryLogEntry) -> None:
        """Persist one delivery log entry."""
        ...


def parse_endpoint_rows(rows: Iterable[Mapping[str, Any] | WebhookEndpoint]) -> list[WebhookEndpoint]:
    """Validate raw registry rows into WebhookEndpoint models.

    Raises:
        RegistryError: If any row is missing required fields or has bad types.
    """
    endpoints: list[WebhookEndpoint] = []
    for index, row in enumerate(rows):
        if isinstance(row, WebhookEndpoint):
            endpoints.append(row)
            continue
        try:
            endpoints.append(WebhookEndpoint.model_validate(row))
        except PydanticValidationError as e:
            raise RegistryError(f"Invalid endpoint row {index}: {e}") from e
    return endpoints
