"""Dead letter entries for deliveries that exhausted their retries."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .base import generate_id, utc_now
from .webhook import WebhookEndpoint, WebhookPayload


class DeadLetterEntry(BaseModel):
    """A delivery held for manual inspection and retry.

    The full endpoint is kept so a manual retry can sign and send exactly
    as the original delivery did; it is excluded from serialization so
    listing the queue never exposes the endpoint secret.

    Attributes:
        id: Entry identifier.
        endpoint_id: Snapshot of the endpoint id.
        endpoint_name: Snapshot of the endpoint display name.
        endpoint_url: Snapshot of the endpoint URL.
        payload: The transmitted payload, delivery id included.
        error: Last error message.
        attempts: Send attempts made so far, manual retries included.
        created_at: When the entry was dead-lettered.
        last_attempt_at: When the last attempt finished.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=lambda: generate_id("dlq"))
    endpoint_id: str
    endpoint_name: str
    endpoint_url: str
    payload: WebhookPayload
    error: str
    attempts: int = Field(ge=1)
    created_at: datetime = Field(default_factory=utc_now)
    last_attempt_at: datetime = Field(default_factory=utc_now)
    endpoint: WebhookEndpoint = Field(exclude=True, repr=False)

    @classmethod
    def for_delivery(
        cls,
        endpoint: WebhookEndpoint,
        payload: WebhookPayload,
        error: str,
        attempts: int,
    ) -> DeadLetterEntry:
        return cls(
            endpoint_id=endpoint.id,
            endpoint_name=endpoint.name,
            endpoint_url=endpoint.url,
            payload=payload,
            error=error,
            attempts=attempts,
            endpoint=endpoint,
        )
