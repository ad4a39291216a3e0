"""Webhook models for outgoing event notifications.

Provides the endpoint registry record, the wire payload, per-endpoint
delivery results, the aggregate trigger result and delivery log entries.
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .base import generate_id, iso_timestamp, utc_now


class DeliveryOutcome(str, Enum):
    """Terminal state of one endpoint's delivery."""

    SUCCEEDED = "succeeded"
    REJECTED = "rejected"  # URL or payload failed validation, never sent
    SKIPPED = "skipped"  # Health score below threshold, never sent
    RATE_LIMITED = "rate_limited"  # Endpoint over its send quota, never sent
    FAILED = "failed"  # Single-attempt send failed, not dead-lettered
    DEAD_LETTERED = "dead_lettered"  # Retry budget exhausted
    ERROR = "error"  # Unexpected exception inside the delivery task


class WebhookEndpoint(BaseModel):
    """An outgoing webhook subscription, as held by the endpoint registry.

    Registry rows are validated here at the boundary. The column names of
    the persisted configuration store (``webhook_url``, ``secret_key``) are
    accepted as aliases.

    Attributes:
        id: Endpoint identifier.
        name: Display name.
        url: Destination URL. SSRF validation happens at send time.
        event_type: Event the endpoint subscribes to.
        enabled: Disabled endpoints are never dispatched to.
        secret: Shared secret for HMAC-SHA256 signatures (optional).
        headers: Extra headers sent with every delivery.
        timeout_ms: Per-attempt timeout override.
        retry_count: Attempt budget override.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(default_factory=lambda: generate_id("whk"))
    name: str = Field(default="", description="Display name")
    url: str = Field(
        validation_alias=AliasChoices("url", "webhook_url"),
        description="Destination URL",
    )
    event_type: str = Field(description="Subscribed event type")
    enabled: bool = Field(default=True, description="Whether the endpoint is active")
    secret: str | None = Field(
        default=None,
        validation_alias=AliasChoices("secret", "secret_key"),
        description="Shared secret for HMAC-SHA256 signatures",
    )
    headers: dict[str, str] = Field(default_factory=dict, description="Custom headers")
    timeout_ms: int | None = Field(default=None, gt=0, description="Per-attempt timeout")
    retry_count: int | None = Field(default=None, ge=1, le=10, description="Attempt budget")

    @field_validator("headers", mode="before")
    @classmethod
    def _null_headers(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("secret", mode="before")
    @classmethod
    def _blank_secret(cls, value: Any) -> Any:
        return value or None

    def subscribes_to(self, event_type: str) -> bool:
        """Check if this endpoint should receive the given event."""
        return self.enabled and self.event_type == event_type


class WebhookPayload(BaseModel):
    """Envelope delivered as the JSON body of every webhook.

    Frozen: the dispatcher builds one per trigger and the delivery engine
    derives a copy carrying the delivery id, so the caller's payload is
    never mutated.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    event: str = Field(description="Event name")
    timestamp: str = Field(default_factory=iso_timestamp, description="ISO-8601 timestamp")
    data: dict[str, Any] = Field(default_factory=dict, description="Event data")
    idempotency_key: str | None = Field(default=None, description="Caller-supplied key")
    delivery_id: str | None = Field(default=None, description="Stable across retries")

    @classmethod
    def create(
        cls,
        event: str,
        data: dict[str, Any] | None = None,
        idempotency_key: str | None = None,
    ) -> WebhookPayload:
        return cls(event=event, data=dict(data or {}), idempotency_key=idempotency_key)

    def with_delivery_id(self, delivery_id: str) -> WebhookPayload:
        return self.model_copy(update={"delivery_id": delivery_id})

    def to_body(self) -> dict[str, Any]:
        """Wire body: ``{event, timestamp, data, idempotency_key?, delivery_id}``."""
        body: dict[str, Any] = {
            "event": self.event,
            "timestamp": self.timestamp,
            "data": self.data,
        }
        if self.idempotency_key is not None:
            body["idempotency_key"] = self.idempotency_key
        if self.delivery_id is not None:
            body["delivery_id"] = self.delivery_id
        return body

    def serialize(self) -> str:
        """Compact JSON string; this exact string is what gets signed and sent."""
        return json.dumps(
            self.to_body(),
            separators=(",", ":"),
            ensure_ascii=False,
            default=str,
        )


class DeliveryResult(BaseModel):
    """Outcome of delivering one event to one endpoint.

    Attributes:
        success: Whether the receiver acknowledged with a 2xx.
        status_code: HTTP status of the last attempt, if any.
        latency_ms: Response latency of the last attempt.
        error: Error message if delivery failed.
        endpoint_id: Endpoint the result belongs to.
        delivery_id: Delivery identifier, if one was assigned.
        attempts: Send attempts made (0 for pre-flight rejections).
        outcome: Terminal delivery state.
        should_disable: Health tracker signal after the last attempt.
        hint: Operator hint, attached to test deliveries.
    """

    model_config = ConfigDict(extra="forbid")

    success: bool
    status_code: int | None = None
    latency_ms: int = Field(default=0, ge=0)
    error: str | None = None
    endpoint_id: str
    delivery_id: str | None = None
    attempts: int = Field(default=0, ge=0)
    outcome: DeliveryOutcome
    should_disable: bool = False
    hint: str | None = None


class TriggerResult(BaseModel):
    """Aggregate result of fanning one event out to its subscribers."""

    model_config = ConfigDict(extra="forbid")

    sent: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    results: list[DeliveryResult] = Field(default_factory=list)

    @classmethod
    def from_results(cls, results: list[DeliveryResult]) -> TriggerResult:
        sent = sum(1 for result in results if result.success)
        return cls(sent=sent, failed=len(results) - sent, results=results)


class DeliveryLogEntry(BaseModel):
    """Persisted record of a delivery's final attempt."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=lambda: generate_id("log"))
    endpoint_id: str
    event_type: str
    payload: dict[str, Any]
    status_code: int | None = None
    response_body: Any = None
    latency_ms: int = Field(default=0, ge=0)
    error: str | None = None
    delivery_id: str
    attempt_count: int = Field(ge=1)
    created_at: datetime = Field(default_factory=utc_now)


__all__ = [
    "DeliveryLogEntry",
    "DeliveryOutcome",
    "DeliveryResult",
    "TriggerResult",
    "WebhookEndpoint",
    "WebhookPayload",
]
