"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from shopfloor.models import DeadLetterEntry, HealthStats


class TriggerRequest(BaseModel):
    """Request body for triggering an event.

    Attributes:
        event_type: Event name, e.g. work_order_created.
        data: Event data delivered under ``data``.
        idempotency_key: Optional key; repeats replay the first result.
        priority: Optional priority hint.
    """

    model_config = ConfigDict(extra="forbid")

    event_type: str = Field(min_length=1, description="Event name")
    data: dict[str, Any] = Field(default_factory=dict, description="Event data")
    idempotency_key: str | None = Field(
        default=None, min_length=1, description="Deduplication key"
    )
    priority: Literal["low", "normal", "high"] | None = Field(
        default=None, description="Priority hint"
    )


class TestWebhookRequest(BaseModel):
    """Request body for a test delivery."""

    __test__ = False  # not a pytest test class

    model_config = ConfigDict(extra="forbid")

    url: str = Field(min_length=1, description="Endpoint URL to verify")
    secret: str | None = Field(default=None, description="Optional signing secret")


class DeadLetterResponse(BaseModel):
    """A dead letter as shown to operators; the endpoint secret is never included."""

    model_config = ConfigDict(extra="forbid")

    id: str
    endpoint_id: str
    endpoint_name: str
    endpoint_url: str
    payload: dict[str, Any]
    error: str
    attempts: int
    created_at: datetime
    last_attempt_at: datetime

    @classmethod
    def from_entry(cls, entry: DeadLetterEntry) -> DeadLetterResponse:
        return cls(
            id=entry.id,
            endpoint_id=entry.endpoint_id,
            endpoint_name=entry.endpoint_name,
            endpoint_url=entry.endpoint_url,
            payload=entry.payload.to_body(),
            error=entry.error,
            attempts=entry.attempts,
            created_at=entry.created_at,
            last_attempt_at=entry.last_attempt_at,
        )


class DeadLetterListResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    entries: list[DeadLetterResponse]
    count: int


class ClearResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cleared: int


class EndpointHealthResponse(BaseModel):
    """Health statistics and score for one endpoint.

    Attributes:
        endpoint_id: Endpoint the figures belong to.
        stats: Rolling statistics, or None if nothing was recorded.
        score: Health score 0-100.
    """

    model_config = ConfigDict(extra="forbid")

    endpoint_id: str
    stats: HealthStats | None
    score: int = Field(ge=0, le=100)


class EventTypeInfo(BaseModel):
    model_config = ConfigDict(extra="forbid")

    event_type: str
    label: str
    description: str


class EventCatalogResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    categories: dict[str, list[EventTypeInfo]]


class HealthResponse(BaseModel):
    """Response for health check endpoint.

    Attributes:
        status: Service status (healthy, unhealthy).
        version: API version.
        service_initialized: Whether the webhook service is running.
    """

    model_config = ConfigDict(extra="forbid")

    status: Literal["healthy", "unhealthy"]
    version: str
    service_initialized: bool
