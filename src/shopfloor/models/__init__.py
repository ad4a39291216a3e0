"""Models for Shopfloor webhook delivery.

Delivery Types:
    - WebhookEndpoint: Registry record for a subscribed endpoint
    - WebhookPayload: Wire envelope sent to endpoints
    - DeliveryResult / TriggerResult: Per-endpoint and aggregate outcomes
    - DeliveryLogEntry: Persisted record of a delivery

Operational Types:
    - HealthStats: Rolling per-endpoint statistics
    - DeadLetterEntry: Delivery that exhausted its retries
    - ValidationResult, RateLimitResult, IdempotencyCheck: Check results
"""

from .base import generate_id, iso_timestamp, utc_now
from .checks import IdempotencyCheck, RateLimitResult, ValidationResult
from .dead_letter import DeadLetterEntry
from .events import (
    ALL_EVENT_TYPES,
    EVENT_CATALOG,
    EventType,
    EventTypeMetadata,
    get_event_type_metadata,
    get_event_types_by_category,
)
from .health import HealthRecordResult, HealthStats
from .webhook import (
    DeliveryLogEntry,
    DeliveryOutcome,
    DeliveryResult,
    TriggerResult,
    WebhookEndpoint,
    WebhookPayload,
)

__all__ = [
    # Helpers
    "generate_id",
    "iso_timestamp",
    "utc_now",
    # Delivery types
    "DeliveryLogEntry",
    "DeliveryOutcome",
    "DeliveryResult",
    "TriggerResult",
    "WebhookEndpoint",
    "WebhookPayload",
    # Operational types
    "DeadLetterEntry",
    "HealthRecordResult",
    "HealthStats",
    "IdempotencyCheck",
    "RateLimitResult",
    "ValidationResult",
    # Event catalog
    "ALL_EVENT_TYPES",
    "EVENT_CATALOG",
    "EventType",
    "EventTypeMetadata",
    "get_event_type_metadata",
    "get_event_types_by_category",
]
