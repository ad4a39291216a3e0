"""Outgoing webhook delivery for Shopfloor.

Provides HMAC-signed webhook delivery with SSRF-safe validation,
exponential backoff retry, per-endpoint health tracking, idempotent
triggers and a dead letter queue.

Example:
    ```python
    from shopfloor.webhooks import WebhookService, verify_signature

    async with WebhookService.create(registry=registry) as webhooks:
        await webhooks.trigger_webhook("work_order_completed", {"wo_number": "WO-001"})

    # On the receiving side
    verify_signature(body, request.headers["X-Webhook-Signature"], secret)
    ```
"""

from .dead_letter import DeadLetterQueue
from .delivery import SIGNATURE_HEADER, DeliveryEngine
from .dispatcher import EventDispatcher
from .health import HealthTracker
from .hints import diagnose
from .idempotency import IdempotencyCache
from .rate_limit import RateLimiter
from .service import WebhookService
from .signing import compute_signature, generate_secret, mask_secret, verify_signature
from .sweeper import sweep_task
from .validation import (
    is_public_address,
    validate_payload,
    validate_resolved_webhook_url,
    validate_webhook_url,
)

__all__ = [
    "SIGNATURE_HEADER",
    "DeadLetterQueue",
    "DeliveryEngine",
    "EventDispatcher",
    "HealthTracker",
    "IdempotencyCache",
    "RateLimiter",
    "WebhookService",
    "compute_signature",
    "diagnose",
    "generate_secret",
    "is_public_address",
    "mask_secret",
    "sweep_task",
    "validate_payload",
    "validate_resolved_webhook_url",
    "validate_webhook_url",
    "verify_signature",
]
