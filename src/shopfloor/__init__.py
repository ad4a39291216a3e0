"""Shopfloor: outgoing webhooks for manufacturing execution events.

Delivers business events (work orders, production steps, materials,
certificates) to external HTTP endpoints with HMAC signatures, retries,
health tracking and a dead letter queue.

Quick Start:
    from shopfloor import WebhookEndpoint, WebhookService, generate_secret
    from shopfloor.storage import InMemoryEndpointRegistry

    registry = InMemoryEndpointRegistry()
    registry.register(
        WebhookEndpoint(
            name="ERP",
            url="https://erp.example.com/hooks/shopfloor",
            event_type="work_order_created",
            secret=generate_secret(),
        )
    )

    async with WebhookService.create(registry=registry) as webhooks:
        result = await webhooks.trigger_webhook(
            "work_order_created",
            {"wo_number": "WO-001"},
            idempotency_key="wo-001-created",
        )
        print(result.sent, result.failed)
"""

__version__ = "0.1.0"

# Configuration
from .config import Settings, settings

# Exceptions
from .exceptions import (
    ConfigurationError,
    DeliveryError,
    NotFoundError,
    RateLimitError,
    RegistryError,
    ShopfloorError,
    ValidationError,
)

# Logging
from .logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)

# Models
from .models import (
    DeadLetterEntry,
    DeliveryLogEntry,
    DeliveryOutcome,
    DeliveryResult,
    HealthStats,
    TriggerResult,
    WebhookEndpoint,
    WebhookPayload,
)

# Webhooks
from .webhooks import (
    WebhookService,
    compute_signature,
    generate_secret,
    mask_secret,
    verify_signature,
)

__all__ = [
    "__version__",
    # Configuration
    "Settings",
    "settings",
    # Exceptions
    "ConfigurationError",
    "DeliveryError",
    "NotFoundError",
    "RateLimitError",
    "RegistryError",
    "ShopfloorError",
    "ValidationError",
    # Logging
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
    # Models
    "DeadLetterEntry",
    "DeliveryLogEntry",
    "DeliveryOutcome",
    "DeliveryResult",
    "HealthStats",
    "TriggerResult",
    "WebhookEndpoint",
    "WebhookPayload",
    # Webhooks
    "WebhookService",
    "compute_signature",
    "generate_secret",
    "mask_secret",
    "verify_signature",
]
