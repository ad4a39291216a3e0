"""FastAPI router for the webhook operator API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from shopfloor import __version__
from shopfloor.exceptions import RateLimitError
from shopfloor.models import (
    DeliveryResult,
    RateLimitResult,
    TriggerResult,
    get_event_types_by_category,
    get_event_type_metadata,
)
from shopfloor.webhooks import WebhookService

from .schemas import (
    ClearResponse,
    DeadLetterListResponse,
    DeadLetterResponse,
    EndpointHealthResponse,
    EventCatalogResponse,
    EventTypeInfo,
    HealthResponse,
    TestWebhookRequest,
    TriggerRequest,
)


router = APIRouter()

# Service instance (set by app lifespan)
_service: WebhookService | None = None


def set_service(service: WebhookService | None) -> None:
    """Set the global service instance."""
    global _service
    _service = service


async def get_service() -> WebhookService:
    """Dependency to get the WebhookService instance."""
    if _service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return _service


ServiceDep = Annotated[WebhookService, Depends(get_service)]


def client_identifier(request: Request) -> str:
    """Rate-limit key for the calling client, prefixed to keep it apart from endpoint ids."""
    if request.client and request.client.host:
        return f"ip:{request.client.host}"
    return "ip:unknown"


async def enforce_rate_limit(
    request: Request,
    response: Response,
    service: ServiceDep,
) -> RateLimitResult:
    """Count the request against the client's window.

    Raises:
        RateLimitError: If the client is over its limit.
    """
    limiter = service.rate_limiter
    result = limiter.check(client_identifier(request))
    if not result.allowed:
        raise RateLimitError(result.retry_after(limiter.now()))

    response.headers["X-RateLimit-Limit"] = str(limiter.max_requests)
    response.headers["X-RateLimit-Remaining"] = str(result.remaining)
    response.headers["X-RateLimit-Reset"] = str(int(result.reset_time))
    return result


RateLimitDep = Annotated[RateLimitResult, Depends(enforce_rate_limit)]


@router.get("/health", response_model=HealthResponse, tags=["system"])
async def health_check() -> HealthResponse:
    """Check service health."""
    initialized = _service is not None
    return HealthResponse(
        status="healthy" if initialized else "unhealthy",
        version=__version__,
        service_initialized=initialized,
    )


@router.post("/webhooks/trigger", response_model=TriggerResult, tags=["webhooks"])
async def trigger_webhook(
    request: TriggerRequest,
    service: ServiceDep,
    _rate_limit: RateLimitDep,
) -> TriggerResult:
    """Deliver an event to every enabled endpoint subscribed to it.

    Delivery failures are reported in the result, never as an error status.
    """
    return await service.trigger_webhook(
        request.event_type,
        request.data,
        idempotency_key=request.idempotency_key,
        priority=request.priority,
    )


@router.post("/webhooks/test", response_model=DeliveryResult, tags=["webhooks"])
async def send_test_webhook(
    request: TestWebhookRequest,
    service: ServiceDep,
    _rate_limit: RateLimitDep,
) -> DeliveryResult:
    """Send one test event to a URL and explain the outcome."""
    return await service.send_test_webhook(request.url, request.secret)


@router.get(
    "/webhooks/dead-letters",
    response_model=DeadLetterListResponse,
    tags=["dead-letters"],
)
async def list_dead_letters(service: ServiceDep) -> DeadLetterListResponse:
    entries = [DeadLetterResponse.from_entry(entry) for entry in service.get_dead_letter_queue()]
    return DeadLetterListResponse(entries=entries, count=len(entries))


@router.post(
    "/webhooks/dead-letters/{entry_id}/retry",
    response_model=DeliveryResult,
    tags=["dead-letters"],
)
async def retry_dead_letter(entry_id: str, service: ServiceDep) -> DeliveryResult:
    """Re-send a dead letter once. Unknown ids return 404."""
    return await service.retry_dead_letter_entry(entry_id)


@router.delete("/webhooks/dead-letters", response_model=ClearResponse, tags=["dead-letters"])
async def clear_dead_letters(service: ServiceDep) -> ClearResponse:
    cleared = len(service.dead_letters)
    service.clear_dead_letter_queue()
    return ClearResponse(cleared=cleared)


@router.get(
    "/webhooks/endpoints/{endpoint_id}/health",
    response_model=EndpointHealthResponse,
    tags=["health"],
)
async def get_endpoint_health(endpoint_id: str, service: ServiceDep) -> EndpointHealthResponse:
    return EndpointHealthResponse(
        endpoint_id=endpoint_id,
        stats=service.get_webhook_health(endpoint_id),
        score=service.calculate_health_score(endpoint_id),
    )


@router.delete(
    "/webhooks/endpoints/{endpoint_id}/health",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["health"],
)
async def reset_endpoint_health(endpoint_id: str, service: ServiceDep) -> Response:
    service.reset_webhook_health(endpoint_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/webhooks/events", response_model=EventCatalogResponse, tags=["events"])
async def list_event_types() -> EventCatalogResponse:
    """Event types endpoints can subscribe to, grouped by category."""
    categories: dict[str, list[EventTypeInfo]] = {}
    for category, event_types in get_event_types_by_category().items():
        infos = []
        for event_type in event_types:
            metadata = get_event_type_metadata(event_type)
            infos.append(
                EventTypeInfo(
                    event_type=event_type,
                    label=metadata.label,
                    description=metadata.description,
                )
            )
        categories[category] = infos
    return EventCatalogResponse(categories=categories)
