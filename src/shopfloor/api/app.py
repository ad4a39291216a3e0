"""FastAPI application for the Shopfloor webhook operator API."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shopfloor import __version__
from shopfloor.config import Settings
from shopfloor.exceptions import (
    ConfigurationError,
    NotFoundError,
    RateLimitError,
    ShopfloorError,
    ValidationError,
)
from shopfloor.logging import configure_logging, get_logger
from shopfloor.storage import EndpointRegistry, InMemoryEndpointRegistry, JsonFileEndpointRegistry
from shopfloor.webhooks import WebhookService

from .router import router, set_service

logger = get_logger(__name__)


def build_registry(settings: Settings) -> EndpointRegistry:
    """Endpoint registry for the configured environment.

    Raises:
        ConfigurationError: In production without an endpoints file.
    """
    if settings.endpoints_file:
        return JsonFileEndpointRegistry(settings.endpoints_file)
    if settings.env == "production":
        raise ConfigurationError(
            "SHOPFLOOR_ENDPOINTS_FILE must be set in production; "
            "the operator API would otherwise dispatch to no endpoints"
        )
    logger.warning("No endpoints file configured, using an empty in-memory registry")
    return InMemoryEndpointRegistry()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan.

    Builds the WebhookService (unless one was injected) and starts its
    periodic sweeps on startup; stops them on shutdown.
    """
    settings: Settings = app.state.settings

    configure_logging(level=settings.log_level, format=settings.log_format)
    logger.info(
        "Starting Shopfloor webhook API",
        log_level=settings.log_level,
        log_format=settings.log_format,
    )

    service: WebhookService | None = app.state.service
    if service is None:
        service = WebhookService.create(settings, registry=build_registry(settings))

    await service.initialize()
    set_service(service)

    yield

    await service.close()
    set_service(None)


def register_exception_handlers(app: FastAPI) -> None:
    """Map the exception hierarchy onto HTTP status codes."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Handle validation errors with 400 status."""
        logger.warning(
            "Validation error", field=exc.field, error=exc.message, path=str(request.url)
        )
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(NotFoundError)
    async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        """Handle not found errors with 404 status."""
        logger.info(
            "Resource not found",
            resource_type=exc.resource_type,
            resource_id=exc.resource_id,
            path=str(request.url),
        )
        return JSONResponse(status_code=404, content=exc.to_dict())

    @app.exception_handler(RateLimitError)
    async def rate_limit_error_handler(request: Request, exc: RateLimitError) -> JSONResponse:
        """Handle rate limit errors with 429 status."""
        logger.warning("Rate limit exceeded", retry_after=exc.retry_after, path=str(request.url))
        return JSONResponse(
            status_code=429,
            content=exc.to_dict(),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(ShopfloorError)
    async def shopfloor_error_handler(request: Request, exc: ShopfloorError) -> JSONResponse:
        """Handle all other Shopfloor errors with 500 status."""
        logger.error("Shopfloor error", error=exc.message, code=exc.code, path=str(request.url))
        return JSONResponse(status_code=500, content=exc.to_dict())


def create_app(
    settings: Settings | None = None,
    service: WebhookService | None = None,
) -> FastAPI:
    """Create a FastAPI application.

    Args:
        settings: Optional settings. Uses environment if None.
        service: Optional pre-built service, used by tests.

    Returns:
        Configured FastAPI application.

    Raises:
        ConfigurationError: In production without an endpoints file.

    Example:
        ```python
        from shopfloor.api import create_app

        app = create_app()
        # Run with: uvicorn shopfloor.api:create_app --factory
        ```
    """
    if settings is None:
        settings = Settings()

    # Fail at construction, not on the first request.
    if service is None and settings.env == "production" and not settings.endpoints_file:
        build_registry(settings)

    app = FastAPI(
        title="Shopfloor Webhooks",
        description="Outgoing webhook delivery for manufacturing events.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.service = service

    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_methods=["GET", "POST", "DELETE"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.include_router(router, prefix="/api/v1")

    return app
