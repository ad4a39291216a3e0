"""Configuration management for Shopfloor webhooks."""

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

ONE_MIB = 1024 * 1024


class Settings(BaseSettings):
    """Shopfloor configuration loaded from environment variables.

    All settings can be overridden via environment variables with
    the SHOPFLOOR_ prefix. For example:
        SHOPFLOOR_WEBHOOK_TIMEOUT_SECONDS=5
        SHOPFLOOR_DEAD_LETTER_CAPACITY=500
    """

    # Environment
    env: Literal["development", "production", "test"] = Field(
        default="development",
        description="Environment: development, production, or test",
    )

    # Delivery
    webhook_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="Default per-attempt timeout when an endpoint has no override",
    )
    webhook_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Default delivery attempts when an endpoint has no override",
    )
    webhook_backoff_multiplier: float = Field(
        default=2.0,
        ge=0.0,
        description="Backoff before attempt n+1 is multiplier * 2^(n-1) seconds",
    )
    webhook_backoff_max_seconds: float = Field(
        default=300.0,
        ge=0.0,
        description="Upper bound for a single backoff delay",
    )
    webhook_user_agent: str = Field(
        default="Shopfloor-Webhook/1.0",
        description="User-Agent header sent with every delivery",
    )
    webhook_response_body_limit: int = Field(
        default=1000,
        ge=0,
        description="Characters of the receiver's response kept in the delivery log",
    )
    webhook_resolve_dns: bool = Field(
        default=False,
        description="Resolve hostnames and reject any that map to a non-public address",
    )
    max_payload_bytes: int = Field(
        default=ONE_MIB,
        ge=1,
        description="Largest serialized payload accepted for delivery",
    )

    # Health tracking
    health_score_threshold: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Endpoints scoring below this are skipped without a network call",
    )
    health_failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures that raise the should-disable signal",
    )

    # Idempotency
    idempotency_ttl_seconds: float = Field(
        default=24 * 60 * 60,
        gt=0.0,
        description="How long a trigger result is replayed for a repeated key",
    )
    idempotency_sweep_interval_seconds: float = Field(
        default=60 * 60,
        gt=0.0,
        description="Interval between sweeps of expired idempotency records",
    )

    # Rate limiting
    rate_limit_window_seconds: float = Field(
        default=60.0,
        gt=0.0,
        description="Fixed window length",
    )
    rate_limit_max_requests: int = Field(
        default=100,
        ge=1,
        description="Requests allowed per identifier per window",
    )
    rate_limit_sweep_interval_seconds: float = Field(
        default=60.0,
        gt=0.0,
        description="Interval between sweeps of expired rate-limit windows",
    )

    # Dead letters
    dead_letter_capacity: int = Field(
        default=1000,
        ge=1,
        description="Maximum dead-letter entries held before the oldest is evicted",
    )

    # Endpoint registry for the operator API
    endpoints_file: str | None = Field(
        default=None,
        description="JSON file holding the endpoint registry rows",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format",
    )

    # CORS for the operator API
    cors_enabled: bool = Field(default=False, description="Enable CORS middleware")
    cors_allow_origins: list[str] = Field(
        default_factory=list,
        description="Origins allowed to call the operator API",
    )

    @model_validator(mode="after")
    def validate_backoff(self) -> "Settings":
        """The backoff cap must not undercut the first delay."""
        if self.webhook_backoff_max_seconds < self.webhook_backoff_multiplier:
            raise ValueError(
                f"webhook_backoff_max_seconds ({self.webhook_backoff_max_seconds}) must be at "
                f"least webhook_backoff_multiplier ({self.webhook_backoff_multiplier})"
            )
        return self

    @property
    def backoff_schedule(self) -> list[float]:
        """Delays slept between attempts for the default attempt budget."""
        return [
            min(self.webhook_backoff_multiplier * 2 ** (n - 1), self.webhook_backoff_max_seconds)
            for n in range(1, self.webhook_max_attempts)
        ]

    model_config = {
        "env_prefix": "SHOPFLOOR_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


# Global settings instance
settings = Settings()
