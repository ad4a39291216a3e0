"""Shopfloor exception hierarchy.

All exceptions inherit from ShopfloorError so callers can catch every
webhook infrastructure failure with a single except clause. Note that the
public trigger path never raises: these exceptions are recovered inside
the delivery engine and the dispatcher.
"""

from __future__ import annotations


class ShopfloorError(Exception):
    """Base exception for all Shopfloor errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code for API responses.
    """

    code: str = "shopfloor_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }


class ValidationError(ShopfloorError):
    """Invalid input provided.

    Attributes:
        field: The field that failed validation.
    """

    code: str = "validation_error"

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        return {
            "error": {
                "code": self.code,
                "field": self.field,
                "message": self.message,
            }
        }


class NotFoundError(ShopfloorError):
    """Resource not found.

    Attributes:
        resource_type: Type of resource (e.g., "dead_letter_entry").
        resource_id: ID of the missing resource.
    """

    code: str = "not_found"

    def __init__(self, resource_type: str, resource_id: str) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} not found: {resource_id}")

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        return {
            "error": {
                "code": self.code,
                "resource_type": self.resource_type,
                "resource_id": self.resource_id,
                "message": self.message,
            }
        }


class RegistryError(ShopfloorError):
    """Endpoint registry lookup failed."""

    code: str = "registry_error"


class DeliveryError(ShopfloorError):
    """A single webhook send attempt failed.

    Raised for timeouts, connection errors and non-2xx responses. The
    delivery engine retries on this exception and nothing else.

    Attributes:
        status_code: HTTP status returned by the receiver, if any.
        response_body: Receiver response body, if any.
    """

    code: str = "delivery_error"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: object | None = None,
    ) -> None:
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


class RateLimitError(ShopfloorError):
    """Rate limit exceeded.

    Attributes:
        retry_after: Seconds until the client can retry.
    """

    code: str = "rate_limit_exceeded"

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded. Retry after {retry_after}s")

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        return {
            "error": {
                "code": self.code,
                "retry_after": self.retry_after,
                "message": self.message,
            }
        }


class ConfigurationError(ShopfloorError):
    """Required configuration is missing or invalid."""

    code: str = "configuration_error"
