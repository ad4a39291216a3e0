"""Tests for Shopfloor exception hierarchy."""

import pytest

from shopfloor.exceptions import (
    ConfigurationError,
    DeliveryError,
    NotFoundError,
    RateLimitError,
    RegistryError,
    ShopfloorError,
    ValidationError,
)


class TestShopfloorError:
    """Tests for the base ShopfloorError class."""

    def test_error_message(self):
        """Should store and return message."""
        error = ShopfloorError("Something went wrong")
        assert error.message == "Something went wrong"
        assert str(error) == "Something went wrong"

    def test_to_dict(self):
        """Should convert to API-friendly dict."""
        assert ShopfloorError("Something went wrong").to_dict() == {
            "error": {
                "code": "shopfloor_error",
                "message": "Something went wrong",
            }
        }

    def test_inheritance(self):
        """All custom exceptions should inherit from ShopfloorError."""
        exceptions = [
            ValidationError("url", "invalid"),
            NotFoundError("dead_letter_entry", "dlq_1"),
            RegistryError("unavailable"),
            DeliveryError("HTTP 500: Internal Server Error", status_code=500),
            RateLimitError(60),
            ConfigurationError("missing"),
        ]
        for exc in exceptions:
            assert isinstance(exc, ShopfloorError)

    def test_catch_all(self):
        """A single except clause should catch every subclass."""
        with pytest.raises(ShopfloorError):
            raise RegistryError("database unavailable")


class TestValidationError:
    """Tests for ValidationError."""

    def test_message_includes_field(self):
        error = ValidationError("url", "Private IP addresses are not allowed")
        assert error.field == "url"
        assert error.message == "url: Private IP addresses are not allowed"
        assert error.to_dict()["error"]["field"] == "url"
        assert error.to_dict()["error"]["code"] == "validation_error"


class TestNotFoundError:
    """Tests for NotFoundError."""

    def test_attributes(self):
        error = NotFoundError("dead_letter_entry", "dlq_1")
        assert error.resource_type == "dead_letter_entry"
        assert error.resource_id == "dlq_1"
        assert error.message == "dead_letter_entry not found: dlq_1"
        assert error.to_dict()["error"]["resource_id"] == "dlq_1"


class TestDeliveryError:
    """Tests for DeliveryError."""

    def test_carries_response(self):
        error = DeliveryError("HTTP 503: Service Unavailable", 503, {"retry": True})
        assert error.status_code == 503
        assert error.response_body == {"retry": True}
        assert error.code == "delivery_error"

    def test_transport_failure_has_no_status(self):
        error = DeliveryError("Request timed out after 10s")
        assert error.status_code is None
        assert error.response_body is None


class TestRateLimitError:
    """Tests for RateLimitError."""

    def test_retry_after(self):
        error = RateLimitError(42)
        assert error.retry_after == 42
        assert error.message == "Rate limit exceeded. Retry after 42s"
        assert error.to_dict() == {
            "error": {
                "code": "rate_limit_exceeded",
                "retry_after": 42,
                "message": "Rate limit exceeded. Retry after 42s",
            }
        }
