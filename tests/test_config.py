"""Unit tests for Shopfloor configuration."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from shopfloor.config import ONE_MIB, Settings


class TestSettings:
    """Tests for Settings model."""

    def test_default_settings(self):
        """Default settings should match the delivery contract."""
        # Use _env_file=None to prevent reading from .env file
        settings = Settings(_env_file=None)
        assert settings.webhook_timeout_seconds == 10.0
        assert settings.webhook_max_attempts == 3
        assert settings.max_payload_bytes == ONE_MIB
        assert settings.health_score_threshold == 20
        assert settings.health_failure_threshold == 5
        assert settings.idempotency_ttl_seconds == 86400
        assert settings.rate_limit_window_seconds == 60.0
        assert settings.rate_limit_max_requests == 100
        assert settings.dead_letter_capacity == 1000
        assert settings.endpoints_file is None

    def test_backoff_schedule(self):
        """Default schedule waits 2s then 4s between three attempts."""
        settings = Settings(_env_file=None)
        assert settings.backoff_schedule == [2.0, 4.0]

    def test_backoff_schedule_capped(self):
        """Delays never exceed the configured cap."""
        settings = Settings(
            webhook_max_attempts=6,
            webhook_backoff_max_seconds=10.0,
            _env_file=None,
        )
        assert settings.backoff_schedule == [2.0, 4.0, 8.0, 10.0, 10.0]

    def test_backoff_cap_below_multiplier_rejected(self):
        """The cap must not be smaller than the first delay."""
        with pytest.raises(ValidationError, match="webhook_backoff_max_seconds"):
            Settings(
                webhook_backoff_multiplier=5.0,
                webhook_backoff_max_seconds=1.0,
                _env_file=None,
            )

    def test_log_formats(self):
        """Only valid log formats should be accepted."""
        assert Settings(log_format="text", _env_file=None).log_format == "text"
        with pytest.raises(ValidationError):
            Settings(log_format="xml", _env_file=None)

    def test_bounds(self):
        """Out-of-range values should be rejected."""
        with pytest.raises(ValidationError):
            Settings(webhook_max_attempts=0, _env_file=None)
        with pytest.raises(ValidationError):
            Settings(health_score_threshold=101, _env_file=None)
        with pytest.raises(ValidationError):
            Settings(webhook_timeout_seconds=0, _env_file=None)

    def test_env_prefix(self):
        """Settings should use SHOPFLOOR_ prefix for environment variables."""
        with patch.dict(os.environ, {"SHOPFLOOR_LOG_LEVEL": "DEBUG"}):
            settings = Settings(_env_file=None)
            assert settings.log_level == "DEBUG"

    def test_env_delivery_overrides(self):
        """Delivery tuning can be overridden from the environment."""
        env = {
            "SHOPFLOOR_WEBHOOK_TIMEOUT_SECONDS": "5",
            "SHOPFLOOR_DEAD_LETTER_CAPACITY": "500",
            "SHOPFLOOR_WEBHOOK_RESOLVE_DNS": "true",
        }
        with patch.dict(os.environ, env):
            settings = Settings(_env_file=None)
            assert settings.webhook_timeout_seconds == 5.0
            assert settings.dead_letter_capacity == 500
            assert settings.webhook_resolve_dns is True
