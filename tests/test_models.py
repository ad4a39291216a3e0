"""Unit tests for Shopfloor models."""

import json
import re

import pytest
from pydantic import ValidationError

from shopfloor.models import (
    DeliveryOutcome,
    DeliveryResult,
    HealthStats,
    TriggerResult,
    WebhookEndpoint,
    WebhookPayload,
    generate_id,
    iso_timestamp,
)


class TestHelpers:
    """Tests for id and timestamp helpers."""

    def test_generate_id_prefix(self):
        assert re.fullmatch(r"del_[0-9a-f]{12}", generate_id("del"))

    def test_generate_id_unique(self):
        assert len({generate_id("whk") for _ in range(100)}) == 100

    def test_iso_timestamp_format(self):
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", iso_timestamp())


class TestWebhookEndpoint:
    """Tests for WebhookEndpoint model."""

    def test_generates_id(self):
        endpoint = WebhookEndpoint(url="https://a.example.com", event_type="shift_started")
        assert endpoint.id.startswith("whk_")

    def test_enabled_by_default(self):
        endpoint = WebhookEndpoint(url="https://a.example.com", event_type="shift_started")
        assert endpoint.enabled is True
        assert endpoint.headers == {}
        assert endpoint.secret is None

    def test_subscribes_to(self):
        endpoint = WebhookEndpoint(url="https://a.example.com", event_type="shift_started")
        assert endpoint.subscribes_to("shift_started") is True
        assert endpoint.subscribes_to("shift_ended") is False

    def test_disabled_does_not_subscribe(self):
        endpoint = WebhookEndpoint(
            url="https://a.example.com", event_type="shift_started", enabled=False
        )
        assert endpoint.subscribes_to("shift_started") is False

    def test_blank_secret_is_none(self):
        endpoint = WebhookEndpoint(url="https://a.example.com", event_type="x", secret="")
        assert endpoint.secret is None

    def test_frozen(self):
        endpoint = WebhookEndpoint(url="https://a.example.com", event_type="x")
        with pytest.raises(ValidationError):
            endpoint.url = "https://b.example.com"

    @pytest.mark.parametrize("retry_count", [0, 11])
    def test_retry_count_bounds(self, retry_count):
        with pytest.raises(ValidationError):
            WebhookEndpoint(url="https://a.example.com", event_type="x", retry_count=retry_count)


class TestWebhookPayload:
    """Tests for WebhookPayload model."""

    def test_create_copies_data(self):
        data = {"wo_number": "WO-001"}
        payload = WebhookPayload.create("work_order_created", data)
        data["wo_number"] = "changed"
        assert payload.data == {"wo_number": "WO-001"}

    def test_with_delivery_id_returns_copy(self):
        payload = WebhookPayload.create("work_order_created", {})
        stamped = payload.with_delivery_id("del_1")

        assert stamped.delivery_id == "del_1"
        assert payload.delivery_id is None
        assert stamped.timestamp == payload.timestamp

    def test_serialize_is_compact_json(self):
        payload = WebhookPayload(
            event="work_order_created",
            timestamp="2024-05-01T08:00:00.000Z",
            data={"operator": "Zoë", "qty": 3},
            delivery_id="del_1",
        )

        assert payload.serialize() == (
            '{"event":"work_order_created","timestamp":"2024-05-01T08:00:00.000Z",'
            '"data":{"operator":"Zoë","qty":3},"delivery_id":"del_1"}'
        )

    def test_serialize_non_json_values_as_strings(self):
        from datetime import date

        payload = WebhookPayload.create("shift_started", {"day": date(2024, 5, 1)})
        assert json.loads(payload.serialize())["data"] == {"day": "2024-05-01"}

    def test_extra_fields_rejected(self):
        with pytest.raises(ValidationError):
            WebhookPayload(event="x", priority="high")


class TestResults:
    """Tests for DeliveryResult and TriggerResult."""

    def test_trigger_result_from_results(self):
        results = [
            DeliveryResult(success=True, endpoint_id="a", outcome=DeliveryOutcome.SUCCEEDED),
            DeliveryResult(success=False, endpoint_id="b", outcome=DeliveryOutcome.SKIPPED),
            DeliveryResult(success=False, endpoint_id="c", outcome=DeliveryOutcome.DEAD_LETTERED),
        ]

        trigger = TriggerResult.from_results(results)

        assert trigger.sent == 1
        assert trigger.failed == 2
        assert trigger.results == results

    def test_outcome_serializes_as_string(self):
        result = DeliveryResult(success=True, endpoint_id="a", outcome=DeliveryOutcome.SUCCEEDED)
        assert result.model_dump(mode="json")["outcome"] == "succeeded"

    def test_health_stats_success_rate(self):
        assert HealthStats().success_rate == 1.0
        assert HealthStats(total_calls=4, success_count=3, failure_count=1).success_rate == 0.75
