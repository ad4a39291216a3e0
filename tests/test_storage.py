"""Tests for the endpoint registry and delivery log collaborators."""

import json

import pytest

from shopfloor.exceptions import RegistryError
from shopfloor.models import DeliveryLogEntry, WebhookEndpoint
from shopfloor.storage import (
    InMemoryDeliveryLog,
    InMemoryEndpointRegistry,
    JsonFileEndpointRegistry,
    NullDeliveryLog,
    parse_endpoint_rows,
)

ROWS = [
    {
        "id": "whk_erp",
        "name": "ERP sync",
        "webhook_url": "https://erp.example.com/hook",
        "event_type": "work_order_created",
        "enabled": True,
        "secret_key": "abc123",
        "headers": {"X-Plant": "NL-01"},
        "timeout_ms": 5000,
        "retry_count": 2,
        "created_at": "2024-01-01T00:00:00Z",
    },
    {
        "id": "whk_off",
        "name": "Disabled",
        "webhook_url": "https://off.example.com/hook",
        "event_type": "work_order_created",
        "enabled": False,
        "secret_key": None,
        "headers": None,
    },
    {
        "id": "whk_qc",
        "name": "QC",
        "webhook_url": "https://qc.example.com/hook",
        "event_type": "quality_check_failed",
    },
]


def make_log_entry(endpoint_id: str = "whk_erp", **overrides) -> DeliveryLogEntry:
    fields = {
        "endpoint_id": endpoint_id,
        "event_type": "work_order_created",
        "payload": {"event": "work_order_created"},
        "status_code": 200,
        "latency_ms": 40,
        "delivery_id": "del_1",
        "attempt_count": 1,
    }
    fields.update(overrides)
    return DeliveryLogEntry(**fields)


class TestParseEndpointRows:
    """Tests for boundary validation of registry rows."""

    def test_store_column_names(self):
        [endpoint, disabled, _] = parse_endpoint_rows(ROWS)

        assert endpoint.url == "https://erp.example.com/hook"
        assert endpoint.secret == "abc123"
        assert endpoint.headers == {"X-Plant": "NL-01"}
        assert endpoint.timeout_ms == 5000
        assert endpoint.retry_count == 2
        assert disabled.secret is None
        assert disabled.headers == {}

    def test_models_pass_through(self):
        endpoint = WebhookEndpoint(url="https://a.example.com", event_type="shift_started")
        assert parse_endpoint_rows([endpoint]) == [endpoint]

    def test_invalid_row_raises_registry_error(self):
        with pytest.raises(RegistryError, match="Invalid endpoint row 1"):
            parse_endpoint_rows([ROWS[0], {"name": "missing url"}])

    def test_invalid_retry_count(self):
        with pytest.raises(RegistryError):
            parse_endpoint_rows([{**ROWS[0], "retry_count": 0}])


class TestInMemoryEndpointRegistry:
    """Tests for InMemoryEndpointRegistry."""

    @pytest.mark.asyncio
    async def test_returns_enabled_subscribers(self):
        registry = InMemoryEndpointRegistry(ROWS)

        endpoints = await registry.get_endpoints_for_event("work_order_created")

        assert [e.id for e in endpoints] == ["whk_erp"]

    @pytest.mark.asyncio
    async def test_register_and_remove(self):
        registry = InMemoryEndpointRegistry()
        endpoint = registry.register(ROWS[2])

        assert await registry.get_endpoints_for_event("quality_check_failed") == [endpoint]
        assert registry.remove("whk_qc") is True
        assert registry.remove("whk_qc") is False
        assert registry.list_endpoints() == []

    def test_register_replaces_same_id(self):
        registry = InMemoryEndpointRegistry([ROWS[0]])
        registry.register({**ROWS[0], "name": "ERP v2"})

        [endpoint] = registry.list_endpoints()
        assert endpoint.name == "ERP v2"


class TestJsonFileEndpointRegistry:
    """Tests for JsonFileEndpointRegistry."""

    @pytest.mark.asyncio
    async def test_reads_rows(self, tmp_path):
        path = tmp_path / "endpoints.json"
        path.write_text(json.dumps(ROWS), encoding="utf-8")
        registry = JsonFileEndpointRegistry(path)

        endpoints = await registry.get_endpoints_for_event("work_order_created")

        assert [e.id for e in endpoints] == ["whk_erp"]

    @pytest.mark.asyncio
    async def test_picks_up_edits(self, tmp_path):
        path = tmp_path / "endpoints.json"
        path.write_text("[]", encoding="utf-8")
        registry = JsonFileEndpointRegistry(path)
        assert await registry.get_endpoints_for_event("quality_check_failed") == []

        path.write_text(json.dumps(ROWS), encoding="utf-8")
        assert len(await registry.get_endpoints_for_event("quality_check_failed")) == 1

    def test_missing_file(self, tmp_path):
        registry = JsonFileEndpointRegistry(tmp_path / "missing.json")
        with pytest.raises(RegistryError, match="Cannot read endpoint registry"):
            registry.load()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "endpoints.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(RegistryError):
            JsonFileEndpointRegistry(path).load()

    def test_not_an_array(self, tmp_path):
        path = tmp_path / "endpoints.json"
        path.write_text('{"id": "whk_1"}', encoding="utf-8")
        with pytest.raises(RegistryError, match="must hold a JSON array"):
            JsonFileEndpointRegistry(path).load()


class TestInMemoryDeliveryLog:
    """Tests for InMemoryDeliveryLog."""

    @pytest.mark.asyncio
    async def test_log_and_query(self):
        log = InMemoryDeliveryLog()
        await log.log(make_log_entry("whk_erp", delivery_id="del_1"))
        await log.log(make_log_entry("whk_qc", delivery_id="del_2"))
        await log.log(make_log_entry("whk_erp", delivery_id="del_3"))

        assert len(log) == 3
        assert [e.delivery_id for e in log.for_endpoint("whk_erp")] == ["del_1", "del_3"]
        assert log.latest().delivery_id == "del_3"
        assert log.latest("whk_qc").delivery_id == "del_2"
        assert log.latest("whk_none") is None

    @pytest.mark.asyncio
    async def test_bounded(self):
        log = InMemoryDeliveryLog(max_entries=2)
        for i in range(3):
            await log.log(make_log_entry(delivery_id=f"del_{i}"))

        assert [e.delivery_id for e in log.entries] == ["del_1", "del_2"]

    @pytest.mark.asyncio
    async def test_null_log_discards(self):
        await NullDeliveryLog().log(make_log_entry())
