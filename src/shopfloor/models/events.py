"""Catalog of manufacturing events endpoints can subscribe to.

Triggers are not restricted to these names; the catalog backs the
subscription picker in operator tooling.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

EventType = Literal[
    # Work orders
    "work_order_created",
    "work_order_started",
    "work_order_completed",
    "work_order_cancelled",
    "work_order_on_hold",
    # Production
    "production_step_started",
    "production_step_completed",
    "quality_check_passed",
    "quality_check_failed",
    # Materials
    "material_batch_scanned",
    "low_stock_alert",
    "stock_received",
    "stock_consumed",
    # Items
    "item_completed",
    "item_failed",
    "serial_number_assigned",
    # Certificates
    "certificate_generated",
    "certificate_signed",
    # System
    "operator_assigned",
    "shift_started",
    "shift_ended",
]


class EventTypeMetadata(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    label: str
    description: str
    category: str


def _meta(label: str, description: str, category: str) -> EventTypeMetadata:
    return EventTypeMetadata(label=label, description=description, category=category)


EVENT_CATALOG: dict[str, EventTypeMetadata] = {
    "work_order_created": _meta(
        "Work Order Created", "Fired when a new work order is created", "Work Orders"
    ),
    "work_order_started": _meta(
        "Work Order Started", "Fired when production begins on a work order", "Work Orders"
    ),
    "work_order_completed": _meta(
        "Work Order Completed",
        "Fired when all items in a work order are completed",
        "Work Orders",
    ),
    "work_order_cancelled": _meta(
        "Work Order Cancelled", "Fired when a work order is cancelled", "Work Orders"
    ),
    "work_order_on_hold": _meta(
        "Work Order On Hold", "Fired when a work order is put on hold", "Work Orders"
    ),
    "production_step_started": _meta(
        "Production Step Started",
        "Fired when an operator starts a production step",
        "Production",
    ),
    "production_step_completed": _meta(
        "Production Step Completed",
        "Fired when a production step is marked complete",
        "Production",
    ),
    "quality_check_passed": _meta(
        "Quality Check Passed", "Fired when a quality check passes", "Production"
    ),
    "quality_check_failed": _meta(
        "Quality Check Failed", "Fired when a quality check fails", "Production"
    ),
    "material_batch_scanned": _meta(
        "Material Batch Scanned",
        "Fired when a material batch is scanned during production",
        "Materials",
    ),
    "low_stock_alert": _meta(
        "Low Stock Alert", "Fired when inventory drops below reorder point", "Materials"
    ),
    "stock_received": _meta("Stock Received", "Fired when inventory is received", "Materials"),
    "stock_consumed": _meta("Stock Consumed", "Fired when inventory is consumed", "Materials"),
    "item_completed": _meta(
        "Item Completed", "Fired when a work order item is completed", "Items"
    ),
    "item_failed": _meta("Item Failed", "Fired when an item fails production", "Items"),
    "serial_number_assigned": _meta(
        "Serial Number Assigned",
        "Fired when a serial number is assigned to an item",
        "Items",
    ),
    "certificate_generated": _meta(
        "Certificate Generated",
        "Fired when a quality certificate is generated",
        "Certificates",
    ),
    "certificate_signed": _meta(
        "Certificate Signed", "Fired when a certificate is digitally signed", "Certificates"
    ),
    "operator_assigned": _meta(
        "Operator Assigned", "Fired when an operator is assigned to a work order", "System"
    ),
    "shift_started": _meta("Shift Started", "Fired when an operator starts their shift", "System"),
    "shift_ended": _meta("Shift Ended", "Fired when an operator ends their shift", "System"),
}

ALL_EVENT_TYPES: list[str] = list(EVENT_CATALOG)


def get_event_type_metadata(event_type: str) -> EventTypeMetadata:
    """Look up label, description and category; unknown names fall into "Other"."""
    metadata = EVENT_CATALOG.get(event_type)
    if metadata is None:
        return _meta(event_type, "", "Other")
    return metadata


def get_event_types_by_category() -> dict[str, list[str]]:
    categories: dict[str, list[str]] = {}
    for event_type, metadata in EVENT_CATALOG.items():
        categories.setdefault(metadata.category, []).append(event_type)
    return categories


__all__ = [
    "ALL_EVENT_TYPES",
    "EVENT_CATALOG",
    "EventType",
    "EventTypeMetadata",
    "get_event_type_metadata",
    "get_event_types_by_category",
]
