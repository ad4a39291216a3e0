"""Endpoint registry and delivery log collaborators."""

from .base import DeliveryLogSink, EndpointRegistry, parse_endpoint_rows
from .file import JsonFileEndpointRegistry
from .memory import InMemoryDeliveryLog, InMemoryEndpointRegistry, NullDeliveryLog

__all__ = [
    "DeliveryLogSink",
    "EndpointRegistry",
    "InMemoryDeliveryLog",
    "InMemoryEndpointRegistry",
    "JsonFileEndpointRegistry",
    "NullDeliveryLog",
    "parse_endpoint_rows",
]
