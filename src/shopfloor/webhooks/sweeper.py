"""Periodic eviction of expired idempotency records and rate-limit windows."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from shopfloor.logging import get_logger

logger = get_logger(__name__)


async def sweep_task(name: str, sweep: Callable[[], int], interval_seconds: float) -> None:
    """Run ``sweep`` every ``interval_seconds`` until cancelled."""
    while True:
        removed = sweep()
        if removed:
            logger.info("Sweep removed expired entries", store=name, removed=removed)
        await asyncio.sleep(interval_seconds)
