"""Endpoint health statistics."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class HealthStats(BaseModel):
    """Rolling delivery statistics for one endpoint.

    Attributes:
        total_calls: Attempts recorded.
        success_count: Successful attempts.
        failure_count: Failed attempts.
        consecutive_failures: Failures since the last success.
        last_success: When the last success was recorded.
        last_failure: When the last failure was recorded.
        average_latency_ms: Mean latency over successful attempts only.
    """

    model_config = ConfigDict(extra="forbid")

    total_calls: int = Field(default=0, ge=0)
    success_count: int = Field(default=0, ge=0)
    failure_count: int = Field(default=0, ge=0)
    consecutive_failures: int = Field(default=0, ge=0)
    last_success: datetime | None = None
    last_failure: datetime | None = None
    average_latency_ms: float = Field(default=0.0, ge=0.0)

    @property
    def success_rate(self) -> float:
        if self.total_calls == 0:
            return 1.0
        return self.success_count / self.total_calls


class HealthRecordResult(BaseModel):
    """Signal returned after recording an attempt."""

    model_config = ConfigDict(extra="forbid")

    should_disable: bool
    consecutive_failures: int = Field(ge=0)
