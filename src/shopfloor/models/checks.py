"""Result types returned by the validator, rate limiter and idempotency cache."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ValidationResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    valid: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def fail(cls, error: str) -> ValidationResult:
        return cls(valid=False, error=error)


class RateLimitResult(BaseModel):
    """Rate limit status for one identifier.

    Attributes:
        allowed: Whether this call fits in the current window.
        remaining: Calls left in the current window.
        reset_time: Unix timestamp (seconds) when the window ends.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    allowed: bool
    remaining: int = Field(ge=0)
    reset_time: float

    def retry_after(self, now: float) -> int:
        """Whole seconds until the window resets, at least 1."""
        return max(1, int(self.reset_time - now + 0.999))


class IdempotencyCheck(BaseModel):
    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    is_duplicate: bool
    cached_response: Any = None
