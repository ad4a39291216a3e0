"""Operator hints for test deliveries."""

from __future__ import annotations

from shopfloor.models import DeliveryOutcome, DeliveryResult

HINT_SUCCESS = "The webhook was delivered successfully. Check the receiving service to see the data."
HINT_NOT_FOUND = (
    "The webhook URL returned 404. Verify the URL is correct and the receiving integration is turned on."
)
HINT_AUTH = "Authentication failed. Check if the webhook URL requires authentication."
HINT_SERVER_ERROR = (
    "The receiving server had an error. Try again later or check the external service status."
)
HINT_TIMEOUT = "The request timed out. The receiving server may be slow or unresponsive."
HINT_INVALID_URL = (
    "The webhook URL appears to be invalid. Check that it starts with https:// "
    "and points to a public host."
)
HINT_UNHEALTHY = (
    "This webhook has had too many recent failures and is temporarily skipped. "
    "Wait a few minutes and try again."
)
HINT_GENERIC = (
    "Check the webhook URL and try again. If the issue persists, verify the receiving service is working."
)


def diagnose(result: DeliveryResult) -> str:
    """Pick the hint that best explains a delivery result."""
    if result.success:
        return HINT_SUCCESS

    status = result.status_code
    if status == 404:
        return HINT_NOT_FOUND
    if status in (401, 403):
        return HINT_AUTH
    if status is not None and status >= 500:
        return HINT_SERVER_ERROR

    error = (result.error or "").lower()
    if "timed out" in error or "timeout" in error:
        return HINT_TIMEOUT
    if result.outcome is DeliveryOutcome.REJECTED:
        return HINT_INVALID_URL
    if result.outcome is DeliveryOutcome.SKIPPED:
        return HINT_UNHEALTHY
    return HINT_GENERIC
