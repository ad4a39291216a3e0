"""HMAC-SHA256 signing for outgoing webhook payloads.

Receivers verify a delivery by recomputing the HMAC of the raw request
body with their copy of the endpoint secret and comparing it with the
``X-Webhook-Signature`` header.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

SIGNATURE_PREFIX = "sha256="


def _as_bytes(value: str | bytes) -> bytes:
    return value if isinstance(value, bytes) else value.encode("utf-8")


def compute_signature(payload: str | bytes, secret: str) -> str:
    """Compute HMAC-SHA256 signature for a webhook payload.

    Args:
        payload: The exact serialized body that is sent.
        secret: Shared endpoint secret.

    Returns:
        Signature in format "sha256=<lowercase hex digest>".
    """
    digest = hmac.new(
        key=secret.encode("utf-8"),
        msg=_as_bytes(payload),
        digestmod=hashlib.sha256,
    ).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(payload: str | bytes, signature: str, secret: str) -> bool:
    """Verify HMAC-SHA256 signature for a webhook payload.

    Comparison is constant-time over equal-length inputs; a length
    mismatch fails closed.

    Returns:
        True if signature is valid, False otherwise.
    """
    expected = compute_signature(payload, secret)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


def generate_secret() -> str:
    """Generate a new endpoint secret (64 hex characters)."""
    return secrets.token_hex(32)


def mask_secret(secret: str | None) -> str | None:
    """Mask a secret for display, keeping only its last four characters."""
    if not secret:
        return None
    return "********" + secret[-4:]
