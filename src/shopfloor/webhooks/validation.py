"""URL and payload validation run before any delivery attempt.

URL validation is the SSRF defense: a webhook URL may only point at a
publicly routable HTTP(S) host. Literal addresses are checked in every
notation a resolver would accept (dotted, integer, hex, short forms,
IPv4-mapped IPv6); hostnames can additionally be resolved and every
resulting address checked when ``webhook_resolve_dns`` is enabled.
"""

from __future__ import annotations

import asyncio
import json
import re
import socket
from ipaddress import IPv4Address, IPv6Address, ip_address
from typing import Any
from urllib.parse import urlsplit

from shopfloor.config import ONE_MIB
from shopfloor.models import ValidationResult, WebhookPayload

ALLOWED_SCHEMES = frozenset({"http", "https"})

BLOCKED_HOSTNAMES = frozenset(
    {
        "localhost",
        "localhost.localdomain",
        "ip6-localhost",
        "ip6-loopback",
        "metadata.google.internal",
    }
)
BLOCKED_SUFFIXES = (".localhost", ".localdomain", ".local", ".internal")

PRIVATE_URL_ERROR = "Private/localhost URLs are not allowed"

# Candidates for the legacy inet_aton notations ("127.1", "0x7f.0.0.1", "017700000001")
_NUMERIC_HOST = re.compile(r"[0-9a-fx.]+")

IPAddress = IPv4Address | IPv6Address


def _parse_ip_literal(host: str) -> IPAddress | None:
    try:
        return ip_address(host)
    except ValueError:
        pass

    if host.isdigit():
        value = int(host)
        return IPv4Address(value) if value < 2**32 else None

    if _NUMERIC_HOST.fullmatch(host):
        try:
            return IPv4Address(socket.inet_aton(host))
        except OSError:
            return None
    return None


def is_public_address(address: IPAddress) -> bool:
    """True only for globally routable unicast addresses."""
    if isinstance(address, IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    return address.is_global and not address.is_multicast


def _split_host(url: str) -> tuple[str, str] | ValidationResult:
    if not url or not url.strip():
        return ValidationResult.fail("URL is required")

    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
        parts.port  # noqa: B018 - raises ValueError on a malformed port
    except ValueError:
        return ValidationResult.fail("Invalid URL format")

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        return ValidationResult.fail("Only HTTP/HTTPS protocols are allowed")
    if not hostname:
        return ValidationResult.fail("URL must contain a hostname")

    return parts.scheme.lower(), hostname.rstrip(".").lower()


def validate_webhook_url(url: str) -> ValidationResult:
    """Reject non-HTTP(S) URLs and URLs aimed at non-public hosts.

    Example:
        ```python
        validate_webhook_url("https://hooks.zapier.com/hooks/catch/1/abc").valid  # True
        validate_webhook_url("http://169.254.169.254/latest/meta-data").error
        # "Private/localhost URLs are not allowed"
        ```
    """
    split = _split_host(url)
    if isinstance(split, ValidationResult):
        return split
    _, host = split

    if host in BLOCKED_HOSTNAMES or host.endswith(BLOCKED_SUFFIXES):
        return ValidationResult.fail(PRIVATE_URL_ERROR)

    address = _parse_ip_literal(host)
    if address is not None and not is_public_address(address):
        return ValidationResult.fail(PRIVATE_URL_ERROR)

    return ValidationResult.ok()


async def validate_resolved_webhook_url(url: str) -> ValidationResult:
    """Validate a URL, then resolve its hostname and check every address."""
    result = validate_webhook_url(url)
    if not result.valid:
        return result

    split = _split_host(url)
    assert not isinstance(split, ValidationResult)
    _, host = split
    if _parse_ip_literal(host) is not None:
        return result

    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except socket.gaierror as e:
        return ValidationResult.fail(f"Cannot resolve hostname {host}: {e}")

    for *_, sockaddr in infos:
        address = ip_address(str(sockaddr[0]).split("%", 1)[0])
        if not is_public_address(address):
            return ValidationResult.fail(PRIVATE_URL_ERROR)

    return result


def validate_payload(payload: Any, max_size_bytes: int = ONE_MIB) -> ValidationResult:
    """Reject missing, oversized or (for strings) non-JSON payloads.

    Size is measured on the UTF-8 encoded serialization.
    """
    if payload is None:
        return ValidationResult.fail("Payload is required")

    if isinstance(payload, str):
        serialized = payload
    elif isinstance(payload, WebhookPayload):
        serialized = payload.serialize()
    else:
        try:
            serialized = json.dumps(payload, separators=(",", ":"), default=str)
        except ValueError as e:
            return ValidationResult.fail(f"Payload is not JSON serializable: {e}")

    if len(serialized.encode("utf-8")) > max_size_bytes:
        return ValidationResult.fail(f"Payload exceeds maximum size of {max_size_bytes} bytes")

    if isinstance(payload, str):
        try:
            json.loads(payload)
        except json.JSONDecodeError:
            return ValidationResult.fail("Invalid JSON payload")

    return ValidationResult.ok()
