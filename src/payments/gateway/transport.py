"""Shared HTTP plumbing for provider adapters.

Every adapter talks to its provider through an ``httpx.Client``. These
helpers turn transport errors and unreadable responses into
``ProviderCallFailed`` so adapters only deal with the happy path.
"""

import os

import httpx
import structlog

from payments.gateway.errors import ProviderCallFailed

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


def default_timeout() -> float:
    """Outbound HTTP timeout in seconds (``PAYMENT_HTTP_TIMEOUT``)."""
    return float(os.getenv("PAYMENT_HTTP_TIMEOUT", DEFAULT_TIMEOUT_SECONDS))


def build_client(timeout: float | None = None) -> httpx.Client:
    return httpx.Client(timeout=timeout if timeout is not None else default_timeout())


def request(client: httpx.Client, provider: str, method: str, url: str, **kwargs) -> httpx.Response:
    """Send a request, wrapping network failures."""
    try:
        return client.request(method, url, **kwargs)
    except httpx.HTTPError as exc:
        logger.warning("payment.provider_unreachable", provider=provider, url=url, error=str(exc))
        raise ProviderCallFailed(provider, f"request to {url} failed: {exc}") from exc


def read_json(response: httpx.Response, provider: str) -> dict:
    """Decode a JSON object body or fail with the response status."""
    try:
        data = response.json()
    except ValueError as exc:
        raise ProviderCallFailed(provider, f"invalid JSON response (HTTP {response.status_code})") from exc
    if not isinstance(data, dict):
        raise ProviderCallFailed(provider, f"unexpected response body (HTTP {response.status_code})")
    return data


def section(data: dict, key: str) -> dict:
    """Return the nested object under ``key``, or an empty dict when it is missing or not an object."""
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def to_int(value) -> int | None:
    """Coerce a provider amount (int, float or numeric string) to an int."""
    if value is None or value == "":
        return None
    try:
        return int(round(float(value)))
    except (TypeError, ValueError):
        return None
