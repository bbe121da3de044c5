"""Product aggregate: the delivery configuration of a sellable item.

Catalog editing lives elsewhere; this core only reads products to decide
how a paid order gets delivered and which payment gateways to use.
"""

import json
from dataclasses import dataclass, field

from protean.fields import Integer, String, Text

from fulfillment.domain import fulfillment
from fulfillment.errors import DeliveryAPIError


# ---------------------------------------------------------------------------
# Delivery configuration (closed tagged union)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PreloadedDelivery:
    """Deliver one record from the product's preloaded stock pool."""

    product_slug: str
    kind: str = "preloaded"


@dataclass(frozen=True)
class ApiDelivery:
    """Call an external fulfillment API and deliver its response."""

    endpoint: str
    method: str = "POST"
    api_key: str | None = None
    headers: dict = field(default_factory=dict)
    payload_template: dict = field(default_factory=dict)
    retry_attempts: int = 3
    retry_base_delay_ms: int = 1000
    kind: str = "api"


@dataclass(frozen=True)
class ManualDelivery:
    """An admin delivers by hand."""

    instructions: str | None = None
    kind: str = "manual"


DeliveryConfig = PreloadedDelivery | ApiDelivery | ManualDelivery

# ``auto`` is the legacy name for preloaded delivery
_PRELOADED_TYPES = {"preloaded", "auto"}


def _json_map(name: str, value: str | None) -> dict:
    if not value:
        return {}
    try:
        data = json.loads(value)
    except ValueError as exc:
        raise DeliveryAPIError(f"Product {name} is not valid JSON", retryable=False, detail=str(exc)) from exc
    if not isinstance(data, dict):
        raise DeliveryAPIError(f"Product {name} must be a JSON object", retryable=False)
    return data


@fulfillment.aggregate
class Product:
    """A digital product and how it is delivered once paid for."""

    title: String(required=True, max_length=255)
    slug: String(required=True, max_length=200)
    delivery_type: String(max_length=20, default="manual")
    instructions: Text()

    # External API delivery
    api_endpoint: String(max_length=1000)
    api_method: String(max_length=10, default="POST")
    api_key: String(max_length=500)
    api_headers: Text()  # JSON
    api_payload_template: Text()  # JSON
    api_retry_attempts: Integer(min_value=0)
    api_retry_delay_ms: Integer(min_value=0)

    # Payment gateway preference (falls back to the shop default)
    payment_gateway: String(max_length=50)
    backup_gateway: String(max_length=50)

    def delivery_config(self, retry_attempts: int = 3, retry_base_delay_ms: int = 1000) -> DeliveryConfig:
        """Resolve the stored delivery type into its configuration.

        Unknown or missing types resolve to manual delivery. The retry
        arguments apply when the product sets no retry policy of its own.

        Raises:
            DeliveryAPIError: stored API headers or payload template are not a JSON object.
        """
        kind = (self.delivery_type or "manual").strip().lower()

        if kind in _PRELOADED_TYPES:
            return PreloadedDelivery(product_slug=self.slug)

        if kind == "api":
            return ApiDelivery(
                endpoint=self.api_endpoint or "",
                method=(self.api_method or "POST").upper(),
                api_key=self.api_key or None,
                headers=_json_map("api_headers", self.api_headers),
                payload_template=_json_map("api_payload_template", self.api_payload_template),
                retry_attempts=self.api_retry_attempts if self.api_retry_attempts is not None else retry_attempts,
                retry_base_delay_ms=(
                    self.api_retry_delay_ms if self.api_retry_delay_ms is not None else retry_base_delay_ms
                ),
            )

        return ManualDelivery(instructions=self.instructions)
