"""RetryingAPIDeliverer: calls a product's external fulfillment API.

Attempts are bounded by the product's ``retry_attempts`` (extra attempts
after the first) and spaced by ``base_delay * 2**attempt``. Server errors
(5xx) and transport errors are retried; any other non-2xx response is
final on the spot.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx
import structlog

from fulfillment.errors import DeliveryAPIError
from fulfillment.product.product import ApiDelivery

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ApiDeliveryResponse:
    body: dict
    attempts: int

    @property
    def transaction_id(self) -> str | None:
        value = self.body.get("transactionId") or self.body.get("id")
        return str(value) if value is not None else None


def build_payload(order, product, config: ApiDelivery) -> dict:
    """Fixed order and product fields, overlaid with the product's payload template."""
    return {
        "orderId": order.id,
        "productId": product.id,
        "productSlug": product.slug,
        "productName": product.title,
        "customerEmail": order.customer_email,
        "customerName": order.customer_name,
        **config.payload_template,
    }


def build_headers(config: ApiDelivery) -> dict:
    headers = {"Content-Type": "application/json"}
    if config.api_key:
        headers["Authorization"] = f"Bearer {config.api_key}"
    headers.update(config.headers)
    return headers


class RetryingAPIDeliverer:
    def __init__(
        self,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client or httpx.Client(timeout=timeout)
        self.sleep = sleep

    def deliver(self, config: ApiDelivery, payload: dict) -> ApiDeliveryResponse:
        """Call the endpoint until it succeeds, fails permanently or retries run out.

        Raises:
            DeliveryAPIError: ``retryable`` is False for a 4xx answer and True
                when the retry budget was exhausted on 5xx/transport errors.
        """
        headers = build_headers(config)
        total_attempts = config.retry_attempts + 1
        last_error: DeliveryAPIError | None = None

        for attempt in range(total_attempts):
            try:
                response = self.client.request(config.method, config.endpoint, json=payload, headers=headers)
            except httpx.HTTPError as exc:
                last_error = DeliveryAPIError(f"Transport error: {exc}", retryable=True, attempts=attempt + 1)
            else:
                if response.is_success:
                    logger.info("delivery.api_succeeded", endpoint=config.endpoint, attempts=attempt + 1)
                    return ApiDeliveryResponse(body=self._json_body(response), attempts=attempt + 1)

                if response.status_code < 500:
                    raise DeliveryAPIError(
                        f"API error {response.status_code}: {response.text}",
                        retryable=False,
                        status_code=response.status_code,
                        detail=response.text,
                        attempts=attempt + 1,
                    )

                last_error = DeliveryAPIError(
                    f"Temporary server error: {response.status_code}",
                    retryable=True,
                    status_code=response.status_code,
                    detail=response.text,
                    attempts=attempt + 1,
                )

            logger.warning(
                "delivery.api_attempt_failed",
                endpoint=config.endpoint,
                attempt=attempt + 1,
                of=total_attempts,
                error=str(last_error),
            )
            if attempt < config.retry_attempts:
                self.sleep(config.retry_base_delay_ms * 2**attempt / 1000)

        raise DeliveryAPIError(
            f"Failed to deliver via API after {total_attempts} attempts: {last_error}",
            retryable=True,
            status_code=last_error.status_code if last_error else None,
            detail=last_error.detail if last_error else None,
            attempts=total_attempts,
        )

    @staticmethod
    def _json_body(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            return {"raw": response.text}
        return body if isinstance(body, dict) else {"data": body}
