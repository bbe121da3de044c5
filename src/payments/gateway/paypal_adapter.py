"""PayPal Checkout adapter (USD).

Flow:
1. Exchange client credentials for an OAuth2 access token
2. Create a CAPTURE order; the ``approve`` link is the checkout URL
3. Status checks read the order back; webhooks carry capture events

Amounts are stored in cents and sent to PayPal in dollars.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

import httpx
import structlog

from payments.gateway import transport
from payments.gateway.errors import ProviderCallFailed
from payments.gateway.port import (
    CallbackData,
    PaymentGateway,
    PaymentRequest,
    PaymentSession,
    PaymentState,
    PaymentStatusResult,
)

logger = structlog.get_logger(__name__)

_ORDER_STATUS_MAP = {
    "CREATED": PaymentState.PENDING,
    "SAVED": PaymentState.PENDING,
    "APPROVED": PaymentState.PENDING,
    "PAYER_ACTION_REQUIRED": PaymentState.PENDING,
    "VOIDED": PaymentState.FAILED,
    "COMPLETED": PaymentState.PAID,
}

_EVENT_STATUS_MAP = {
    "CHECKOUT.ORDER.APPROVED": PaymentState.PENDING,
    "PAYMENT.CAPTURE.COMPLETED": PaymentState.PAID,
    "PAYMENT.CAPTURE.DENIED": PaymentState.FAILED,
    "PAYMENT.CAPTURE.DECLINED": PaymentState.FAILED,
}


@dataclass(frozen=True)
class PayPalConfig:
    client_id: str = ""
    secret: str = ""
    mode: str = "sandbox"
    base_url: str = "http://localhost:3000"
    brand_name: str = "Digital Store"

    @property
    def api_url(self) -> str:
        return "https://api-m.paypal.com" if self.mode == "live" else "https://api-m.sandbox.paypal.com"

    @classmethod
    def from_env(cls) -> "PayPalConfig":
        return cls(
            client_id=os.getenv("PAYPAL_CLIENT_ID", ""),
            secret=os.getenv("PAYPAL_SECRET", ""),
            mode=os.getenv("PAYPAL_MODE", "sandbox"),
            base_url=os.getenv("SITE_URL", "http://localhost:3000"),
            brand_name=os.getenv("SITE_NAME", "Digital Store"),
        )


def _cents(value) -> int | None:
    """PayPal amount string in dollars to integer cents."""
    if value in (None, ""):
        return None
    try:
        return int(round(float(value) * 100))
    except (TypeError, ValueError):
        return None


def _first_purchase_unit(resource: dict) -> dict:
    units = resource.get("purchase_units") or []
    return units[0] if units else {}


class PayPalGateway(PaymentGateway):
    name = "paypal"

    def __init__(self, config: PayPalConfig | None = None, client: httpx.Client | None = None) -> None:
        self.config = config or PayPalConfig.from_env()
        self.client = client or transport.build_client()

    def _access_token(self) -> str:
        response = transport.request(
            self.client,
            self.name,
            "POST",
            f"{self.config.api_url}/v1/oauth2/token",
            auth=(self.config.client_id, self.config.secret),
            data={"grant_type": "client_credentials"},
        )
        if response.is_error:
            raise ProviderCallFailed(self.name, f"PayPal authentication failed: {response.status_code}")
        token = transport.read_json(response, self.name).get("access_token")
        if not token:
            raise ProviderCallFailed(self.name, "PayPal authentication returned no access token")
        return token

    def create_payment(self, request: PaymentRequest) -> PaymentSession:
        if not self.config.client_id or not self.config.secret:
            raise ProviderCallFailed(self.name, "PayPal credentials not configured")

        token = self._access_token()
        base_url = self.config.base_url
        order_payload = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "reference_id": request.order_id,
                    "custom_id": request.order_id,
                    "amount": {"currency_code": "USD", "value": f"{request.amount / 100:.2f}"},
                    "description": f"Order {request.order_id}",
                }
            ],
            "application_context": {
                "brand_name": self.config.brand_name,
                "landing_page": "NO_PREFERENCE",
                "user_action": "PAY_NOW",
                "return_url": request.return_url or f"{base_url}/payment/success?orderId={request.order_id}",
                "cancel_url": request.cancel_url or f"{base_url}/payment/cancel?orderId={request.order_id}",
            },
        }
        response = transport.request(
            self.client,
            self.name,
            "POST",
            f"{self.config.api_url}/v2/checkout/orders",
            json=order_payload,
            headers={"Authorization": f"Bearer {token}"},
        )
        data = transport.read_json(response, self.name)
        if response.is_error or not data.get("id"):
            raise ProviderCallFailed(self.name, data.get("message") or "PayPal order creation failed")

        links = data.get("links") or []
        approve = next((link for link in links if isinstance(link, dict) and link.get("rel") == "approve"), {})

        logger.info("payment.session_created", provider=self.name, order_id=request.order_id, reference=data["id"])
        return PaymentSession(
            provider=self.name,
            reference=data["id"],
            amount=request.amount,
            transaction_id=data["id"],
            checkout_url=approve.get("href", ""),
        )

    def check_status(self, reference: str) -> PaymentStatusResult:
        token = self._access_token()
        response = transport.request(
            self.client,
            self.name,
            "GET",
            f"{self.config.api_url}/v2/checkout/orders/{reference}",
            headers={"Authorization": f"Bearer {token}"},
        )
        if response.is_error:
            raise ProviderCallFailed(self.name, f"PayPal status check failed: {response.status_code}")
        data = transport.read_json(response, self.name)

        status = _ORDER_STATUS_MAP.get(data.get("status", ""), PaymentState.PENDING)
        amount = _first_purchase_unit(data).get("amount") or {}
        return PaymentStatusResult(
            status=status,
            paid_amount=_cents(amount.get("value")) if status == PaymentState.PAID else None,
            raw=data,
        )

    def verify_callback(self, payload: dict, headers: Mapping[str, str]) -> bool:  # noqa: ARG002
        # Structural check only; transmission signature verification is not wired up
        return bool(payload) and bool(payload.get("event_type")) and bool(payload.get("resource"))

    def parse_callback(self, payload: dict) -> CallbackData:
        resource = payload.get("resource") or {}
        unit = _first_purchase_unit(resource)
        # Order events carry purchase units; capture events carry custom_id and amount directly
        amount = unit.get("amount") or resource.get("amount") or {}
        return CallbackData(
            order_id=unit.get("reference_id") or resource.get("custom_id") or None,
            status=_EVENT_STATUS_MAP.get(payload.get("event_type", ""), PaymentState.PENDING),
            provider_ref=resource.get("id") or None,
            amount=_cents(amount.get("value")),
        )
