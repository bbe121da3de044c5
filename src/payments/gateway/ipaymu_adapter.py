"""iPaymu direct-payment adapter (QRIS channel).

Requests are signed with HMAC-SHA256 over ``va + body`` keyed by the API
key, and the signature travels in the ``va``/``signature`` headers.
"""

import hashlib
import hmac
import json
import os
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

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

SESSION_TTL = timedelta(hours=24)

# iPaymu transaction status codes
_STATUS_CODES = {
    1: PaymentState.PAID,
    6: PaymentState.PAID,
    0: PaymentState.PENDING,
    -2: PaymentState.EXPIRED,
    2: PaymentState.FAILED,
}


@dataclass(frozen=True)
class IpaymuConfig:
    api_key: str = ""
    va: str = ""
    api_url: str = "https://my.ipaymu.com/api/v2"
    base_url: str = "http://localhost:3000"

    @classmethod
    def from_env(cls) -> "IpaymuConfig":
        return cls(
            api_key=os.getenv("IPAYMU_API_KEY", ""),
            va=os.getenv("IPAYMU_VA", ""),
            api_url=os.getenv("IPAYMU_API_URL", "https://my.ipaymu.com/api/v2"),
            base_url=os.getenv("SITE_URL", "http://localhost:3000"),
        )


def _status_from_code(code) -> PaymentState:
    try:
        return _STATUS_CODES.get(int(code), PaymentState.PENDING)
    except (TypeError, ValueError):
        return PaymentState.PENDING


class IpaymuGateway(PaymentGateway):
    name = "ipaymu"

    def __init__(self, config: IpaymuConfig | None = None, client: httpx.Client | None = None) -> None:
        self.config = config or IpaymuConfig.from_env()
        self.client = client or transport.build_client()

    def sign(self, body: str) -> str:
        """HMAC-SHA256 of ``va + body`` keyed by the API key."""
        return hmac.new(
            self.config.api_key.encode(),
            (self.config.va + body).encode(),
            hashlib.sha256,
        ).hexdigest()

    def _post_signed(self, path: str, body: dict) -> dict:
        body_json = json.dumps(body)
        response = transport.request(
            self.client,
            self.name,
            "POST",
            f"{self.config.api_url}{path}",
            content=body_json,
            headers={
                "Content-Type": "application/json",
                "va": self.config.va,
                "signature": self.sign(body_json),
            },
        )
        return transport.read_json(response, self.name)

    def create_payment(self, request: PaymentRequest) -> PaymentSession:
        if not self.config.api_key or not self.config.va:
            raise ProviderCallFailed(self.name, "iPaymu not configured. Missing API key or VA.")

        base_url = self.config.base_url
        body = {
            "product": ["Digital Product"],
            "qty": [1],
            "price": [request.amount],
            "returnUrl": request.return_url or f"{base_url}/dashboard",
            "cancelUrl": request.cancel_url or f"{base_url}/payment",
            "notifyUrl": request.notify_url or f"{base_url}/webhooks/ipaymu",
            "referenceId": request.order_id,
            "buyerName": request.customer_name,
            "buyerEmail": request.customer_email or "",
            "buyerPhone": request.customer_phone or "",
            "paymentMethod": "qris",
            "paymentChannel": "qris",
        }
        data = self._post_signed("/payment/direct", body)

        result = transport.section(data, "Data")
        if data.get("Status") != 200 or not result:
            raise ProviderCallFailed(self.name, data.get("Message") or "Failed to create iPaymu payment")

        logger.info("payment.session_created", provider=self.name, order_id=request.order_id)
        return PaymentSession(
            provider=self.name,
            reference=request.order_id,
            amount=request.amount,
            transaction_id=str(result["TransactionId"]) if result.get("TransactionId") else None,
            session_id=result.get("SessionID") or result.get("SessionId"),
            qr_string=result.get("QrString") or result.get("QRString"),
            qr_url=result.get("QrImage") or result.get("QRImage"),
            checkout_url=result.get("Url"),
            total_payment=transport.to_int(result.get("Total")),
            expires_at=datetime.now(UTC) + SESSION_TTL,
        )

    def check_status(self, reference: str) -> PaymentStatusResult:
        data = self._post_signed("/transaction", {"transactionId": reference})
        result = transport.section(data, "Data")
        status = _status_from_code(result.get("Status"))
        return PaymentStatusResult(
            status=status,
            paid_amount=transport.to_int(result.get("Amount")) if status == PaymentState.PAID else None,
            raw=data,
        )

    def parse_callback(self, payload: dict) -> CallbackData:
        return CallbackData(
            order_id=payload.get("reference_id"),
            status=_status_from_code(payload.get("status_code")),
            provider_ref=str(payload["trx_id"]) if payload.get("trx_id") else None,
            amount=transport.to_int(payload.get("amount")),
        )
