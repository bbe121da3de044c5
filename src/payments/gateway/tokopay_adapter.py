"""Tokopay QRIS adapter.

Orders and status checks are signed with an MD5 digest of colon-joined
merchant fields and the merchant secret.
"""

import hashlib
import hmac
import os
from collections.abc import Mapping
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
QRIS_CHANNEL = "QRGOPAY"

_STATUS_MAP = {
    "paid": PaymentState.PAID,
    "success": PaymentState.PAID,
    "completed": PaymentState.PAID,
    "unpaid": PaymentState.PENDING,
    "pending": PaymentState.PENDING,
    "expired": PaymentState.EXPIRED,
    "failed": PaymentState.FAILED,
}


@dataclass(frozen=True)
class TokopayConfig:
    merchant_id: str = ""
    secret: str = ""
    api_url: str = "https://api.tokopay.id/v1"

    @classmethod
    def from_env(cls) -> "TokopayConfig":
        return cls(
            merchant_id=os.getenv("TOKOPAY_MERCHANT_ID", ""),
            secret=os.getenv("TOKOPAY_SECRET", ""),
            api_url=os.getenv("TOKOPAY_API_URL", "https://api.tokopay.id/v1"),
        )


def _md5(*parts) -> str:
    return hashlib.md5(":".join(str(p) for p in parts).encode()).hexdigest()  # noqa: S324


class TokopayGateway(PaymentGateway):
    name = "tokopay"

    def __init__(self, config: TokopayConfig | None = None, client: httpx.Client | None = None) -> None:
        self.config = config or TokopayConfig.from_env()
        self.client = client or transport.build_client()

    def create_payment(self, request: PaymentRequest) -> PaymentSession:
        if not self.config.merchant_id or not self.config.secret:
            raise ProviderCallFailed(self.name, "Tokopay not configured. Missing merchant ID or secret.")

        expires_at = datetime.now(UTC) + SESSION_TTL
        payload = {
            "merchant_id": self.config.merchant_id,
            "kode_channel": QRIS_CHANNEL,
            "reff_id": request.order_id,
            "amount": request.amount,
            "customer_name": request.customer_name,
            "customer_email": request.customer_email or "",
            "customer_phone": request.customer_phone or "",
            "expired_ts": int(expires_at.timestamp()),
            "signature": _md5(self.config.merchant_id, request.order_id, request.amount, self.config.secret),
        }
        response = transport.request(self.client, self.name, "POST", f"{self.config.api_url}/order", json=payload)
        data = transport.read_json(response, self.name)

        result = transport.section(data, "data")
        if data.get("status") != "Success" or not result:
            raise ProviderCallFailed(self.name, data.get("message") or "Failed to create Tokopay payment")

        logger.info("payment.session_created", provider=self.name, order_id=request.order_id)
        return PaymentSession(
            provider=self.name,
            reference=str(result.get("no_pembayaran") or request.order_id),
            amount=transport.to_int(result.get("total_bayar")) or request.amount,
            transaction_id=result.get("trx_id"),
            qr_string=result.get("qr_string"),
            qr_url=result.get("qr_link"),
            checkout_url=result.get("pay_url"),
            total_payment=transport.to_int(result.get("total_bayar")),
            expires_at=expires_at,
        )

    def check_status(self, reference: str) -> PaymentStatusResult:
        params = {
            "merchant_id": self.config.merchant_id,
            "reff_id": reference,
            "signature": _md5(self.config.merchant_id, reference, self.config.secret),
        }
        response = transport.request(self.client, self.name, "GET", f"{self.config.api_url}/order", params=params)
        data = transport.read_json(response, self.name)

        result = transport.section(data, "data")
        status = _STATUS_MAP.get(str(result.get("status", "")).lower(), PaymentState.PENDING)
        return PaymentStatusResult(
            status=status,
            paid_amount=transport.to_int(result.get("total_dibayar")) if status == PaymentState.PAID else None,
            raw=data,
        )

    def parse_callback(self, payload: dict) -> CallbackData:
        result = transport.section(payload, "data")
        return CallbackData(
            order_id=payload.get("reff_id"),
            status=_STATUS_MAP.get(str(payload.get("status", "")).lower(), PaymentState.PENDING),
            provider_ref=result.get("reference") or payload.get("reff_id"),
            amount=transport.to_int(result.get("total_dibayar")),
        )

    def verify_callback(self, payload: dict, headers: Mapping[str, str]) -> bool:  # noqa: ARG002
        expected = _md5(self.config.merchant_id, self.config.secret, payload.get("reff_id", ""))
        return hmac.compare_digest(expected, str(payload.get("signature", "")))
