"""Pakasir QRIS payment adapter.

Pakasir opens a QRIS transaction with a single POST and reports status via
``/transactionstatus``. Credentials come from ``PAKASIR_*`` environment
variables.
"""

import os
from dataclasses import dataclass
from datetime import datetime

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

_STATUS_MAP = {
    "completed": PaymentState.PAID,
    "paid": PaymentState.PAID,
    "success": PaymentState.PAID,
    "pending": PaymentState.PENDING,
    "expired": PaymentState.EXPIRED,
    "canceled": PaymentState.FAILED,
    "cancelled": PaymentState.FAILED,
    "failed": PaymentState.FAILED,
}


@dataclass(frozen=True)
class PakasirConfig:
    api_key: str = ""
    project: str = ""
    api_url: str = "https://app.pakasir.com/api"

    @classmethod
    def from_env(cls) -> "PakasirConfig":
        return cls(
            api_key=os.getenv("PAKASIR_API_KEY", ""),
            project=os.getenv("PAKASIR_PROJECT", ""),
            api_url=os.getenv("PAKASIR_API_URL", "https://app.pakasir.com/api"),
        )


def _parse_expiry(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class PakasirGateway(PaymentGateway):
    name = "pakasir"

    def __init__(self, config: PakasirConfig | None = None, client: httpx.Client | None = None) -> None:
        self.config = config or PakasirConfig.from_env()
        self.client = client or transport.build_client()

    def create_payment(self, request: PaymentRequest) -> PaymentSession:
        if not self.config.api_key or not self.config.project:
            raise ProviderCallFailed(self.name, "Pakasir API key or project not configured")

        payload = {
            "project": self.config.project,
            "order_id": request.order_id,
            "amount": request.amount,
            "api_key": self.config.api_key,
        }
        response = transport.request(
            self.client, self.name, "POST", f"{self.config.api_url}/transactioncreate/qris", json=payload
        )
        data = transport.read_json(response, self.name)

        payment = transport.section(data, "payment")
        if not payment:
            raise ProviderCallFailed(self.name, data.get("message") or "Failed to create Pakasir payment")

        logger.info("payment.session_created", provider=self.name, order_id=request.order_id)
        return PaymentSession(
            provider=self.name,
            reference=str(payment.get("order_id") or request.order_id),
            amount=transport.to_int(payment.get("amount")) or request.amount,
            qr_string=payment.get("payment_number"),
            fee=transport.to_int(payment.get("fee")),
            total_payment=transport.to_int(payment.get("total_payment")),
            expires_at=_parse_expiry(payment.get("expired_at")),
        )

    def check_status(self, reference: str) -> PaymentStatusResult:
        payload = {
            "project": self.config.project,
            "order_id": reference,
            "api_key": self.config.api_key,
        }
        response = transport.request(
            self.client, self.name, "POST", f"{self.config.api_url}/transactionstatus", json=payload
        )
        data = transport.read_json(response, self.name)

        transaction = transport.section(data, "transaction")
        status = _STATUS_MAP.get(str(transaction.get("status", "")).lower(), PaymentState.PENDING)
        return PaymentStatusResult(
            status=status,
            paid_amount=transport.to_int(transaction.get("amount")) if status == PaymentState.PAID else None,
            raw=data,
        )

    def parse_callback(self, payload: dict) -> CallbackData:
        return CallbackData(
            order_id=payload.get("order_id"),
            status=_STATUS_MAP.get(str(payload.get("status", "")).lower(), PaymentState.PENDING),
            provider_ref=payload.get("order_id"),
            amount=transport.to_int(payload.get("amount")),
        )

    def verify_callback(self, payload: dict, headers) -> bool:  # noqa: ARG002
        return payload.get("project") == self.config.project
