"""Configurable fake payment gateway for development and testing.

Simulates a provider without any external calls. It can be configured at
runtime to succeed or fail, and it can stand in for any of the real
provider names so that registry lookups and fallback behave exactly as
they would in production.
"""

from uuid import uuid4

from payments.gateway.errors import ProviderCallFailed
from payments.gateway.port import (
    CallbackData,
    PaymentGateway,
    PaymentRequest,
    PaymentSession,
    PaymentState,
    PaymentStatusResult,
)


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, name: str = "fake") -> None:
        self.name = name
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []
        self.statuses: dict[str, PaymentStatusResult] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def set_status(self, reference: str, status: PaymentState, paid_amount: int | None = None) -> None:
        """Preset the answer ``check_status`` gives for a reference."""
        self.statuses[reference] = PaymentStatusResult(status=status, paid_amount=paid_amount)

    def create_payment(self, request: PaymentRequest) -> PaymentSession:
        self.calls.append({"method": "create_payment", "order_id": request.order_id, "amount": request.amount})

        if not self.should_succeed:
            raise ProviderCallFailed(self.name, self.failure_reason)

        reference = f"{self.name}_{uuid4().hex[:12]}"
        return PaymentSession(
            provider=self.name,
            reference=reference,
            amount=request.amount,
            transaction_id=reference,
            qr_string=f"00020101{request.order_id}",
            checkout_url=f"https://pay.example.test/{reference}",
        )

    def check_status(self, reference: str) -> PaymentStatusResult:
        self.calls.append({"method": "check_status", "reference": reference})

        if not self.should_succeed:
            raise ProviderCallFailed(self.name, self.failure_reason)
        return self.statuses.get(reference, PaymentStatusResult(status=PaymentState.PENDING))

    def parse_callback(self, payload: dict) -> CallbackData:
        return CallbackData(
            order_id=payload.get("order_id"),
            status=PaymentState(payload.get("status", PaymentState.PENDING.value)),
            provider_ref=payload.get("reference"),
            amount=payload.get("amount"),
        )

    def verify_callback(self, payload: dict, headers) -> bool:  # noqa: ARG002
        return headers.get("x-signature") == "test-signature"
