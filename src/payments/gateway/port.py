"""Payment gateway port (abstract interface).

Defines the contract that every payment provider adapter must implement.
The settlement service only ever talks to this interface, so Pakasir,
iPaymu, Tokopay, PayPal and the fake adapter are interchangeable and are
looked up by name through the gateway registry.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class PaymentState(Enum):
    """Normalized payment status shared by every provider."""

    PENDING = "PENDING"
    PAID = "PAID"
    EXPIRED = "EXPIRED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class PaymentRequest:
    """Everything a provider needs to open a payment session for an order.

    ``amount`` is an integer in the currency's smallest unit used by the
    shop (rupiah for the QRIS providers, cents for PayPal).
    """

    order_id: str
    amount: int
    customer_name: str
    customer_email: str | None = None
    customer_phone: str | None = None
    return_url: str | None = None
    cancel_url: str | None = None
    notify_url: str | None = None


@dataclass(frozen=True)
class PaymentSession:
    """A payment session opened at a provider."""

    provider: str
    reference: str
    amount: int
    transaction_id: str | None = None
    session_id: str | None = None
    qr_string: str | None = None
    qr_url: str | None = None
    checkout_url: str | None = None
    fee: int | None = None
    total_payment: int | None = None
    expires_at: datetime | None = None


@dataclass(frozen=True)
class PaymentStatusResult:
    """Result of a status check at the provider."""

    status: PaymentState
    paid_amount: int | None = None
    raw: dict = field(default_factory=dict)


@dataclass(frozen=True)
class CallbackData:
    """A provider webhook payload reduced to the fields settlement needs."""

    order_id: str | None
    status: PaymentState
    provider_ref: str | None = None
    amount: int | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    name: str = ""

    @abstractmethod
    def create_payment(self, request: PaymentRequest) -> PaymentSession:
        """Open a payment session. Raises ProviderCallFailed on any failure."""
        ...

    @abstractmethod
    def check_status(self, reference: str) -> PaymentStatusResult:
        """Ask the provider for the current status of a payment."""
        ...

    @abstractmethod
    def parse_callback(self, payload: dict) -> CallbackData:
        """Extract order id, status, provider reference and amount from a webhook."""
        ...

    def verify_callback(self, payload: dict, headers: Mapping[str, str]) -> bool:  # noqa: ARG002
        """Check that a webhook payload really comes from the provider.

        Providers without a signature scheme accept every payload.
        """
        return True
