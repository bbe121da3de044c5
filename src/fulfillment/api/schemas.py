"""Pydantic API schemas for the Fulfillment domain.

These are the external API contracts, separate from domain commands.
The API layer translates between these schemas and domain commands or
service calls.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    product_id: str
    amount: int
    customer_name: str
    customer_email: str | None = None
    currency: str = "IDR"


class CreatePaymentRequest(BaseModel):
    return_url: str | None = None


class DeliverOrderRequest(BaseModel):
    admin_id: str | None = None


class ManualDeliveryRequest(BaseModel):
    admin_id: str
    kind: Literal["account", "code"]
    username: str | None = None
    password: str | None = None
    code: str | None = None
    instructions: str | None = None


class RejectOrderRequest(BaseModel):
    reason: str
    admin_id: str | None = None


class ConfigureGatewayRequest(BaseModel):
    gateway: str
    should_succeed: bool = True
    failure_reason: str = "Gateway unavailable"


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class OrderIdResponse(BaseModel):
    order_id: str


class StatusResponse(BaseModel):
    status: str


class PaymentSessionResponse(BaseModel):
    order_id: str
    provider: str
    reference: str
    amount: int
    checkout_url: str | None = None
    qr_string: str | None = None
    fee: int | None = None
    total_payment: int | None = None
    expires_at: datetime | None = None


class DeliveryResponse(BaseModel):
    success: bool
    message: str
    data: dict = {}
    error: str | None = None


class SettlementResponse(BaseModel):
    order_id: str
    payment_status: str
    message: str
    delivery: DeliveryResponse | None = None


class OrderStatusResponse(BaseModel):
    """What a customer may see about an order."""

    order_id: str
    status: str
    product_name: str | None = None
    amount: int
    currency: str
    checkout_url: str | None = None
    delivery_content: dict | None = None
    delivery_instructions: str | None = None
    rejection_reason: str | None = None


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
