"""FastAPI routes for the Fulfillment domain.

Handlers that reach providers, supplier APIs or the store are plain ``def``
so FastAPI runs them in its threadpool instead of on the event loop.
"""

import os
from contextlib import contextmanager

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from fulfillment.api.schemas import (
    ConfigureGatewayRequest,
    CreatePaymentRequest,
    DeliverOrderRequest,
    DeliveryResponse,
    GatewayConfigResponse,
    ManualDeliveryRequest,
    OrderIdResponse,
    OrderStatusResponse,
    PaymentSessionResponse,
    PlaceOrderRequest,
    RejectOrderRequest,
    SettlementResponse,
    StatusResponse,
)
from fulfillment.delivery.result import Actor
from fulfillment.errors import InvalidCallback
from fulfillment.order.admin import DeliverOrderManually, RejectOrder
from fulfillment.order.order import Order, OrderStatus
from fulfillment.order.placement import PlaceOrder
from fulfillment.order.settlement import SettlementOutcome
from fulfillment.services import get_services
from payments.gateway.errors import ProviderCallFailed, UnsupportedGateway
from payments.gateway.fake_adapter import FakeGateway


@contextmanager
def _http_errors():
    """Translate domain and gateway failures into HTTP errors."""
    try:
        yield
    except ObjectNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except UnsupportedGateway as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidCallback as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.messages) from exc
    except ProviderCallFailed as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


def _settlement_response(outcome: SettlementOutcome) -> SettlementResponse:
    delivery = None
    if outcome.delivery is not None:
        delivery = DeliveryResponse(**vars(outcome.delivery))
    return SettlementResponse(
        order_id=outcome.order_id,
        payment_status=outcome.payment_status,
        message=outcome.message,
        delivery=delivery,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
def place_order(body: PlaceOrderRequest) -> OrderIdResponse:
    """Place a new order for a product."""
    command = PlaceOrder(
        product_id=body.product_id,
        amount=body.amount,
        customer_name=body.customer_name,
        customer_email=body.customer_email,
        currency=body.currency,
    )
    with _http_errors():
        result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@order_router.get("/{order_id}/status", response_model=OrderStatusResponse)
def order_status(order_id: str) -> OrderStatusResponse:
    """Customer-facing order status. Every undelivered condition reads as PENDING."""
    with _http_errors():
        order = current_domain.repository_for(Order).get(order_id)

    completed = order.status == OrderStatus.COMPLETED.value
    return OrderStatusResponse(
        order_id=order.id,
        status=order.public_status,
        product_name=order.product_name,
        amount=order.amount,
        currency=order.currency,
        checkout_url=None if order.is_terminal else order.checkout_url,
        delivery_content=order.delivered_content() if completed else None,
        delivery_instructions=order.delivery_instructions if completed else None,
        rejection_reason=order.rejection_reason,
    )


@order_router.post("/{order_id}/deliver", response_model=DeliveryResponse)
def deliver_order(order_id: str, body: DeliverOrderRequest | None = None) -> DeliveryResponse:
    """Dispatch (or re-dispatch) delivery of a paid order."""
    actor = Actor.admin(body.admin_id) if body and body.admin_id else Actor.system()
    with _http_errors():
        result = get_services().dispatcher.handle_delivery(order_id, actor=actor)
    return DeliveryResponse(**vars(result))


@order_router.put("/{order_id}/manual-delivery", response_model=StatusResponse)
def deliver_manually(order_id: str, body: ManualDeliveryRequest) -> StatusResponse:
    """Admin hands over account credentials or a code."""
    command = DeliverOrderManually(
        order_id=order_id,
        admin_id=body.admin_id,
        kind=body.kind,
        username=body.username,
        password=body.password,
        code=body.code,
        instructions=body.instructions,
    )
    with _http_errors():
        current_domain.process(command, asynchronous=False)
    return StatusResponse(status="delivered")


@order_router.put("/{order_id}/reject", response_model=StatusResponse)
def reject_order(order_id: str, body: RejectOrderRequest) -> StatusResponse:
    """Admin rejects an order with a reason."""
    command = RejectOrder(order_id=order_id, reason=body.reason, admin_id=body.admin_id)
    with _http_errors():
        current_domain.process(command, asynchronous=False)
    return StatusResponse(status="rejected")


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure a FakeGateway's behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    with _http_errors():
        gateway = get_services().registry.get(body.gateway)
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return GatewayConfigResponse(
        gateway=gateway.name,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )


@payment_router.post("/{order_id}", status_code=201, response_model=PaymentSessionResponse)
def create_payment(order_id: str, body: CreatePaymentRequest | None = None) -> PaymentSessionResponse:
    """Open a payment session with the product's gateway (or its backup)."""
    with _http_errors():
        session = get_services().settlement.create_payment(order_id, return_url=body.return_url if body else None)
    return PaymentSessionResponse(
        order_id=order_id,
        provider=session.provider,
        reference=session.reference,
        amount=session.amount,
        checkout_url=session.checkout_url,
        qr_string=session.qr_string,
        fee=session.fee,
        total_payment=session.total_payment,
        expires_at=session.expires_at,
    )


@payment_router.post("/{order_id}/poll", response_model=SettlementResponse)
def poll_payment(order_id: str) -> SettlementResponse:
    """Ask the provider for the payment status and settle the order."""
    with _http_errors():
        outcome = get_services().settlement.poll_payment(order_id)
    return _settlement_response(outcome)


# ---------------------------------------------------------------------------
# Webhook Router
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.post("/{provider}", response_model=SettlementResponse)
async def payment_webhook(provider: str, request: Request) -> SettlementResponse:
    """Process a payment provider's callback."""
    try:
        payload = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Webhook body must be JSON") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Webhook body must be a JSON object")

    with _http_errors():
        # Settlement blocks on provider and supplier calls
        outcome = await run_in_threadpool(get_services().settlement.handle_webhook, provider, payload, request.headers)
    return _settlement_response(outcome)
