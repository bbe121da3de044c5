"""Settlement: open payment sessions and confirm payments.

Confirmations arrive either as provider webhooks or from an explicit poll.
Both paths funnel into ``_settle``, which is idempotent for orders that are
already paid and never touches terminal orders. A confirmed payment is
handed straight to the delivery dispatcher.
"""

from collections.abc import Mapping
from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from fulfillment.config import FulfillmentSettings
from fulfillment.delivery.dispatcher import DeliveryDispatcher
from fulfillment.delivery.result import DeliveryResult
from fulfillment.errors import InvalidCallback
from fulfillment.order.order import Order, PaymentStatus
from fulfillment.product.product import Product
from payments.gateway.fallback import create_with_fallback
from payments.gateway.port import PaymentRequest, PaymentSession, PaymentState
from payments.gateway.registry import GatewayRegistry

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SettlementOutcome:
    order_id: str
    payment_status: str
    message: str
    delivery: DeliveryResult | None = None


class SettlementService:
    def __init__(
        self,
        registry: GatewayRegistry,
        dispatcher: DeliveryDispatcher,
        settings: FulfillmentSettings,
    ) -> None:
        self.registry = registry
        self.dispatcher = dispatcher
        self.settings = settings

    def gateways_for(self, product: Product) -> tuple[str, str | None]:
        """Primary and backup gateway names for a product, falling back to settings."""
        primary = product.payment_gateway or self.settings.default_gateway
        backup = product.backup_gateway or self.settings.backup_gateway
        if backup and backup.strip().lower() == primary.strip().lower():
            backup = None
        return primary, backup

    def create_payment(self, order_id: str, return_url: str | None = None) -> PaymentSession:
        """Open a payment session for an unpaid order and remember it on the order.

        Raises:
            UnsupportedGateway: a configured gateway name is unknown.
            ProviderCallFailed: the provider (and backup, if any) failed.
        """
        repo = current_domain.repository_for(Order)
        order = repo.get(order_id)
        if order.is_paid:
            raise ValidationError({"payment_status": [f"Order {order.id} is already paid"]})

        product = current_domain.repository_for(Product).get(order.product_id)
        primary, backup = self.gateways_for(product)

        session = create_with_fallback(
            self.registry,
            primary,
            backup,
            PaymentRequest(
                order_id=order.id,
                amount=order.amount,
                customer_name=order.customer_name,
                customer_email=order.customer_email,
                return_url=return_url,
                cancel_url=return_url,
            ),
        )

        order.record_payment_session(
            session.provider,
            session.reference,
            checkout_url=session.checkout_url,
            qr_string=session.qr_string,
            expires_at=session.expires_at,
        )
        repo.add(order)

        logger.info("payment.session_created", order_id=order.id, provider=session.provider, reference=session.reference)
        return session

    def handle_webhook(self, provider: str, payload: dict, headers: Mapping[str, str]) -> SettlementOutcome:
        """Verify, parse and apply a provider callback.

        Raises:
            UnsupportedGateway: ``provider`` is not registered.
            InvalidCallback: the payload failed verification.
            ValidationError: the payload names no order.
            ObjectNotFoundError: no order matches the callback.
        """
        gateway = self.registry.get(provider)
        if not gateway.verify_callback(payload, headers):
            logger.warning("payment.callback_rejected", provider=gateway.name)
            raise InvalidCallback(gateway.name, "signature verification failed")

        callback = gateway.parse_callback(payload)
        if not callback.order_id and not callback.provider_ref:
            raise ValidationError({"order_id": [f"No order reference in {gateway.name} callback"]})

        order = self._find_order(callback.order_id, callback.provider_ref)
        logger.info("payment.callback_received", provider=gateway.name, order_id=order.id, status=callback.status.value)
        return self._settle(order, gateway.name, callback.status, callback.amount, callback.provider_ref)

    def poll_payment(self, order_id: str) -> SettlementOutcome:
        """Ask the order's provider for the payment status and apply it."""
        order = current_domain.repository_for(Order).get(order_id)
        settled = self._already_settled(order)
        if settled is not None:
            return settled
        if not order.payment_provider or not order.payment_ref:
            raise ValidationError({"payment": [f"Order {order.id} has no payment session"]})

        gateway = self.registry.get(order.payment_provider)
        result = gateway.check_status(order.payment_ref)
        return self._settle(order, gateway.name, result.status, result.paid_amount, order.payment_ref)

    def _find_order(self, order_id: str | None, provider_ref: str | None) -> Order:
        repo = current_domain.repository_for(Order)
        if order_id:
            try:
                return repo.get(order_id)
            except ObjectNotFoundError:
                if not provider_ref:
                    raise

        matches = repo._dao.query.filter(payment_ref=provider_ref).limit(1).all().items
        if not matches:
            raise ObjectNotFoundError(f"No order found for payment reference {provider_ref}")
        return matches[0]

    def _already_settled(self, order: Order) -> SettlementOutcome | None:
        if order.is_paid:
            return SettlementOutcome(order.id, order.payment_status, "Payment already processed")
        if order.is_terminal:
            logger.warning("payment.ignored_for_terminal_order", order_id=order.id, status=order.status)
            return SettlementOutcome(order.id, order.payment_status, f"Order is {order.status}; payment ignored")
        return None

    def _settle(
        self,
        order: Order,
        provider: str | None,
        state: PaymentState,
        amount: int | None,
        provider_ref: str | None,
    ) -> SettlementOutcome:
        settled = self._already_settled(order)
        if settled is not None:
            return settled

        repo = current_domain.repository_for(Order)
        status = order.record_payment_status(
            provider,
            state.value,
            amount=amount,
            provider_ref=provider_ref,
            tolerance=self.settings.payment_amount_tolerance,
        )
        repo.add(order)

        if status == PaymentStatus.DISCREPANCY:
            logger.error("payment.amount_discrepancy", order_id=order.id, expected=order.amount, received=amount)
            return SettlementOutcome(order.id, status.value, "Payment amount does not match the order")

        if status != PaymentStatus.PAID:
            return SettlementOutcome(order.id, status.value, f"Payment is {status.value}")

        delivery = self.dispatcher.handle_delivery(order.id)
        return SettlementOutcome(order.id, status.value, delivery.message, delivery=delivery)
