"""DeliveryDispatcher: routes a paid order to the strategy its product needs.

``handle_delivery`` never raises for delivery failures. It records
``delivery_error``/``delivery_error_message`` on the order, leaves it
PENDING and reports ``success=False`` so the caller (webhook, poll or
admin) can decide whether to re-dispatch later.
"""

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from fulfillment.delivery.result import Actor, DeliveryResult
from fulfillment.errors import FulfillmentError, MissingCustomerEmail
from fulfillment.order.order import Order, OrderStatus
from fulfillment.product.product import Product
from fulfillment.utils.logging import bind_order_context

logger = structlog.get_logger(__name__)


def _error_message(exc: Exception) -> str:
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        return "; ".join(f"{field}: {', '.join(map(str, errs))}" for field, errs in messages.items())
    return str(exc)


class DeliveryDispatcher:
    def __init__(self, strategies: dict, api_retry_attempts: int = 3, api_retry_base_delay_ms: int = 1000) -> None:
        """``strategies`` maps a delivery kind (preloaded, api, manual) to its strategy.

        The retry arguments are the policy for API products that do not set one.
        """
        self.strategies = strategies
        self.api_retry_attempts = api_retry_attempts
        self.api_retry_base_delay_ms = api_retry_base_delay_ms

    def handle_delivery(self, order_id: str, product_id: str | None = None, actor: Actor | None = None):
        """Deliver ``order_id`` according to its product's delivery configuration.

        Raises:
            ObjectNotFoundError: the order or product does not exist.
        """
        actor = actor or Actor.system()
        bind_order_context(order_id, actor=actor.id)
        order = current_domain.repository_for(Order).get(order_id)

        if order.is_delivered:
            return DeliveryResult.ok("Order already delivered", type=order.delivery_type, alreadyDelivered=True)
        if order.status == OrderStatus.REJECTED.value:
            return DeliveryResult.failed(f"Order {order_id} was rejected", "OrderRejected")

        product = current_domain.repository_for(Product).get(product_id or order.product_id)
        logger.info("delivery.dispatching", order_id=order_id, delivery_type=product.delivery_type, actor=actor.type)
        try:
            config = product.delivery_config(self.api_retry_attempts, self.api_retry_base_delay_ms)
            if not order.customer_email:
                raise MissingCustomerEmail(order_id)
            return self.strategies[config.kind].deliver(order, product, config, actor)
        except (FulfillmentError, ValidationError) as exc:
            error, message = type(exc).__name__, _error_message(exc)
            logger.warning(
                "delivery.failed", order_id=order_id, delivery_type=product.delivery_type, error=error, reason=message
            )
            self._record_failure(order_id, error, message)
            return DeliveryResult.failed(message, error)

    def _record_failure(self, order_id: str, error: str, message: str) -> None:
        repo = current_domain.repository_for(Order)
        order = repo.get(order_id)
        if order.is_terminal:
            return
        order.record_delivery_failure(error, message)
        repo.add(order)
