"""Delivery strategies: one per kind of product delivery.

Each strategy either returns a successful ``DeliveryResult`` or raises a
``FulfillmentError``; turning failures into recorded order state is the
dispatcher's job. Network calls (external API, admin alert) happen outside
any unit of work so no transaction is held open across them.
"""

import structlog
from protean.core.unit_of_work import UnitOfWork
from protean.utils.globals import current_domain

from fulfillment.alert.port import AdminAlertPort, ManualDeliveryAlert
from fulfillment.delivery.api_deliverer import RetryingAPIDeliverer, build_payload
from fulfillment.delivery.result import Actor, DeliveryResult
from fulfillment.errors import AdminAlertFailed, DeliveryAPIError
from fulfillment.notification.queue import NotificationQueue
from fulfillment.order.order import AuditEvent, DeliveryStatus, DeliveryType, Order
from fulfillment.product.product import ApiDelivery, ManualDelivery, PreloadedDelivery
from fulfillment.stock.ledger import StockLedger

logger = structlog.get_logger(__name__)

DEFAULT_API_DELIVERY_CONTENT = "Please check your account for the delivered product."


class PreloadedStrategy:
    def __init__(self, ledger: StockLedger, queue: NotificationQueue) -> None:
        self.ledger = ledger
        self.queue = queue

    def deliver(self, order: Order, product, config: PreloadedDelivery, actor: Actor) -> DeliveryResult:
        def enqueue_notifications(delivered_order, item):
            self.queue.order_delivered(delivered_order, item.payload_data)
            self.queue.review_request(delivered_order)

        item = self.ledger.claim_one(
            config.product_slug,
            order.id,
            order.customer_email,
            actor=actor,
            after_claim=enqueue_notifications,
        )
        return DeliveryResult.ok(
            "Product delivered successfully",
            type=DeliveryType.PRELOADED.value,
            itemId=str(item.id),
        )


class ApiStrategy:
    def __init__(self, deliverer: RetryingAPIDeliverer, queue: NotificationQueue) -> None:
        self.deliverer = deliverer
        self.queue = queue

    def deliver(self, order: Order, product, config: ApiDelivery, actor: Actor) -> DeliveryResult:
        if not config.endpoint:
            raise DeliveryAPIError("No API delivery configuration found for this product", retryable=False)

        response = self.deliverer.deliver(config, build_payload(order, product, config))

        with UnitOfWork():
            repo = current_domain.repository_for(Order)
            order = repo.get(order.id)
            order.mark_delivered(
                DeliveryType.API.value,
                {"transactionId": response.transaction_id, "apiResponse": response.body},
                AuditEvent.DELIVERED_API,
                actor_type=actor.type,
                actor_id=actor.id,
                audit_payload={
                    "endpoint": config.endpoint,
                    "transactionId": response.transaction_id,
                    "attempts": response.attempts,
                },
            )
            repo.add(order)

            self.queue.order_delivered(order, product.instructions or DEFAULT_API_DELIVERY_CONTENT)
            self.queue.review_request(order)

        return DeliveryResult.ok(
            "Product delivered via API successfully",
            type=DeliveryType.API.value,
            transactionId=response.transaction_id,
            apiResponse=response.body,
            attempts=response.attempts,
        )


class ManualStrategy:
    def __init__(self, queue: NotificationQueue, alerts: AdminAlertPort) -> None:
        self.queue = queue
        self.alerts = alerts

    def deliver(self, order: Order, product, config: ManualDelivery, actor: Actor) -> DeliveryResult:  # noqa: ARG002
        if order.delivery_status == DeliveryStatus.AWAITING_ADMIN.value:
            return DeliveryResult.ok(
                "Order is already awaiting admin delivery",
                type=DeliveryType.MANUAL.value,
                status=DeliveryStatus.AWAITING_ADMIN.value,
            )

        with UnitOfWork():
            repo = current_domain.repository_for(Order)
            order = repo.get(order.id)
            order.mark_awaiting_admin(config.instructions or "Awaiting admin verification")
            repo.add(order)

            self.queue.manual_pending(order)

        try:
            self.alerts.manual_delivery_needed(
                ManualDeliveryAlert(
                    order_id=order.id,
                    product_name=product.title,
                    customer_name=order.customer_name,
                    customer_email=order.customer_email,
                    amount=order.amount,
                    status=order.delivery_status,
                )
            )
        except AdminAlertFailed as exc:
            logger.warning("delivery.admin_alert_failed", order_id=order.id, error=str(exc))

        return DeliveryResult.ok(
            "Order marked as pending admin delivery",
            type=DeliveryType.MANUAL.value,
            status=DeliveryStatus.AWAITING_ADMIN.value,
        )
