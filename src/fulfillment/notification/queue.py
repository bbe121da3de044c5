"""Enqueueing side of the notification queue.

Callers enqueue inside whatever unit of work is active, so a queued email
commits or rolls back together with the state change that caused it.
"""

from datetime import timedelta

import structlog
from protean.utils.globals import current_domain

from fulfillment.notification.queue_item import NotificationQueueItem
from fulfillment.notification.templates.formatting import format_content

logger = structlog.get_logger(__name__)

ORDER_CREATED = "order_created"
ORDER_DELIVERED = "order_delivered"
REVIEW_REQUEST = "review_request"
MANUAL_PENDING = "manual_pending"


class NotificationQueue:
    def __init__(self, max_attempts: int = 3, review_request_delay: timedelta = timedelta(minutes=3)) -> None:
        self.max_attempts = max_attempts
        self.review_request_delay = review_request_delay

    def enqueue(self, recipient, template, data=None, delay=None) -> NotificationQueueItem:
        item = NotificationQueueItem.enqueue(
            recipient,
            template,
            data=data,
            delay=delay,
            max_attempts=self.max_attempts,
        )
        current_domain.repository_for(NotificationQueueItem).add(item)
        logger.info("notification.queued", template=template, recipient=recipient, scheduled_at=str(item.scheduled_at))
        return item

    def order_created(self, order) -> NotificationQueueItem:
        return self.enqueue(
            order.customer_email,
            ORDER_CREATED,
            {
                "orderId": order.id,
                "productName": order.product_name,
                "customerName": order.customer_name,
                "amount": order.amount,
                "paymentMethod": (order.payment_provider or "QRIS").upper(),
            },
        )

    def order_delivered(self, order, content: str | dict) -> NotificationQueueItem:
        if isinstance(content, dict):
            content = format_content(content)
        return self.enqueue(
            order.customer_email,
            ORDER_DELIVERED,
            {
                "orderId": order.id,
                "productName": order.product_name,
                "customerName": order.customer_name,
                "content": content,
            },
        )

    def review_request(self, order) -> NotificationQueueItem:
        return self.enqueue(
            order.customer_email,
            REVIEW_REQUEST,
            {
                "productName": order.product_name,
                "customerName": order.customer_name,
                "productSlug": order.product_slug,
            },
            delay=self.review_request_delay,
        )

    def manual_pending(self, order) -> NotificationQueueItem:
        return self.enqueue(
            order.customer_email,
            MANUAL_PENDING,
            {
                "orderId": order.id,
                "productName": order.product_name,
                "customerName": order.customer_name,
            },
        )
