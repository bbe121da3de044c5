"""Failure kinds raised while fulfilling an order.

Illegal state transitions are reported with protean's ``ValidationError``
like every other domain rule; the classes here cover operational failures
the dispatcher and worker need to tell apart.
"""


class FulfillmentError(Exception):
    """Base class for fulfillment failures."""


class OutOfStock(FulfillmentError):
    def __init__(self, product_slug: str) -> None:
        self.product_slug = product_slug
        super().__init__(f"No stock available for {product_slug}")


class MissingCustomerEmail(FulfillmentError):
    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(f"Customer email is required for delivery of order {order_id}")


class DeliveryAPIError(FulfillmentError):
    """The external delivery API failed.

    ``retryable`` is true for 5xx responses and transport errors.
    """

    def __init__(
        self,
        message: str,
        retryable: bool,
        status_code: int | None = None,
        detail: str | None = None,
        attempts: int = 1,
    ) -> None:
        self.retryable = retryable
        self.status_code = status_code
        self.detail = detail
        self.attempts = attempts
        super().__init__(message)


class QueueSendFailed(FulfillmentError):
    def __init__(self, template: str, recipient: str, reason: str) -> None:
        self.template = template
        self.recipient = recipient
        self.reason = reason
        super().__init__(f"Failed to send {template} to {recipient}: {reason}")


class AdminAlertFailed(FulfillmentError):
    """The chat-ops alert could not be posted. Never fails a delivery."""


class InvalidCallback(FulfillmentError):
    """A provider callback failed verification."""

    def __init__(self, provider: str, reason: str) -> None:
        self.provider = provider
        self.reason = reason
        super().__init__(f"Invalid {provider} callback: {reason}")
