"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from fulfillment.domain import fulfillment


@fulfillment.event(part_of="Order")
class OrderPlaced:
    """A customer placed an order for a product."""

    __version__ = 1

    order_id: Identifier(required=True)
    product_id: Identifier(required=True)
    product_slug: String(required=True)
    amount: Integer(required=True)
    currency: String(required=True)
    customer_email: String()
    placed_at: DateTime(required=True)


@fulfillment.event(part_of="Order")
class PaymentConfirmed:
    """The payment provider reported the order as paid."""

    __version__ = 1

    order_id: Identifier(required=True)
    provider: String(required=True)
    provider_ref: String()
    paid_amount: Integer(required=True)
    paid_at: DateTime(required=True)


@fulfillment.event(part_of="Order")
class PaymentDiscrepancyDetected:
    """The amount reported by the provider differs from the order amount beyond tolerance."""

    __version__ = 1

    order_id: Identifier(required=True)
    provider: String(required=True)
    expected_amount: Integer(required=True)
    received_amount: Integer(required=True)
    detected_at: DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderDelivered:
    """The product was delivered and the order completed."""

    __version__ = 1

    order_id: Identifier(required=True)
    delivery_type: String(required=True)
    delivered_by: String(required=True)
    delivered_at: DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderAwaitingAdmin:
    """The order needs an admin to deliver it by hand."""

    __version__ = 1

    order_id: Identifier(required=True)
    product_slug: String(required=True)
    marked_at: DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderRejected:
    """An admin rejected the order."""

    __version__ = 1

    order_id: Identifier(required=True)
    reason: String(required=True)
    rejected_by: String()
    rejected_at: DateTime(required=True)
