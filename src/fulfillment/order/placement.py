"""Order placement: command and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order
from fulfillment.product.product import Product


@fulfillment.command(part_of="Order")
class PlaceOrder:
    """Place a PENDING order for one product."""

    product_id: Identifier(required=True)
    amount: Integer(required=True, min_value=0)
    customer_name: String(required=True, max_length=200)
    customer_email: String(max_length=254)
    currency: String(max_length=3, default="IDR")
    order_id: Identifier()


@fulfillment.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command: PlaceOrder):
        from fulfillment.services import get_services

        product = current_domain.repository_for(Product).get(command.product_id)
        order = Order.create(
            product_id=product.id,
            product_slug=product.slug,
            product_name=product.title,
            amount=command.amount,
            currency=command.currency or "IDR",
            customer_name=command.customer_name,
            customer_email=command.customer_email,
            order_id=command.order_id,
        )
        current_domain.repository_for(Order).add(order)

        if order.customer_email:
            get_services().queue.order_created(order)

        return str(order.id)
