"""Admin commands on orders: manual delivery and rejection."""

from enum import Enum

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order


class ManualDeliveryKind(Enum):
    ACCOUNT = "account"
    CODE = "code"


@fulfillment.command(part_of="Order")
class DeliverOrderManually:
    """Admin hands over an account (username + password) or a code."""

    order_id: Identifier(required=True)
    admin_id: String(required=True, max_length=255)
    kind: String(required=True, choices=ManualDeliveryKind)
    username: String(max_length=255)
    password: String(max_length=255)
    code: String(max_length=1000)
    instructions: Text()


@fulfillment.command(part_of="Order")
class RejectOrder:
    order_id: Identifier(required=True)
    reason: Text(required=True)
    admin_id: String(max_length=255)


def _manual_content(command: DeliverOrderManually) -> dict:
    if command.kind == ManualDeliveryKind.ACCOUNT.value:
        if not command.username or not command.password:
            raise ValidationError({"credentials": ["Username and password are required for account delivery"]})
        return {"type": ManualDeliveryKind.ACCOUNT.value, "username": command.username, "password": command.password}

    if not command.code:
        raise ValidationError({"code": ["A code is required for code delivery"]})
    return {"type": ManualDeliveryKind.CODE.value, "code": command.code}


@fulfillment.command_handler(part_of=Order)
class OrderAdminHandler:
    @handle(DeliverOrderManually)
    def deliver_manually(self, command: DeliverOrderManually):
        from fulfillment.services import get_services

        content = _manual_content(command)

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.is_delivered:
            raise ValidationError({"delivery_status": [f"Order {order.id} has already been delivered"]})

        order.deliver_manually(content, command.admin_id, instructions=command.instructions)
        repo.add(order)

        if order.customer_email:
            delivered = {k: v for k, v in content.items() if k != "type"}
            if command.instructions:
                delivered["instructions"] = command.instructions
            get_services().queue.order_delivered(order, delivered)

        return order.id

    @handle(RejectOrder)
    def reject(self, command: RejectOrder):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.reject(command.reason, admin_id=command.admin_id)
        repo.add(order)
        return order.id
