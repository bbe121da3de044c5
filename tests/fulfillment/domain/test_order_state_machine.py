"""Tests for the Order state machine: delivery, rejection and terminality."""

import pytest
from fulfillment.order.events import OrderDelivered, OrderPlaced, OrderRejected
from fulfillment.order.order import (
    ActorType,
    AuditEvent,
    DeliveryStatus,
    DeliveryType,
    Order,
    OrderStatus,
    PaymentStatus,
)
from fulfillment.utils.ids import is_valid_order_id
from protean.exceptions import ValidationError


def _make_order(**overrides):
    fields = {
        "product_id": "prod-001",
        "product_slug": "netflix-premium",
        "product_name": "Netflix Premium",
        "amount": 50000,
        "customer_name": "Budi",
        "customer_email": "budi@example.com",
    }
    fields.update(overrides)
    return Order.create(**fields)


def _deliver(order):
    order.mark_delivered(
        DeliveryType.PRELOADED.value,
        {"itemId": "item-1", "username": "u", "password": "p"},
        AuditEvent.DELIVERED_PRELOADED,
        audit_payload={"itemId": "item-1"},
    )
    return order


class TestOrderCreation:
    def test_new_order_is_pending_and_unpaid(self):
        order = _make_order()
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.UNPAID.value
        assert order.delivery_status is None
        assert order.customer_email == "budi@example.com"

    def test_generated_id_has_shop_format(self):
        order = _make_order()
        assert is_valid_order_id(order.id)

    def test_explicit_id_is_kept(self):
        order = _make_order(order_id="O1")
        assert order.id == "O1"

    def test_raises_order_placed(self):
        order = _make_order()
        assert len(order._events) == 1
        assert isinstance(order._events[0], OrderPlaced)
        assert order._events[0].amount == 50000


class TestDelivery:
    def test_mark_delivered_completes_order(self):
        order = _deliver(_make_order())
        assert order.status == OrderStatus.COMPLETED.value
        assert order.delivery_status == DeliveryStatus.DELIVERED.value
        assert order.delivery_type == DeliveryType.PRELOADED.value
        assert order.delivered_content()["username"] == "u"
        assert order.delivered_at is not None
        assert order.completed_at is not None
        assert order.delivered_by == "system"

    def test_mark_delivered_appends_audit_entry(self):
        order = _deliver(_make_order())
        entries = order.audit_trail(AuditEvent.DELIVERED_PRELOADED)
        assert len(entries) == 1
        assert entries[0].actor_type == ActorType.SYSTEM.value
        assert entries[0].payload_data == {"itemId": "item-1"}

    def test_mark_delivered_raises_event(self):
        order = _deliver(_make_order())
        assert isinstance(order._events[-1], OrderDelivered)

    def test_mark_delivered_clears_previous_failure(self):
        order = _make_order()
        order.record_delivery_failure("OutOfStock", "No stock available for netflix-premium")
        _deliver(order)
        assert order.delivery_error is None
        assert order.delivery_error_message is None

    def test_delivery_failure_keeps_order_pending(self):
        order = _make_order()
        order.record_delivery_failure("DeliveryAPIError", "Temporary server error: 503")
        assert order.status == OrderStatus.PENDING.value
        assert order.delivery_error == "DeliveryAPIError"
        assert order.public_status == OrderStatus.PENDING.value
        assert len(order.audit_trail(AuditEvent.DELIVERY_FAILED)) == 1

    def test_awaiting_admin_is_still_pending_for_customers(self):
        order = _make_order()
        order.mark_awaiting_admin("We will deliver within 24 hours")
        assert order.delivery_status == DeliveryStatus.AWAITING_ADMIN.value
        assert order.delivery_type == DeliveryType.MANUAL.value
        assert order.public_status == OrderStatus.PENDING.value

    def test_manual_delivery_is_attributed_to_admin(self):
        order = _make_order()
        order.mark_awaiting_admin()
        order.deliver_manually({"type": "code", "code": "ABCD-1234"}, admin_id="admin-7")
        assert order.status == OrderStatus.COMPLETED.value
        assert order.delivered_by == "admin-7"
        entry = order.audit_trail(AuditEvent.DELIVERED_MANUAL)[0]
        assert entry.actor_type == ActorType.ADMIN.value
        assert entry.actor_id == "admin-7"


class TestRejection:
    def test_reject_records_reason(self):
        order = _make_order()
        order.reject("  Payment proof is fake  ", admin_id="admin-1")
        assert order.status == OrderStatus.REJECTED.value
        assert order.rejection_reason == "Payment proof is fake"
        assert order.rejected_at is not None
        assert isinstance(order._events[-1], OrderRejected)
        assert order.audit_trail(AuditEvent.ORDER_REJECTED)[0].payload_data == {"reason": "Payment proof is fake"}

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_reject_requires_reason(self, reason):
        order = _make_order()
        with pytest.raises(ValidationError) as exc:
            order.reject(reason)
        assert "rejection_reason" in exc.value.messages
        assert order.status == OrderStatus.PENDING.value


class TestTerminality:
    @pytest.fixture(params=["completed", "rejected"])
    def terminal_order(self, request):
        order = _make_order()
        if request.param == "completed":
            return _deliver(order)
        order.reject("Fraud")
        return order

    def test_cannot_deliver_again(self, terminal_order):
        with pytest.raises(ValidationError):
            _deliver(terminal_order)

    def test_cannot_reject(self, terminal_order):
        with pytest.raises(ValidationError):
            terminal_order.reject("Changed my mind")

    def test_cannot_mark_awaiting_admin(self, terminal_order):
        with pytest.raises(ValidationError):
            terminal_order.mark_awaiting_admin()

    def test_cannot_record_delivery_failure(self, terminal_order):
        with pytest.raises(ValidationError):
            terminal_order.record_delivery_failure("OutOfStock", "none left")

    def test_cannot_record_payment(self, terminal_order):
        with pytest.raises(ValidationError):
            terminal_order.record_payment_status("pakasir", PaymentStatus.PAID.value, amount=50000)

    def test_audit_entries_can_still_be_appended(self, terminal_order):
        before = len(terminal_order.audit_entries)
        terminal_order.append_audit("NOTE_ADDED", actor_type=ActorType.ADMIN.value, actor_id="admin-1")
        assert len(terminal_order.audit_entries) == before + 1
        assert terminal_order.is_terminal

    def test_customers_see_the_terminal_status(self, terminal_order):
        assert terminal_order.public_status == terminal_order.status
        assert terminal_order.public_status in (OrderStatus.COMPLETED.value, OrderStatus.REJECTED.value)
