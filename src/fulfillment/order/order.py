"""Order aggregate: a customer's purchase of one digital product.

State Machine:
    PENDING → COMPLETED   (preloaded, API or manual delivery succeeds)
    PENDING → REJECTED    (admin rejects with a reason)

While PENDING, the delivery sub-state tells why the order is not done yet:
no delivery attempt, a failed attempt (``delivery_error`` set) or
``AWAITING_ADMIN`` for manual products. Customers see all of these as
PENDING.

COMPLETED and REJECTED are terminal. Every mutation except appending an
audit entry is refused once the order is terminal.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text, ValueObject

from fulfillment.domain import fulfillment
from fulfillment.order.events import (
    OrderAwaitingAdmin,
    OrderDelivered,
    OrderPlaced,
    OrderRejected,
    PaymentConfirmed,
    PaymentDiscrepancyDetected,
)
from fulfillment.utils.ids import generate_order_id


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


class PaymentStatus(Enum):
    UNPAID = "UNPAID"
    PENDING = "PENDING"
    PAID = "PAID"
    EXPIRED = "EXPIRED"
    FAILED = "FAILED"
    DISCREPANCY = "DISCREPANCY"


class DeliveryType(Enum):
    PRELOADED = "preloaded"
    API = "api"
    MANUAL = "manual"


class DeliveryStatus(Enum):
    AWAITING_ADMIN = "AWAITING_ADMIN"
    DELIVERED = "DELIVERED"


class ActorType(Enum):
    ADMIN = "admin"
    SYSTEM = "system"


class AuditEvent(Enum):
    PAYMENT_SESSION_CREATED = "PAYMENT_SESSION_CREATED"
    PAYMENT_CONFIRMED = "PAYMENT_CONFIRMED"
    PAYMENT_DISCREPANCY = "PAYMENT_DISCREPANCY"
    DELIVERED_PRELOADED = "DELIVERED_PRELOADED"
    DELIVERED_API = "DELIVERED_API"
    DELIVERED_MANUAL = "DELIVERED_MANUAL"
    MARKED_PENDING_ADMIN = "MARKED_PENDING_ADMIN"
    DELIVERY_FAILED = "DELIVERY_FAILED"
    ORDER_REJECTED = "ORDER_REJECTED"


_TERMINAL_STATUSES = {OrderStatus.COMPLETED, OrderStatus.REJECTED}


# ---------------------------------------------------------------------------
# Value Objects / Entities
# ---------------------------------------------------------------------------
@fulfillment.value_object(part_of="Order")
class CustomerInfo:
    """Who bought the order and where the goods are sent."""

    name: String(required=True, max_length=200)
    email: String(max_length=254)


@fulfillment.entity(part_of="Order")
class AuditEntry:
    """One immutable line of the order's audit trail."""

    event: String(required=True, max_length=50)
    actor_type: String(choices=ActorType, default=ActorType.SYSTEM.value)
    actor_id: String(max_length=255)
    payload: Text()  # JSON
    timestamp: DateTime(required=True)

    @property
    def payload_data(self) -> dict:
        return json.loads(self.payload) if self.payload else {}


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@fulfillment.aggregate
class Order:
    """A customer's order for one digital product, from payment to delivery."""

    status: String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    amount: Integer(required=True, min_value=0)
    currency: String(max_length=3, default="IDR")
    customer: ValueObject(CustomerInfo, required=True)

    # Product snapshot
    product_id: Identifier(required=True)
    product_slug: String(required=True, max_length=200)
    product_name: String(max_length=255)

    # Payment
    payment_provider: String(max_length=50)
    payment_ref: String(max_length=255)
    payment_status: String(choices=PaymentStatus, default=PaymentStatus.UNPAID.value)
    checkout_url: String(max_length=1000)
    qr_string: Text()
    payment_expires_at: DateTime()
    paid_amount: Integer()
    paid_at: DateTime()

    # Delivery
    delivery_type: String(choices=DeliveryType)
    delivery_status: String(choices=DeliveryStatus)
    delivery_content: Text()  # JSON
    delivery_instructions: Text()
    delivered_at: DateTime()
    delivered_by: String(max_length=255)
    delivery_error: String(max_length=100)
    delivery_error_message: Text()

    # Rejection
    rejection_reason: Text()
    rejected_at: DateTime()

    audit_entries: HasMany(AuditEntry)

    # Timestamps
    created_at: DateTime()
    updated_at: DateTime()
    completed_at: DateTime()

    @invariant.post
    def delivered_orders_are_completed(self):
        if self.delivery_status == DeliveryStatus.DELIVERED.value and self.status != OrderStatus.COMPLETED.value:
            raise ValidationError({"delivery_status": ["A delivered order must be completed"]})

    @invariant.post
    def rejected_orders_carry_a_reason(self):
        if self.status == OrderStatus.REJECTED.value and not (self.rejection_reason or "").strip():
            raise ValidationError({"rejection_reason": ["A rejected order must have a reason"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        product_id,
        product_slug,
        amount,
        customer_name,
        customer_email=None,
        product_name=None,
        currency="IDR",
        order_id=None,
    ):
        """Place a new PENDING, unpaid order."""
        now = datetime.now(UTC)

        order = cls(
            id=order_id or generate_order_id(now),
            status=OrderStatus.PENDING.value,
            amount=amount,
            currency=currency,
            customer=CustomerInfo(name=customer_name, email=customer_email),
            product_id=product_id,
            product_slug=product_slug,
            product_name=product_name,
            payment_status=PaymentStatus.UNPAID.value,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                product_id=str(product_id),
                product_slug=product_slug,
                amount=amount,
                currency=currency,
                customer_email=customer_email,
                placed_at=now,
            )
        )

        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in _TERMINAL_STATUSES

    @property
    def is_delivered(self) -> bool:
        return self.delivery_status == DeliveryStatus.DELIVERED.value

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    @property
    def customer_email(self) -> str | None:
        return self.customer.email if self.customer else None

    @property
    def customer_name(self) -> str | None:
        return self.customer.name if self.customer else None

    @property
    def public_status(self) -> str:
        """Status shown to customers.

        Awaiting-admin and failed deliveries are tracked on ``delivery_status``
        while ``status`` stays PENDING, so every undelivered condition reads as PENDING.
        """
        return self.status

    def delivered_content(self) -> dict:
        return json.loads(self.delivery_content) if self.delivery_content else {}

    # -------------------------------------------------------------------
    # Audit
    # -------------------------------------------------------------------
    def append_audit(self, event, actor_type=ActorType.SYSTEM.value, actor_id=None, payload=None, timestamp=None):
        """Append an entry to the audit trail. Allowed in every state."""
        event = event.value if isinstance(event, AuditEvent) else event
        entry = AuditEntry(
            event=event,
            actor_type=actor_type,
            actor_id=actor_id,
            payload=json.dumps(payload or {}, default=str),
            timestamp=timestamp or datetime.now(UTC),
        )
        self.add_audit_entries(entry)
        return entry

    def audit_trail(self, event=None) -> list:
        """Audit entries in chronological order, optionally filtered by event tag."""
        event = event.value if isinstance(event, AuditEvent) else event
        entries = sorted(self.audit_entries, key=lambda e: e.timestamp)
        return [e for e in entries if event is None or e.event == event]

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def _assert_mutable(self):
        if self.is_terminal:
            raise ValidationError({"status": [f"Order {self.id} is {self.status} and can no longer change"]})

    def record_payment_session(self, provider, reference, checkout_url=None, qr_string=None, expires_at=None):
        """Remember the session opened at the payment provider."""
        self._assert_mutable()

        now = datetime.now(UTC)
        self.payment_provider = provider
        self.payment_ref = reference
        self.checkout_url = checkout_url
        self.qr_string = qr_string
        self.payment_expires_at = expires_at
        self.payment_status = PaymentStatus.PENDING.value
        self.updated_at = now

        self.append_audit(
            AuditEvent.PAYMENT_SESSION_CREATED,
            actor_id=provider,
            payload={"provider": provider, "reference": reference},
            timestamp=now,
        )

    def record_payment_status(self, provider, status, amount=None, provider_ref=None, tolerance=0.01):
        """Apply a payment status reported by a provider (webhook or poll).

        A reported amount further than ``tolerance`` (fraction of the order
        amount) from the order amount puts the payment in DISCREPANCY
        instead of PAID.

        Returns the resulting ``PaymentStatus``.
        """
        self._assert_mutable()

        now = datetime.now(UTC)
        status = PaymentStatus(status)

        if status == PaymentStatus.PAID and amount is not None and self.amount:
            if abs(amount - self.amount) > self.amount * tolerance:
                self.payment_status = PaymentStatus.DISCREPANCY.value
                self.paid_amount = amount
                self.updated_at = now
                self.append_audit(
                    AuditEvent.PAYMENT_DISCREPANCY,
                    actor_id=provider,
                    payload={
                        "expectedAmount": self.amount,
                        "receivedAmount": amount,
                        "providerRef": provider_ref,
                        "reason": f"Amount mismatch: expected {self.amount}, received {amount}",
                    },
                    timestamp=now,
                )
                self.raise_(
                    PaymentDiscrepancyDetected(
                        order_id=str(self.id),
                        provider=provider,
                        expected_amount=self.amount,
                        received_amount=amount,
                        detected_at=now,
                    )
                )
                return PaymentStatus.DISCREPANCY

        self.payment_status = status.value
        if provider:
            self.payment_provider = provider
        if provider_ref:
            self.payment_ref = provider_ref
        self.updated_at = now

        if status == PaymentStatus.PAID:
            self.paid_at = now
            self.paid_amount = amount if amount is not None else self.amount
            self.append_audit(
                AuditEvent.PAYMENT_CONFIRMED,
                actor_id=provider,
                payload={"paymentStatus": status.value, "providerRef": provider_ref, "amount": amount},
                timestamp=now,
            )
            self.raise_(
                PaymentConfirmed(
                    order_id=str(self.id),
                    provider=provider,
                    provider_ref=provider_ref,
                    paid_amount=self.paid_amount,
                    paid_at=now,
                )
            )

        return status

    def mark_delivered(
        self,
        delivery_type,
        content,
        audit_event,
        actor_type=ActorType.SYSTEM.value,
        actor_id="system",
        audit_payload=None,
        instructions=None,
    ):
        """Complete the order with the delivered content and record who did it."""
        self._assert_mutable()

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = OrderStatus.COMPLETED.value
            self.delivery_type = DeliveryType(delivery_type).value
            self.delivery_status = DeliveryStatus.DELIVERED.value
            self.delivery_content = json.dumps(content or {}, default=str)
            if instructions is not None:
                self.delivery_instructions = instructions
            self.delivered_at = now
            self.delivered_by = actor_id
            self.delivery_error = None
            self.delivery_error_message = None
            self.completed_at = now
            self.updated_at = now

        self.append_audit(audit_event, actor_type=actor_type, actor_id=actor_id, payload=audit_payload, timestamp=now)

        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                delivery_type=self.delivery_type,
                delivered_by=actor_id,
                delivered_at=now,
            )
        )

    def mark_awaiting_admin(self, instructions=None):
        """Park a manual-delivery order until an admin fulfils it."""
        self._assert_mutable()

        now = datetime.now(UTC)
        self.delivery_type = DeliveryType.MANUAL.value
        self.delivery_status = DeliveryStatus.AWAITING_ADMIN.value
        self.delivery_instructions = instructions
        self.updated_at = now

        self.append_audit(
            AuditEvent.MARKED_PENDING_ADMIN,
            payload={"productSlug": self.product_slug},
            timestamp=now,
        )

        self.raise_(
            OrderAwaitingAdmin(
                order_id=str(self.id),
                product_slug=self.product_slug,
                marked_at=now,
            )
        )

    def record_delivery_failure(self, error, message):
        """Keep the order PENDING but remember why delivery failed."""
        self._assert_mutable()

        now = datetime.now(UTC)
        self.delivery_error = error
        self.delivery_error_message = message
        self.updated_at = now

        self.append_audit(AuditEvent.DELIVERY_FAILED, payload={"error": error, "message": message}, timestamp=now)

    def deliver_manually(self, content, admin_id, instructions=None):
        """Admin hands over the goods (account credentials or a code)."""
        self.mark_delivered(
            DeliveryType.MANUAL.value,
            content,
            AuditEvent.DELIVERED_MANUAL,
            actor_type=ActorType.ADMIN.value,
            actor_id=admin_id,
            audit_payload={"kind": content.get("type"), "instructions": instructions},
            instructions=instructions,
        )

    def reject(self, reason, admin_id=None):
        if not reason or not reason.strip():
            raise ValidationError({"rejection_reason": ["Rejection reason is required"]})
        self._assert_mutable()

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = OrderStatus.REJECTED.value
            self.rejection_reason = reason.strip()
            self.rejected_at = now
            self.updated_at = now

        self.append_audit(
            AuditEvent.ORDER_REJECTED,
            actor_type=ActorType.ADMIN.value,
            actor_id=admin_id,
            payload={"reason": self.rejection_reason},
            timestamp=now,
        )

        self.raise_(
            OrderRejected(
                order_id=str(self.id),
                reason=self.rejection_reason,
                rejected_by=admin_id,
                rejected_at=now,
            )
        )
