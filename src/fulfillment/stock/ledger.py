"""StockLedger: atomic claim of one unused record from a product's pool.

A claim marks the record used, completes the order with the record's
payload and appends the ``DELIVERED_PRELOADED`` audit entry in a single
unit of work. Claims against the same pool are serialized with a
per-product lock held for the whole unit of work, so two orders can never
receive the same record.
"""

import threading
from collections.abc import Callable

import structlog
from protean.core.unit_of_work import UnitOfWork
from protean.utils.globals import current_domain

from fulfillment.delivery.result import Actor
from fulfillment.errors import OutOfStock
from fulfillment.order.order import AuditEvent, DeliveryType, Order
from fulfillment.stock.stock import StockItem

logger = structlog.get_logger(__name__)


class StockLedger:
    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, product_slug: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(product_slug, threading.Lock())

    def available(self, product_slug: str) -> int:
        """Number of unused records left in the pool."""
        repo = current_domain.repository_for(StockItem)
        return len(repo._dao.query.filter(product_slug=product_slug, used=False).all().items)

    def claim_one(
        self,
        product_slug: str,
        order_id: str,
        customer_email: str,
        actor: Actor | None = None,
        after_claim: Callable[[Order, StockItem], None] | None = None,
    ) -> StockItem:
        """Claim one unused record for ``order_id`` and complete the order with it.

        ``after_claim`` runs inside the same unit of work, after the order is
        marked delivered; whatever it persists commits or rolls back together
        with the claim.

        Raises:
            OutOfStock: the pool has no unused record. Nothing is written.
        """
        actor = actor or Actor.system()

        with self._lock_for(product_slug):
            with UnitOfWork():
                stock_repo = current_domain.repository_for(StockItem)
                candidates = (
                    stock_repo._dao.query.filter(product_slug=product_slug, used=False)
                    .order_by("created_at")
                    .limit(1)
                    .all()
                    .items
                )
                if not candidates:
                    raise OutOfStock(product_slug)

                item = candidates[0]
                item.consume(order_id, customer_email)
                stock_repo.add(item)

                order_repo = current_domain.repository_for(Order)
                order = order_repo.get(order_id)
                order.mark_delivered(
                    DeliveryType.PRELOADED.value,
                    {"itemId": str(item.id), **item.payload_data},
                    AuditEvent.DELIVERED_PRELOADED,
                    actor_type=actor.type,
                    actor_id=actor.id,
                    audit_payload={"itemId": str(item.id), "productSlug": product_slug},
                )
                order_repo.add(order)

                if after_claim is not None:
                    after_claim(order, item)

        logger.info("stock.claimed", product_slug=product_slug, order_id=order_id, item_id=str(item.id))
        return item
