"""StockItem aggregate: one single-use credential record in a product's pool.

Preloaded products keep a pool of records (account credentials, license
keys, voucher codes). A record is handed to exactly one order and is never
reassigned afterwards.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String, Text

from fulfillment.domain import fulfillment


@fulfillment.aggregate
class StockItem:
    product_slug: String(required=True, max_length=200)
    payload: Text(required=True)  # JSON, e.g. {"username": ..., "password": ...}
    used: Boolean(default=False)
    used_by: Identifier()
    used_by_email: String(max_length=254)
    used_at: DateTime()
    created_at: DateTime()

    @classmethod
    def load(cls, product_slug, payload: dict):
        """Add a fresh, unused record to a product's pool."""
        return cls(
            product_slug=product_slug,
            payload=json.dumps(payload),
            used=False,
            created_at=datetime.now(UTC),
        )

    @property
    def payload_data(self) -> dict:
        return json.loads(self.payload) if self.payload else {}

    def consume(self, order_id, customer_email):
        """Hand this record to an order."""
        if self.used:
            raise ValidationError({"used": [f"Stock item {self.id} was already delivered to order {self.used_by}"]})

        self.used = True
        self.used_by = order_id
        self.used_by_email = customer_email
        self.used_at = datetime.now(UTC)
