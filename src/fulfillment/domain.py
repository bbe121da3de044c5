"""Fulfillment bounded context: paid orders to delivered digital goods.

Owns orders, products' delivery configuration, the preloaded stock pool,
the notification queue and the per-order audit trail. All of them live in
one domain so a stock claim, the order's delivered state and the
notifications it triggers commit in a single unit of work.
"""

from protean.domain import Domain

fulfillment = Domain(name="fulfillment")
