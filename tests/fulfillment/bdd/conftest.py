"""Shared BDD fixtures and step definitions for order delivery."""

import json

import pytest
from fulfillment.order.order import Order
from protean import current_domain
from pytest_bdd import given, parsers, then


@pytest.fixture()
def catalog():
    """Products created by the scenario, by slug."""
    return {}


def _order(order_id) -> Order:
    return current_domain.repository_for(Order).get(order_id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the shop sells "{slug}" with "{delivery_type}" delivery'))
def shop_sells(services, make_product, catalog, slug, delivery_type):
    fields = {}
    if delivery_type == "api":
        fields = {
            "api_endpoint": "https://supplier.example.com/v1/topup",
            "api_key": "supplier-key",
            "api_payload_template": json.dumps({"sku": slug}),
        }
    catalog[slug] = make_product(delivery_type=delivery_type, slug=slug, title=slug.replace("-", " ").title(), **fields)


@given(parsers.cfparse('the stock pool "{slug}" holds the account "{username}"'))
def stock_holds_account(load_stock, slug, username):
    load_stock(slug, {"username": username, "password": "pw-1"})


@given(parsers.cfparse('order "{order_id}" for "{slug}" costs {amount:d}'))
def order_exists(make_order, catalog, order_id, slug, amount):
    make_order(catalog[slug], amount=amount, order_id=order_id)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('order "{order_id}" is "{status}"'))
def order_has_status(order_id, status):
    assert _order(order_id).status == status


@then(parsers.cfparse('order "{order_id}" has payment status "{payment_status}"'))
def order_has_payment_status(order_id, payment_status):
    assert _order(order_id).payment_status == payment_status


@then(parsers.cfparse('the stock pool "{slug}" has {count:d} items left'))
def stock_left(services, slug, count):
    assert services.ledger.available(slug) == count
