"""Shared BDD fixtures and step definitions for the Ordering domain."""

import json

import pytest
from ordering.collaborators.port import ShippingMethod
from ordering.dispatch import process
from ordering.order.checkout import PlaceOrder
from ordering.order.order import Order
from ordering.order.status import UpdateOrderStatus
from ordering.payment.processing import ProcessPayment
from ordering.stock.stock import StockLevel
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from pytest_bdd import given, parsers, then, when


def _cents(amount: float) -> int:
    return int(round(amount * 100))


@pytest.fixture()
def outcome():
    """Container for the error raised by the last When step, if any."""
    return {"error": None}


@pytest.fixture()
def attempt(outcome):
    """Run a When action, capturing a domain error into ``outcome`` instead of raising it."""

    def _attempt(action):
        outcome["error"] = None
        try:
            return action()
        except (ValidationError, ObjectNotFoundError) as exc:
            outcome["error"] = exc
            return None

    return _attempt


def _checkout(user_id, address):
    return process(PlaceOrder(user_id=user_id, shipping_address=json.dumps(address), payment_method="credit_card"))


def _as_admin(order_id, status):
    process(UpdateOrderStatus(order_id=order_id, status=status, actor_id="admin-001", actor_role="admin"))


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('product "{product_id}" priced at {price:f} with {available:d} in stock'))
def _(catalog, stock, product_id, price, available):
    catalog.add_product(product_id, f"Product {product_id}", _cents(price))
    stock(product_id, available)


@given("shipping is free")
def _(shipping):
    shipping.set_default(ShippingMethod(id="free", name="Free Shipping", base_cost=0))


@given(parsers.cfparse("shipping costs {cost:f}"))
def _(shipping, cost):
    shipping.set_default(ShippingMethod(id="flat", name="Flat Rate", base_cost=_cents(cost)))


@given(parsers.cfparse('"{user_id}" has {quantity:d} of "{product_id}" in the cart'))
def _(carts, user_id, quantity, product_id):
    carts.put(user_id, [{"product_id": product_id, "quantity": quantity}])


@given(parsers.cfparse('"{user_id}" checked out'), target_fixture="placed")
def _(user_id, address):
    return _checkout(user_id, address)


@given("the order was paid")
def _(placed):
    process(ProcessPayment(order_id=placed["order_id"], actor_id="admin-001", actor_role="admin"))


@given("the order was shipped")
def _(placed):
    _as_admin(placed["order_id"], "shipped")


@given("the gateway declines charges")
def _(gateway):
    gateway.configure(should_succeed=False, failure_reason="Card declined")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('"{user_id}" checks out'), target_fixture="placed")
def _(attempt, user_id, address):
    return attempt(lambda: _checkout(user_id, address))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('"{product_id}" has {available:d} in stock'))
def _(product_id, available):
    assert current_domain.repository_for(StockLevel).available(product_id) == available


@then(parsers.cfparse('the order status is "{status}"'))
def _(placed, status):
    assert current_domain.repository_for(Order).get(placed["order_id"]).order_status == status


@then(parsers.cfparse('the order payment status is "{status}"'))
def _(placed, status):
    assert current_domain.repository_for(Order).get(placed["order_id"]).payment_status == status


@then(parsers.cfparse("the request fails with {error_name}"))
def _(outcome, error_name):
    assert outcome["error"] is not None, f"Expected {error_name} but nothing was raised"
    assert type(outcome["error"]).__name__ == error_name
