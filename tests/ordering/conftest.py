import json

import pytest
from ordering.collaborators import (
    get_cart_service,
    get_catalog,
    get_notifier,
    get_shipping_methods,
    reset_collaborators,
)
from ordering.dispatch import process
from ordering.gateway import get_gateway, reset_gateway
from ordering.stock.initialization import InitializeStock
from protean import current_domain
from protean.integrations.pytest import DomainFixture

ADDRESS = {
    "street": "123 Main St",
    "city": "Springfield",
    "state": "IL",
    "postal_code": "62701",
    "country": "US",
}


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    reset_collaborators()
    reset_gateway()
    with ordering_bed.domain_context():
        yield
        for _, provider in current_domain.providers.items():
            provider._data_reset()
    reset_collaborators()
    reset_gateway()


@pytest.fixture()
def address():
    return dict(ADDRESS)


@pytest.fixture()
def catalog():
    return get_catalog()


@pytest.fixture()
def carts():
    return get_cart_service()


@pytest.fixture()
def shipping():
    return get_shipping_methods()


@pytest.fixture()
def notifier():
    return get_notifier()


@pytest.fixture()
def gateway():
    return get_gateway()


@pytest.fixture()
def stock():
    """Set a product's available quantity through the ledger."""

    def _stock(product_id, available):
        return process(InitializeStock(product_id=product_id, available=available))

    return _stock


@pytest.fixture()
def place_order(catalog, carts, stock):
    """Arrange a cart, catalog and stock for ``user_id`` and check it out.

    ``lines`` is a list of (product_id, quantity, unit_price) tuples. Stock
    defaults to 10 units per product unless given in ``stock_levels``.
    """
    from ordering.order.checkout import PlaceOrder

    def _place_order(user_id="user-001", lines=(("prod-001", 2, 5000),), stock_levels=None, coupon_code=None):
        stock_levels = stock_levels or {}
        for product_id, _, unit_price in lines:
            catalog.add_product(product_id, f"Product {product_id}", unit_price)
            stock(product_id, stock_levels.get(product_id, 10))
        carts.put(user_id, [{"product_id": product_id, "quantity": quantity} for product_id, quantity, _ in lines])
        return process(
            PlaceOrder(
                user_id=user_id,
                shipping_address=json.dumps(ADDRESS),
                payment_method="credit_card",
                coupon_code=coupon_code,
            )
        )

    return _place_order


@pytest.fixture()
def pay_order():
    """Charge an order's total through the (fake) gateway."""
    from ordering.payment.processing import ProcessPayment

    def _pay_order(order_id, actor_id="user-001", actor_role="customer"):
        return process(ProcessPayment(order_id=order_id, actor_id=actor_id, actor_role=actor_role))

    return _pay_order


@pytest.fixture()
def advance_order():
    """Move an order through ``statuses`` as an administrator."""
    from ordering.order.status import UpdateOrderStatus

    def _advance_order(order_id, *statuses):
        result = None
        for status in statuses:
            result = process(
                UpdateOrderStatus(order_id=order_id, status=status, actor_id="admin-001", actor_role="admin")
            )
        return result

    return _advance_order
