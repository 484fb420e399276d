import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api import order_router, payment_router, stock_router
from ordering.api.errors import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(order_router)
    app.include_router(payment_router)
    app.include_router(stock_router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def checkout(client, catalog, carts, stock, address):
    """Arrange a cart of two 50.00 units for ``headers`` and check it out over HTTP."""

    def _checkout(headers=None, product_id="prod-001", quantity=2, available=10):
        headers = headers or {"X-User-Id": "user-001"}
        catalog.add_product(product_id, "Widget", 5000)
        stock(product_id, available)
        carts.put(headers["X-User-Id"], [{"product_id": product_id, "quantity": quantity}])
        return client.post(
            "/orders",
            json={"shipping_address": address, "payment_method": "credit_card"},
            headers=headers,
        )

    return _checkout
