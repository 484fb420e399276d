from ordering.stock.stock import StockLevel
from protean import current_domain

CUSTOMER = {"X-User-Id": "user-001"}
ADMIN = {"X-User-Id": "admin-001", "X-User-Role": "admin"}


def test_admin_initializes_stock(client):
    response = client.post("/stock", json={"product_id": "prod-9", "available": 25}, headers=ADMIN)

    assert response.status_code == 201
    assert response.json() == {"product_id": "prod-9", "available": 25}
    assert current_domain.repository_for(StockLevel).available("prod-9") == 25


def test_customers_may_not_manage_stock(client):
    response = client.post("/stock", json={"product_id": "prod-9", "available": 25}, headers=CUSTOMER)
    assert response.status_code == 403


def test_negative_stock_is_rejected(client):
    response = client.post("/stock", json={"product_id": "prod-9", "available": -1}, headers=ADMIN)
    assert response.status_code == 422
