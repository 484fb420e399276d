"""Integration tests for the /orders endpoints."""

from ordering.stock.stock import StockLevel
from protean import current_domain

CUSTOMER = {"X-User-Id": "user-001"}
OTHER_CUSTOMER = {"X-User-Id": "user-002"}
ADMIN = {"X-User-Id": "admin-001", "X-User-Role": "admin"}


class TestPlaceOrderEndpoint:
    def test_place_order(self, checkout):
        response = checkout()

        assert response.status_code == 201
        data = response.json()
        assert data["subtotal"] == 10000
        assert data["tax"] == 1000
        assert data["shipping_cost"] == 500
        assert data["total"] == 11500
        assert data["currency"] == "USD"

    def test_missing_identity_header(self, client, address):
        response = client.post("/orders", json={"shipping_address": address, "payment_method": "credit_card"})
        assert response.status_code == 401

    def test_empty_cart_is_a_bad_request(self, client, address):
        response = client.post(
            "/orders",
            json={"shipping_address": address, "payment_method": "credit_card"},
            headers=CUSTOMER,
        )
        assert response.status_code == 400
        assert response.json() == {"status": "fail", "errors": {"cart": ["Cart is empty"]}}

    def test_insufficient_stock_is_a_conflict(self, checkout):
        response = checkout(quantity=3, available=2)

        assert response.status_code == 409
        assert "stock" in response.json()["errors"]
        assert current_domain.repository_for(StockLevel).available("prod-001") == 2


class TestReadOrderEndpoints:
    def test_order_details(self, client, checkout):
        order_id = checkout().json()["order_id"]

        response = client.get(f"/orders/{order_id}", headers=CUSTOMER)

        assert response.status_code == 200
        assert response.json()["order_status"] == "pending"

    def test_other_customer_is_forbidden(self, client, checkout):
        order_id = checkout().json()["order_id"]
        assert client.get(f"/orders/{order_id}", headers=OTHER_CUSTOMER).status_code == 403

    def test_unknown_order(self, client):
        assert client.get("/orders/missing", headers=CUSTOMER).status_code == 404

    def test_my_orders(self, client, checkout):
        checkout()
        checkout(headers=OTHER_CUSTOMER)

        response = client.get("/orders/mine", headers=CUSTOMER)

        assert response.status_code == 200
        assert response.json()["total"] == 1

    def test_all_orders_requires_admin(self, client, checkout):
        checkout()
        checkout(headers=OTHER_CUSTOMER)

        assert client.get("/orders", headers=CUSTOMER).status_code == 403
        response = client.get("/orders?page=1&limit=1", headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["total"] == 2
        assert response.json()["pages"] == 2
        assert len(response.json()["items"]) == 1


class TestOrderTransitionEndpoints:
    def test_cancel_restores_stock(self, client, checkout):
        order_id = checkout(available=5).json()["order_id"]

        response = client.post(f"/orders/{order_id}/cancel", json={"reason": "Too slow"}, headers=CUSTOMER)

        assert response.status_code == 200
        assert response.json()["order_status"] == "cancelled"
        assert current_domain.repository_for(StockLevel).available("prod-001") == 5

    def test_cancel_twice_is_a_conflict(self, client, checkout):
        order_id = checkout().json()["order_id"]
        client.post(f"/orders/{order_id}/cancel", json={}, headers=CUSTOMER)

        assert client.post(f"/orders/{order_id}/cancel", json={}, headers=CUSTOMER).status_code == 409

    def test_status_update_requires_admin(self, client, checkout):
        order_id = checkout().json()["order_id"]
        response = client.patch(f"/orders/{order_id}/status", json={"status": "processing"}, headers=CUSTOMER)
        assert response.status_code == 403

    def test_shipping_unpaid_order_is_a_conflict(self, client, checkout):
        order_id = checkout().json()["order_id"]
        response = client.patch(f"/orders/{order_id}/status", json={"status": "shipped"}, headers=ADMIN)
        assert response.status_code == 409

    def test_unknown_status_is_a_bad_request(self, client, checkout):
        order_id = checkout().json()["order_id"]
        response = client.patch(f"/orders/{order_id}/status", json={"status": "lost"}, headers=ADMIN)
        assert response.status_code == 400

    def test_full_lifecycle_with_return(self, client, checkout):
        order_id = checkout().json()["order_id"]
        client.post("/payments/process", json={"order_id": order_id}, headers=CUSTOMER)

        for status in ("processing", "shipped", "delivered"):
            response = client.patch(f"/orders/{order_id}/status", json={"status": status}, headers=ADMIN)
            assert response.status_code == 200

        response = client.patch(f"/orders/{order_id}/tracking", json={"tracking_number": "TRK-1"}, headers=ADMIN)
        assert response.json()["tracking_number"] == "TRK-1"

        response = client.post(f"/orders/{order_id}/return", json={}, headers=CUSTOMER)
        assert response.status_code == 200
        assert response.json()["order_status"] == "returned"

        again = client.post(f"/orders/{order_id}/return", json={}, headers=CUSTOMER)
        assert again.status_code == 409
        assert again.json()["errors"] == {"status": ["Order already returned"]}
