"""Application tests for cancellation, returns, status updates and tracking."""

import pytest
from ordering.dispatch import process
from ordering.exceptions import (
    InvalidStatus,
    NotAuthorized,
    OrderNotCancellable,
    OrderNotFound,
    OrderNotReturnable,
    PaymentNotCompleted,
)
from ordering.order.cancellation import CancelOrder
from ordering.order.order import Order
from ordering.order.returns import MarkOrderReturned
from ordering.order.status import UpdateOrderStatus
from ordering.order.tracking import AssignTrackingNumber
from ordering.stock.stock import StockLevel
from protean import current_domain


def _available(product_id):
    return current_domain.repository_for(StockLevel).available(product_id)


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestCancelOrder:
    def test_owner_cancels_and_stock_is_restored(self, place_order):
        placed = place_order(lines=[("prod-c", 3, 1000)], stock_levels={"prod-c": 5})
        assert _available("prod-c") == 2

        result = process(CancelOrder(order_id=placed["order_id"], reason="Changed my mind", actor_id="user-001"))

        assert result["order_status"] == "cancelled"
        assert result["cancellation_reason"] == "Changed my mind"
        assert _available("prod-c") == 5

    def test_admin_may_cancel_any_order(self, place_order):
        placed = place_order()
        process(CancelOrder(order_id=placed["order_id"], actor_id="admin-001", actor_role="admin"))
        assert _order(placed["order_id"]).order_status == "cancelled"

    def test_other_customer_is_rejected(self, place_order):
        placed = place_order(user_id="user-001")
        with pytest.raises(NotAuthorized):
            process(CancelOrder(order_id=placed["order_id"], actor_id="user-002"))
        assert _order(placed["order_id"]).order_status == "pending"

    def test_second_cancel_fails_without_restocking_twice(self, place_order):
        placed = place_order(lines=[("prod-c", 2, 1000)], stock_levels={"prod-c": 4})
        process(CancelOrder(order_id=placed["order_id"], actor_id="user-001"))

        with pytest.raises(OrderNotCancellable):
            process(CancelOrder(order_id=placed["order_id"], actor_id="user-001"))
        assert _available("prod-c") == 4

    def test_shipped_order_cannot_be_cancelled(self, place_order, pay_order, advance_order):
        placed = place_order()
        pay_order(placed["order_id"])
        advance_order(placed["order_id"], "processing", "shipped")

        with pytest.raises(OrderNotCancellable):
            process(CancelOrder(order_id=placed["order_id"], actor_id="user-001"))

    def test_unknown_order(self):
        with pytest.raises(OrderNotFound):
            process(CancelOrder(order_id="missing", actor_id="user-001"))

    def test_failed_restock_leaves_order_and_stock_untouched(self, place_order, monkeypatch):
        placed = place_order(
            lines=[("prod-a", 1, 1000), ("prod-b", 1, 1000)],
            stock_levels={"prod-a": 10, "prod-b": 10},
        )
        repo_cls = type(current_domain.repository_for(StockLevel))
        release = repo_cls.release
        calls = []

        def flaky_release(repo, product_id, quantity):
            calls.append(product_id)
            if len(calls) == 2:
                raise ConnectionError("Stock store unavailable")
            return release(repo, product_id, quantity)

        monkeypatch.setattr(repo_cls, "release", flaky_release)

        with pytest.raises(ConnectionError):
            process(CancelOrder(order_id=placed["order_id"], actor_id="user-001"))

        assert calls == ["prod-a", "prod-b"]
        assert _order(placed["order_id"]).order_status == "pending"
        assert _available("prod-a") == 9
        assert _available("prod-b") == 9


class TestMarkOrderReturned:
    def test_delivered_order_is_returned_and_restocked(self, place_order, pay_order, advance_order):
        placed = place_order(lines=[("prod-r", 2, 1000)], stock_levels={"prod-r": 2})
        pay_order(placed["order_id"])
        advance_order(placed["order_id"], "shipped", "delivered")
        assert _available("prod-r") == 0

        result = process(MarkOrderReturned(order_id=placed["order_id"], actor_id="user-001"))

        assert result["order_status"] == "returned"
        assert result["shipping_updates"][-1]["location"] == "Return Center"
        assert _available("prod-r") == 2

    def test_second_return_is_rejected(self, place_order, pay_order, advance_order):
        placed = place_order(lines=[("prod-r", 2, 1000)], stock_levels={"prod-r": 2})
        pay_order(placed["order_id"])
        advance_order(placed["order_id"], "delivered")
        process(MarkOrderReturned(order_id=placed["order_id"], actor_id="user-001"))

        with pytest.raises(OrderNotReturnable) as exc:
            process(MarkOrderReturned(order_id=placed["order_id"], actor_id="user-001"))
        assert exc.value.messages == {"status": ["Order already returned"]}
        assert _available("prod-r") == 2

    def test_pending_order_cannot_be_returned(self, place_order):
        placed = place_order()
        with pytest.raises(OrderNotReturnable):
            process(MarkOrderReturned(order_id=placed["order_id"], actor_id="user-001"))


class TestUpdateOrderStatus:
    def test_customers_may_not_update_status(self, place_order):
        placed = place_order()
        with pytest.raises(NotAuthorized):
            process(UpdateOrderStatus(order_id=placed["order_id"], status="processing", actor_id="user-001"))

    def test_shipping_requires_completed_payment(self, place_order, advance_order):
        placed = place_order()
        with pytest.raises(PaymentNotCompleted):
            advance_order(placed["order_id"], "shipped")
        assert _order(placed["order_id"]).order_status == "pending"

    def test_paid_order_ships_and_delivers(self, place_order, pay_order, advance_order):
        placed = place_order()
        pay_order(placed["order_id"])

        result = advance_order(placed["order_id"], "processing", "shipped", "delivered")

        assert result["order_status"] == "delivered"
        assert result["delivered_at"] is not None
        assert [update["status"] for update in result["shipping_updates"]] == [
            "pending",
            "processing",
            "shipped",
            "delivered",
        ]

    def test_cancelling_through_status_update_restocks(self, place_order, advance_order):
        placed = place_order(lines=[("prod-s", 3, 1000)], stock_levels={"prod-s": 3})

        advance_order(placed["order_id"], "cancelled")

        assert _order(placed["order_id"]).order_status == "cancelled"
        assert _available("prod-s") == 3

    def test_cancellation_reason_is_recorded(self, place_order):
        placed = place_order()

        result = process(
            UpdateOrderStatus(
                order_id=placed["order_id"],
                status="cancelled",
                reason="Fraud review",
                actor_id="admin-001",
                actor_role="admin",
            )
        )

        assert result["cancellation_reason"] == "Fraud review"
        assert result["shipping_updates"][-1]["description"] == "Order cancelled: Fraud review"

    def test_cancellation_without_reason_names_the_administrator(self, place_order, advance_order):
        placed = place_order()
        advance_order(placed["order_id"], "cancelled")
        assert _order(placed["order_id"]).cancellation_reason == "Cancelled by administrator"

    def test_unknown_status(self, place_order, advance_order):
        placed = place_order()
        with pytest.raises(InvalidStatus):
            advance_order(placed["order_id"], "teleported")


class TestAssignTrackingNumber:
    def test_admin_assigns_tracking_number(self, place_order):
        placed = place_order()
        result = process(
            AssignTrackingNumber(
                order_id=placed["order_id"],
                tracking_number="1Z999AA10123456784",
                actor_id="admin-001",
                actor_role="admin",
            )
        )
        assert result["tracking_number"] == "1Z999AA10123456784"
        assert _order(placed["order_id"]).tracking_number == "1Z999AA10123456784"

    def test_customers_may_not_assign_tracking(self, place_order):
        placed = place_order()
        with pytest.raises(NotAuthorized):
            process(
                AssignTrackingNumber(order_id=placed["order_id"], tracking_number="TRACK-1", actor_id="user-001")
            )
