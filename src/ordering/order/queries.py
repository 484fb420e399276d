"""Read side for orders: single-order lookups and paginated listings."""

from protean.utils.globals import current_domain

from ordering.exceptions import InvalidStatus
from ordering.order.order import Order, OrderStatus
from ordering.utils.authorization import ensure_admin, ensure_owner_or_admin


def _validated_status(status):
    if status is None:
        return None
    try:
        return OrderStatus(status).value
    except ValueError:
        raise InvalidStatus(status) from None


def _listing(page_result: dict) -> dict:
    return {**page_result, "items": [order.to_dict() for order in page_result["items"]]}


def get_order(order_id, actor_id, actor_role=None) -> dict:
    """Fetch one order. Customers only see their own."""
    order = current_domain.repository_for(Order).find(order_id)
    ensure_owner_or_admin(order.user_id, actor_id, actor_role, "view this order")
    return order.to_dict()


def list_user_orders(user_id, page: int = 1, limit: int = 10, status: str | None = None) -> dict:
    return _listing(
        current_domain.repository_for(Order).paginate(
            page=page,
            limit=limit,
            user_id=str(user_id),
            order_status=_validated_status(status),
        )
    )


def list_orders(actor_role, page: int = 1, limit: int = 10, status: str | None = None) -> dict:
    """Every order in the store, newest first. Administrators only."""
    ensure_admin(actor_role, "list all orders")
    return _listing(
        current_domain.repository_for(Order).paginate(
            page=page,
            limit=limit,
            order_status=_validated_status(status),
        )
    )
