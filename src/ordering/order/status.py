"""Administrative status updates — command and handler.

Moves an order along the fulfillment axis. Cancelling or returning through
this path restocks exactly like the customer-facing commands do.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus
from ordering.stock.stock import StockLevel
from ordering.utils.authorization import ensure_admin

logger = structlog.get_logger(__name__)

# Targets that put the order's stock back on the shelf
RESTOCKING_STATUSES = {OrderStatus.CANCELLED.value, OrderStatus.RETURNED.value}


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)
    location = String(max_length=255)
    reason = String(max_length=500)
    actor_id = Identifier(required=True)
    actor_role = String(max_length=50, default="customer")


@ordering.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        ensure_admin(command.actor_role, "update order status")

        repo = current_domain.repository_for(Order)
        order = repo.find(command.order_id)
        previous = order.order_status

        order.update_status(command.status, location=command.location, reason=command.reason)
        if order.order_status in RESTOCKING_STATUSES:
            current_domain.repository_for(StockLevel).release_all(order.stock_lines())
        repo.add(order)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.order_status,
        )
        return order.to_dict()
