"""Order cancellation — command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.stock.stock import StockLevel
from ordering.utils.authorization import ensure_owner_or_admin

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    actor_id = Identifier(required=True)
    actor_role = String(max_length=50, default="customer")


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find(command.order_id)
        ensure_owner_or_admin(order.user_id, command.actor_id, command.actor_role, "cancel this order")

        order.cancel(reason=command.reason)
        # Restock before the order is saved; a failure here aborts the cancellation
        current_domain.repository_for(StockLevel).release_all(order.stock_lines())
        repo.add(order)

        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            reason=command.reason,
            cancelled_by=str(command.actor_id),
        )
        return order.to_dict()
