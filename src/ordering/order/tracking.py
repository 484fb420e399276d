"""Tracking number assignment — command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.utils.authorization import ensure_admin


@ordering.command(part_of="Order")
class AssignTrackingNumber:
    order_id = Identifier(required=True)
    tracking_number = String(required=True, max_length=255)
    actor_id = Identifier(required=True)
    actor_role = String(max_length=50, default="customer")


@ordering.command_handler(part_of=Order)
class AssignTrackingNumberHandler:
    @handle(AssignTrackingNumber)
    def assign_tracking_number(self, command):
        ensure_admin(command.actor_role, "assign tracking numbers")

        repo = current_domain.repository_for(Order)
        order = repo.find(command.order_id)
        order.assign_tracking_number(command.tracking_number)
        repo.add(order)
        return order.to_dict()
