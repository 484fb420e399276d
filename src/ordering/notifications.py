"""Customer notifications — event handlers on the Order and Payment streams.

Notifications are fire-and-forget: a failure to reach the notifier is logged
and dropped, it never fails the transaction that raised the event.
"""

import structlog
from protean.utils.mixins import handle

from ordering.collaborators import get_notifier
from ordering.domain import ordering
from ordering.order.events import OrderCancelled, OrderPlaced, OrderReturned, OrderStatusChanged
from ordering.order.order import Order
from ordering.payment.events import PaymentCompleted
from ordering.payment.payment import Payment

logger = structlog.get_logger(__name__)


def _notify(kind: str, send, *args) -> None:
    try:
        send(*args)
    except Exception as exc:
        logger.warning("Customer notification failed", notification=kind, error=str(exc))


@ordering.event_handler(part_of=Order)
class OrderNotificationHandler:
    """Sends order confirmations and status updates to the customer."""

    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        order = {
            "order_id": str(event.order_id),
            "order_number": event.order_number,
            "user_id": str(event.user_id),
            "total": event.total,
            "currency": event.currency,
        }
        _notify("order_confirmation", get_notifier().order_confirmation, order)

    @handle(OrderStatusChanged)
    def on_order_status_changed(self, event: OrderStatusChanged) -> None:
        order = {"order_id": str(event.order_id), "user_id": str(event.user_id)}
        _notify("order_status_update", get_notifier().order_status_update, order, event.new_status)

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        order = {"order_id": str(event.order_id), "user_id": str(event.user_id), "reason": event.reason}
        _notify("order_status_update", get_notifier().order_status_update, order, "cancelled")

    @handle(OrderReturned)
    def on_order_returned(self, event: OrderReturned) -> None:
        order = {"order_id": str(event.order_id), "user_id": str(event.user_id)}
        _notify("order_status_update", get_notifier().order_status_update, order, "returned")


@ordering.event_handler(part_of=Payment)
class PaymentNotificationHandler:
    @handle(PaymentCompleted)
    def on_payment_completed(self, event: PaymentCompleted) -> None:
        payment = {
            "order_id": str(event.order_id),
            "user_id": str(event.user_id),
            "transaction_id": event.transaction_id,
            "amount": event.amount,
            "currency": event.currency,
        }
        _notify("payment_receipt", get_notifier().payment_receipt, payment)
