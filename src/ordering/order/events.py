"""Domain events for the Order aggregate.

Events are immutable facts raised by the aggregate and dispatched after the
unit of work commits. The notification handlers consume them; nothing in the
ordering flow depends on them being delivered.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A cart was checked out into a priced, stock-reserving order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    item_count = Integer(required=True)
    subtotal = Integer(required=True)
    tax = Integer(required=True)
    shipping_cost = Integer(required=True)
    discount = Integer(default=0)
    total = Integer(required=True)
    currency = String(required=True)
    coupon_code = String()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """An administrator moved the order along the fulfillment axis."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    location = String()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before shipping; its stock goes back on the shelf."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    items = Text(required=True)  # JSON: [{product_id, quantity}]
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderReturned:
    """A delivered order came back; its stock is restored."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: [{product_id, quantity}]
    returned_at = DateTime(required=True)


@ordering.event(part_of="Order")
class TrackingNumberAssigned:
    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    tracking_number = String(required=True)
    assigned_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaymentStatusChanged:
    """The payment axis of the order moved (paid, failed, refunded)."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    previous_status = String(required=True)
    payment_status = String(required=True)
    transaction_id = String()
    changed_at = DateTime(required=True)
