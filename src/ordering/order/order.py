"""Order aggregate (CQRS) — the core of the ordering domain.

An order is created atomically from a cart at checkout and afterwards only
changes through the transitions below. Orders are never deleted; terminal
orders stay around for audit.

Two independent axes:

    order_status:   PENDING → PROCESSING → SHIPPED → DELIVERED → RETURNED
                    PENDING/PROCESSING → CANCELLED
                    CANCELLED/RETURNED → REFUNDED
    payment_status: PENDING → COMPLETED/FAILED → PARTIALLY_REFUNDED/REFUNDED

Shipping or delivering requires ``payment_status == completed``. Every
accepted transition appends a ShippingUpdate; the list is append-only.
"""

import json
import math
from datetime import UTC, datetime
from enum import Enum
from secrets import randbelow

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import (
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from ordering.domain import ordering
from ordering.exceptions import (
    EmptyCart,
    InvalidStatus,
    InvalidTransition,
    OrderNotCancellable,
    OrderNotFound,
    OrderNotReturnable,
    PaymentNotCompleted,
)
from ordering.order.events import (
    OrderCancelled,
    OrderPaymentStatusChanged,
    OrderPlaced,
    OrderReturned,
    OrderStatusChanged,
    TrackingNumberAssigned,
)
from ordering.order.pricing import PricedLine, calculate_totals, grand_total


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"
    REFUNDED = "refunded"


class OrderPaymentStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"


class PaymentMethod(Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"
    GPAY = "gpay"
    PAYTM = "paytm"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
    OrderStatus.CANCELLED: {OrderStatus.REFUNDED},
    OrderStatus.RETURNED: {OrderStatus.REFUNDED},
    OrderStatus.REFUNDED: set(),  # Terminal
}

_CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.PROCESSING}

_REQUIRES_COMPLETED_PAYMENT = {OrderStatus.SHIPPED, OrderStatus.DELIVERED}

# Orders in these states no longer accept a payment
_CLOSED_STATES = {OrderStatus.CANCELLED, OrderStatus.RETURNED, OrderStatus.REFUNDED}

_PAYABLE_PAYMENT_STATES = {OrderPaymentStatus.PENDING, OrderPaymentStatus.FAILED}

_DEFAULT_LOCATIONS = {
    OrderStatus.PENDING: "Online Store",
    OrderStatus.PROCESSING: "Warehouse",
    OrderStatus.SHIPPED: "In Transit",
    OrderStatus.DELIVERED: "Final Destination",
    OrderStatus.CANCELLED: "Online Store",
    OrderStatus.RETURNED: "Return Center",
    OrderStatus.REFUNDED: "Billing",
}


def generate_order_number() -> str:
    millis = int(datetime.now(UTC).timestamp() * 1000)
    return f"ORD-{millis % 1_000_000:06d}-{randbelow(1000):03d}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    """Where the order ships, captured at checkout.

    The snapshot never changes, even if the customer edits their address book.
    """

    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


@ordering.value_object(part_of="Order")
class PaymentDetails:
    """The settled payment backing this order, copied from the payment ledger."""

    transaction_id = String(max_length=64)
    amount = Integer(min_value=0)
    currency = String(max_length=3, default="USD")
    paid_at = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class LineItem:
    """A product and quantity with the unit price frozen at checkout."""

    product_id = Identifier(required=True)
    name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Integer(required=True, min_value=0)
    variant = String(max_length=255)

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


@ordering.entity(part_of="Order")
class ShippingUpdate:
    """One entry of the order's audit trail."""

    status = String(required=True, max_length=50)
    location = String(max_length=255)
    description = String(max_length=500)
    timestamp = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=50)
    user_id = Identifier(required=True)
    items = HasMany(LineItem)
    shipping_address = ValueObject(ShippingAddress, required=True)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_status = String(
        choices=OrderPaymentStatus,
        default=OrderPaymentStatus.PENDING.value,
    )
    payment_details = ValueObject(PaymentDetails)
    order_status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    shipping_method_id = Identifier(required=True)
    shipping_cost = Integer(default=0, min_value=0)
    shipping_updates = HasMany(ShippingUpdate)
    subtotal = Integer(default=0, min_value=0)
    tax = Integer(default=0, min_value=0)
    discount = Integer(default=0, min_value=0)
    coupon_code = String(max_length=50)
    total = Integer(default=0, min_value=0)
    currency = String(max_length=3, default="USD")
    tracking_number = String(max_length=255)
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    returned_at = DateTime()

    @invariant.post
    def total_must_balance(self):
        expected = grand_total(self.subtotal or 0, self.tax or 0, self.shipping_cost or 0, self.discount or 0)
        if self.total != expected:
            raise ValidationError(
                {"total": [f"Total {self.total} does not equal subtotal + tax + shipping - discount ({expected})"]}
            )

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        user_id,
        lines,
        shipping_address,
        payment_method,
        shipping_method_id,
        shipping_cost,
        discount=0,
        coupon_code=None,
        currency="USD",
    ):
        """Create a pending order from checked-out cart lines.

        Args:
            user_id: The customer placing the order.
            lines: List of dicts with product_id, name, quantity, unit_price
                   and an optional variant. Prices are already in minor units.
            shipping_address: Dict with street, city, state, postal_code, country.
            payment_method: One of :class:`PaymentMethod` values.
            shipping_method_id: Identifier of the shipping method used.
            shipping_cost: Shipping charge in minor units.
            discount: Coupon discount in minor units.
            coupon_code: Code of the applied coupon, if any.
        """
        if not lines:
            raise EmptyCart()

        totals = calculate_totals(
            PricedLine(
                product_id=str(line["product_id"]),
                quantity=line["quantity"],
                unit_price=line["unit_price"],
            )
            for line in lines
        )
        now = datetime.now(UTC)

        order = cls(
            order_number=generate_order_number(),
            user_id=user_id,
            shipping_address=ShippingAddress(**shipping_address),
            payment_method=payment_method,
            shipping_method_id=shipping_method_id,
            shipping_cost=shipping_cost,
            subtotal=totals.subtotal,
            tax=totals.tax,
            discount=discount,
            coupon_code=coupon_code,
            total=grand_total(totals.subtotal, totals.tax, shipping_cost, discount),
            currency=currency,
            created_at=now,
            updated_at=now,
        )
        for line in lines:
            order.add_items(
                LineItem(
                    product_id=line["product_id"],
                    name=line.get("name"),
                    quantity=line["quantity"],
                    unit_price=line["unit_price"],
                    variant=line.get("variant"),
                )
            )
        order._append_update(OrderStatus.PENDING, "Order placed", now=now)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id),
                item_count=sum(line["quantity"] for line in lines),
                subtotal=order.subtotal,
                tax=order.tax,
                shipping_cost=order.shipping_cost,
                discount=order.discount,
                total=order.total,
                currency=order.currency,
                coupon_code=coupon_code,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.order_status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition(current.value, target_status.value)

    def _append_update(self, status, description, location=None, now=None):
        self.add_shipping_updates(
            ShippingUpdate(
                status=status.value,
                location=location or _DEFAULT_LOCATIONS[status],
                description=description,
                timestamp=now or datetime.now(UTC),
            )
        )

    def stock_lines(self):
        """Product quantities held by this order, as restored on cancel/return."""
        return [{"product_id": str(item.product_id), "quantity": item.quantity} for item in self.items]

    @property
    def is_payable(self) -> bool:
        return (
            OrderStatus(self.order_status) not in _CLOSED_STATES
            and OrderPaymentStatus(self.payment_status) in _PAYABLE_PAYMENT_STATES
        )

    # -------------------------------------------------------------------
    # Fulfillment axis
    # -------------------------------------------------------------------
    def update_status(self, new_status, location=None, reason=None):
        """Move the order to ``new_status``.

        Cancellation and return have their own rules and are delegated to
        :meth:`cancel` and :meth:`mark_returned`.
        """
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise InvalidStatus(new_status) from None

        if target == OrderStatus.CANCELLED:
            self.cancel(reason=reason or "Cancelled by administrator")
            return
        if target == OrderStatus.RETURNED:
            self.mark_returned(location=location)
            return

        if target in _REQUIRES_COMPLETED_PAYMENT and self.payment_status != OrderPaymentStatus.COMPLETED.value:
            raise PaymentNotCompleted(target.value, self.payment_status)

        self._assert_can_transition(target)

        previous = self.order_status
        now = datetime.now(UTC)
        self.order_status = target.value
        self.updated_at = now
        if target == OrderStatus.DELIVERED:
            self.delivered_at = now
        self._append_update(
            target,
            f"Order {target.value} at {now:%Y-%m-%d %H:%M:%S} UTC",
            location=location,
            now=now,
        )

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                user_id=str(self.user_id),
                previous_status=previous,
                new_status=target.value,
                location=location,
                changed_at=now,
            )
        )

    def cancel(self, reason=None):
        """Cancel a pending or processing order.

        The caller restores stock for :meth:`stock_lines` in the same unit of
        work; the cancellation is not committed if that fails.
        """
        current = OrderStatus(self.order_status)
        if current not in _CANCELLABLE_STATES:
            raise OrderNotCancellable(current.value)

        now = datetime.now(UTC)
        self.order_status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_at = now
        self.updated_at = now
        self._append_update(
            OrderStatus.CANCELLED,
            f"Order cancelled: {reason}" if reason else "Order cancelled",
            now=now,
        )

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                user_id=str(self.user_id),
                previous_status=current.value,
                reason=reason,
                items=json.dumps(self.stock_lines()),
                cancelled_at=now,
            )
        )

    def mark_returned(self, location=None):
        """Record that a delivered order came back.

        Only allowed once, and only from DELIVERED.
        """
        current = OrderStatus(self.order_status)
        if current != OrderStatus.DELIVERED:
            raise OrderNotReturnable(current.value)

        now = datetime.now(UTC)
        self.order_status = OrderStatus.RETURNED.value
        self.returned_at = now
        self.updated_at = now
        self._append_update(
            OrderStatus.RETURNED,
            f"Order returned at {now:%Y-%m-%d %H:%M:%S} UTC",
            location=location,
            now=now,
        )

        self.raise_(
            OrderReturned(
                order_id=str(self.id),
                user_id=str(self.user_id),
                items=json.dumps(self.stock_lines()),
                returned_at=now,
            )
        )

    def assign_tracking_number(self, tracking_number):
        if not tracking_number:
            raise ValidationError({"tracking_number": ["Tracking number is required"]})

        now = datetime.now(UTC)
        self.tracking_number = tracking_number
        self.updated_at = now

        self.raise_(
            TrackingNumberAssigned(
                order_id=str(self.id),
                user_id=str(self.user_id),
                tracking_number=tracking_number,
                assigned_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment axis
    # -------------------------------------------------------------------
    def _change_payment_status(self, status, transaction_id=None):
        previous = self.payment_status
        now = datetime.now(UTC)
        self.payment_status = status.value
        self.updated_at = now

        self.raise_(
            OrderPaymentStatusChanged(
                order_id=str(self.id),
                user_id=str(self.user_id),
                previous_status=previous,
                payment_status=status.value,
                transaction_id=transaction_id,
                changed_at=now,
            )
        )

    def record_payment(self, transaction_id, amount, currency, paid_at):
        """Mark the order paid with the settled payment's details."""
        self.payment_details = PaymentDetails(
            transaction_id=transaction_id,
            amount=amount,
            currency=currency,
            paid_at=paid_at,
        )
        self._change_payment_status(OrderPaymentStatus.COMPLETED, transaction_id)

    def record_payment_failure(self, transaction_id):
        self._change_payment_status(OrderPaymentStatus.FAILED, transaction_id)

    def sync_payment_status(self, payment_status, transaction_id=None):
        """Mirror the payment ledger's status after a refund."""
        try:
            status = OrderPaymentStatus(payment_status)
        except ValueError:
            raise InvalidStatus(payment_status) from None

        if status.value != self.payment_status:
            self._change_payment_status(status, transaction_id)


@ordering.repository(part_of=Order)
class OrderRepository:
    """Order lookups and newest-first paginated listings."""

    def find(self, order_id) -> Order:
        try:
            return self.get(str(order_id))
        except ObjectNotFoundError:
            raise OrderNotFound(order_id) from None

    def paginate(self, page: int = 1, limit: int = 10, **filters) -> dict:
        page = max(page, 1)
        limit = max(limit, 1)
        criteria = {key: value for key, value in filters.items() if value is not None}

        query = self._dao.query.filter(**criteria) if criteria else self._dao.query
        result = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()

        return {
            "items": result.items,
            "total": result.total,
            "page": page,
            "pages": math.ceil(result.total / limit),
        }
