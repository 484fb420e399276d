"""Business errors raised by the ordering domain.

Every error is a Protean exception carrying a ``messages`` dict, so handlers
and the API layer treat them exactly like the framework's own
``ValidationError`` and ``ObjectNotFoundError``:

* plain ``ValidationError`` subclasses are malformed requests;
* ``ConflictError`` subclasses are business-rule violations against current
  state (stock, balances, transitions);
* ``ObjectNotFoundError`` subclasses are unknown identifiers;
* ``NotAuthorized`` is an owner-or-admin check failing.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class ConflictError(ValidationError):
    """A request that is well-formed but conflicts with the current state."""


class NotAuthorized(ValidationError):
    """The acting user may not perform this operation."""

    def __init__(self, action: str):
        super().__init__({"authorization": [f"Not authorized to {action}"]})


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
class EmptyCart(ValidationError):
    def __init__(self):
        super().__init__({"cart": ["Cart is empty"]})


class InvalidStatus(ValidationError):
    def __init__(self, status):
        super().__init__({"status": [f"Invalid order status: {status}"]})


class InvalidOrderTotal(ValidationError):
    def __init__(self, total):
        super().__init__({"total": [f"Order total amount is invalid: {total}"]})


class InvalidRefundAmount(ValidationError):
    def __init__(self, amount):
        super().__init__({"amount": [f"Refund amount must be positive, got {amount}"]})


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------
class InsufficientStock(ConflictError):
    def __init__(self, product_id, requested, available):
        self.product_id = str(product_id)
        self.requested = requested
        self.available = available
        super().__init__(
            {"stock": [f"Insufficient stock for product {product_id}: requested {requested}, available {available}"]}
        )


class InvalidTransition(ConflictError):
    def __init__(self, current, target):
        super().__init__({"status": [f"Cannot transition from {current} to {target}"]})


class PaymentNotCompleted(ConflictError):
    def __init__(self, target, payment_status):
        super().__init__({"status": [f"Cannot mark order as '{target}' while payment is '{payment_status}'"]})


class OrderNotCancellable(ConflictError):
    def __init__(self, status):
        super().__init__({"status": [f"Order cannot be cancelled in '{status}' state"]})


class OrderNotReturnable(ConflictError):
    def __init__(self, status):
        if status == "returned":
            message = "Order already returned"
        else:
            message = f"Only delivered orders can be returned, order is '{status}'"
        super().__init__({"status": [message]})


class OrderNotPayable(ConflictError):
    def __init__(self, order_status, payment_status):
        super().__init__(
            {"order": [f"Order cannot be paid (order status '{order_status}', payment status '{payment_status}')"]}
        )


class PaymentNotRefundable(ConflictError):
    def __init__(self, status):
        super().__init__({"status": [f"Payments in '{status}' state cannot be refunded"]})


class RefundExceedsBalance(ConflictError):
    def __init__(self, requested, refundable):
        self.requested = requested
        self.refundable = refundable
        super().__init__(
            {"amount": [f"Refund amount {requested} exceeds remaining refundable amount {refundable}"]}
        )


class CouponExpired(ConflictError):
    def __init__(self, code):
        super().__init__({"coupon_code": [f"Coupon {code} is not valid at this time"]})


class CouponInactive(ConflictError):
    def __init__(self, code):
        super().__init__({"coupon_code": [f"Coupon {code} is not active"]})


class CouponExhausted(ConflictError):
    def __init__(self, code):
        super().__init__({"coupon_code": [f"Coupon {code} has reached its usage limit"]})


class CouponUserLimitReached(ConflictError):
    def __init__(self, code):
        super().__init__({"coupon_code": [f"User has reached maximum usage limit for coupon {code}"]})


class ShippingMethodUnavailable(ConflictError):
    def __init__(self):
        super().__init__({"shipping_method": ["No shipping method found"]})


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------
class OrderNotFound(ObjectNotFoundError):
    def __init__(self, order_id):
        super().__init__({"order_id": [f"Order not found: {order_id}"]})


class PaymentNotFound(ObjectNotFoundError):
    def __init__(self, transaction_id):
        super().__init__({"transaction_id": [f"Payment not found: {transaction_id}"]})


class CouponNotFound(ObjectNotFoundError):
    def __init__(self, code):
        super().__init__({"coupon_code": [f"Coupon not found: {code}"]})


class ProductNotFound(ObjectNotFoundError):
    def __init__(self, product_id):
        super().__init__({"product_id": [f"Product not found: {product_id}"]})
