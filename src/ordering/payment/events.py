"""Domain events for the Payment aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Payment")
class PaymentInitiated:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    transaction_id = String(required=True)
    amount = Integer(required=True)
    currency = String(required=True)
    payment_method = String(required=True)
    initiated_at = DateTime(required=True)


@ordering.event(part_of="Payment")
class PaymentCompleted:
    """The gateway captured the charge."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    transaction_id = String(required=True)
    amount = Integer(required=True)
    currency = String(required=True)
    gateway_reference = String()
    completed_at = DateTime(required=True)


@ordering.event(part_of="Payment")
class PaymentFailed:
    """The gateway declined the charge; the error is kept on the payment."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    transaction_id = String(required=True)
    error_code = String()
    error_message = String()
    failed_at = DateTime(required=True)


@ordering.event(part_of="Payment")
class RefundProcessed:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    transaction_id = String(required=True)
    refund_transaction_id = String(required=True)
    amount = Integer(required=True)
    reason = String(required=True)
    total_refunded = Integer(required=True)
    payment_status = String(required=True)
    processed_at = DateTime(required=True)


@ordering.event(part_of="Payment")
class RefundFailed:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    transaction_id = String(required=True)
    refund_transaction_id = String(required=True)
    amount = Integer(required=True)
    reason = String(required=True)
    notes = String()
    failed_at = DateTime(required=True)
