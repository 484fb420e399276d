"""Payment processing — charge an order's total through the gateway.

The payment record and the order's payment axis are written in the same unit
of work, so an order never shows ``completed`` while its payment shows
anything else. A declined charge is not an exception: the payment is kept as
failed, with the gateway's error, and the order's payment status becomes
``failed`` so it can be paid again.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.exceptions import InvalidOrderTotal, OrderNotPayable
from ordering.gateway import get_gateway
from ordering.order.order import Order, PaymentMethod
from ordering.payment.payment import Payment
from ordering.utils.authorization import ensure_owner_or_admin

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Payment")
class ProcessPayment:
    order_id = Identifier(required=True)
    payment_method = String(choices=PaymentMethod)  # Defaults to the order's method
    actor_id = Identifier(required=True)
    actor_role = String(max_length=50, default="customer")
    ip_address = String(max_length=64)
    user_agent = String(max_length=500)
    device_info = String(max_length=500)


@ordering.command_handler(part_of=Payment)
class ProcessPaymentHandler:
    @handle(ProcessPayment)
    def process_payment(self, command):
        order_repo = current_domain.repository_for(Order)
        order = order_repo.find(command.order_id)
        ensure_owner_or_admin(order.user_id, command.actor_id, command.actor_role, "pay for this order")

        if not order.total or order.total <= 0:
            raise InvalidOrderTotal(order.total)
        if not order.is_payable:
            raise OrderNotPayable(order.order_status, order.payment_status)

        payment = Payment.create(
            order_id=order.id,
            user_id=order.user_id,
            amount=order.total,
            currency=order.currency,
            payment_method=command.payment_method or order.payment_method,
            ip_address=command.ip_address,
            user_agent=command.user_agent,
            device_info=command.device_info,
        )

        result = get_gateway().create_charge(
            amount=payment.amount,
            currency=payment.currency,
            payment_method=payment.payment_method,
            transaction_id=payment.transaction_id,
        )

        if result.success:
            payment.mark_completed(gateway_reference=result.gateway_reference)
            order.record_payment(
                transaction_id=payment.transaction_id,
                amount=payment.amount,
                currency=payment.currency,
                paid_at=payment.updated_at,
            )
            logger.info(
                "Payment completed",
                order_id=str(order.id),
                transaction_id=payment.transaction_id,
                amount=payment.amount,
            )
        else:
            payment.mark_failed(
                code=result.failure_code or "gateway_error",
                message=result.failure_reason or "Payment declined by gateway",
            )
            order.record_payment_failure(payment.transaction_id)
            logger.warning(
                "Payment declined by gateway",
                order_id=str(order.id),
                transaction_id=payment.transaction_id,
                reason=result.failure_reason,
            )

        current_domain.repository_for(Payment).add(payment)
        order_repo.add(order)

        return {
            "payment_id": str(payment.id),
            "order_id": str(order.id),
            "transaction_id": payment.transaction_id,
            "status": payment.status,
            "amount": payment.amount,
            "currency": payment.currency,
            "error": payment.error.to_dict() if payment.error else None,
        }
