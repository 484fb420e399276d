"""Refunds — command and handler.

Refunds are issued by administrators against a completed payment. The
resulting payment status is mirrored onto the order in the same unit of work.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.gateway import get_gateway
from ordering.order.order import Order
from ordering.payment.payment import Payment, RefundReason
from ordering.utils.authorization import ensure_admin

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Payment")
class RefundPayment:
    transaction_id = String(required=True, max_length=64)
    amount = Integer(required=True)  # Minor units
    reason = String(required=True, choices=RefundReason)
    notes = String(max_length=1000)
    actor_id = Identifier(required=True)
    actor_role = String(max_length=50, default="customer")


@ordering.command_handler(part_of=Payment)
class RefundPaymentHandler:
    @handle(RefundPayment)
    def refund_payment(self, command):
        ensure_admin(command.actor_role, "refund payments")

        payment_repo = current_domain.repository_for(Payment)
        payment = payment_repo.by_transaction_id(command.transaction_id)
        payment.assert_refundable(command.amount)

        result = get_gateway().create_refund(
            gateway_reference=payment.gateway_reference,
            amount=command.amount,
            reason=command.reason,
        )

        if result.success:
            refund = payment.record_refund(
                amount=command.amount,
                reason=command.reason,
                notes=command.notes,
                gateway_reference=result.gateway_reference,
            )

            order_repo = current_domain.repository_for(Order)
            order = order_repo.find(payment.order_id)
            order.sync_payment_status(payment.status, payment.transaction_id)
            order_repo.add(order)

            logger.info(
                "Refund processed",
                transaction_id=payment.transaction_id,
                refund_transaction_id=refund.transaction_id,
                amount=command.amount,
                total_refunded=payment.total_refunded,
            )
        else:
            notes = f"Gateway declined refund: {result.failure_reason}"
            if command.notes:
                notes = f"{command.notes} ({notes})"
            refund = payment.record_failed_refund(
                amount=command.amount,
                reason=command.reason,
                notes=notes,
            )
            logger.warning(
                "Refund declined by gateway",
                transaction_id=payment.transaction_id,
                amount=command.amount,
                reason=result.failure_reason,
            )

        payment_repo.add(payment)

        return {
            "refund": refund.to_dict(),
            "payment_status": payment.status,
            "total_refunded": payment.total_refunded,
            "remaining_amount": payment.refundable_amount,
        }
