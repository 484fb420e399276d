"""Read side for payments: lookups, verification and store-wide statistics."""

from collections import Counter

from protean.utils.globals import current_domain

from ordering.payment.payment import Payment
from ordering.utils.authorization import ensure_admin, ensure_owner_or_admin


def get_payment(transaction_id: str, actor_id, actor_role=None) -> dict:
    payment = current_domain.repository_for(Payment).by_transaction_id(transaction_id)
    ensure_owner_or_admin(payment.user_id, actor_id, actor_role, "view this payment")
    return {**payment.to_dict(), "summary": payment.summary()}


def verify_payment(transaction_id: str, actor_id, actor_role=None) -> dict:
    """Confirm a transaction exists and report where it stands."""
    payment = current_domain.repository_for(Payment).by_transaction_id(transaction_id)
    ensure_owner_or_admin(payment.user_id, actor_id, actor_role, "verify this payment")
    return {
        "transaction_id": payment.transaction_id,
        "order_id": str(payment.order_id),
        "status": payment.status,
        "amount": payment.amount,
        "currency": payment.currency,
        "verified": True,
    }


def payment_statistics(actor_role) -> dict:
    """Aggregate counters across every payment. Read only."""
    ensure_admin(actor_role, "view payment statistics")

    total_payments = 0
    total_amount = 0
    total_refunded = 0
    methods = Counter()
    statuses = Counter()

    for payment in current_domain.repository_for(Payment).iter_all():
        total_payments += 1
        total_amount += payment.amount
        total_refunded += payment.total_refunded or 0
        methods[payment.payment_method] += 1
        statuses[payment.status] += 1

    return {
        "total_payments": total_payments,
        "total_amount": total_amount,
        "total_refunded": total_refunded,
        "net_amount": total_amount - total_refunded,
        "payment_methods": dict(methods),
        "status_counts": dict(statuses),
    }
