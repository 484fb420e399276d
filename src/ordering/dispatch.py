"""Synchronous command dispatch with per-key serialization.

Every entry point (API routes, CLI, tests exercising concurrency) sends
commands through :func:`process` rather than calling the domain directly.
The keys a command locks are derived from what it mutates:

* ``stock``: any command that reserves or releases stock
* ``order:<id>``: any command that transitions an order or pays for it
* ``payment:<transaction_id>``: refunds, plus the order the payment belongs to
"""

from protean.utils.globals import current_domain

from ordering.locks import ledger_lock
from ordering.order.cancellation import CancelOrder
from ordering.order.checkout import PlaceOrder
from ordering.order.returns import MarkOrderReturned
from ordering.order.status import RESTOCKING_STATUSES, UpdateOrderStatus
from ordering.order.tracking import AssignTrackingNumber
from ordering.payment.payment import Payment
from ordering.payment.processing import ProcessPayment
from ordering.payment.refund import RefundPayment
from ordering.stock.initialization import InitializeStock

STOCK_KEY = "stock"


def _order_key(order_id) -> str:
    return f"order:{order_id}"


def lock_keys(command) -> list[str]:
    """Keys that must be held while ``command`` runs."""
    if isinstance(command, (PlaceOrder, InitializeStock)):
        return [STOCK_KEY]
    if isinstance(command, (CancelOrder, MarkOrderReturned)):
        return [STOCK_KEY, _order_key(command.order_id)]
    if isinstance(command, UpdateOrderStatus):
        keys = [_order_key(command.order_id)]
        if command.status in RESTOCKING_STATUSES:
            keys.append(STOCK_KEY)
        return keys
    if isinstance(command, (AssignTrackingNumber, ProcessPayment)):
        return [_order_key(command.order_id)]
    if isinstance(command, RefundPayment):
        # order_id never changes on a payment, so it can be read before locking
        payment = current_domain.repository_for(Payment).by_transaction_id(command.transaction_id)
        return [f"payment:{command.transaction_id}", _order_key(payment.order_id)]
    return []


def process(command):
    """Run ``command`` in its own unit of work while holding its keys."""
    with ledger_lock.hold(*lock_keys(command)):
        return current_domain.process(command, asynchronous=False)
