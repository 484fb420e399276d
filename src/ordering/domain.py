"""Ordering bounded context — orders, stock, coupons, payments and refunds.

Converts carts into priced, stock-reserving orders, drives orders through
their status machine, and keeps the payment/refund ledger consistent with
the orders it pays for. Everything lives in one domain so that an order and
its payment can change within a single unit of work.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

ordering = Domain(name="ordering")
