"""Order pricing — subtotal, flat-rate tax and grand total.

All amounts are integer minor units (cents). Tax is computed with Decimal
arithmetic and rounded half-up to the nearest minor unit.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

TAX_RATE = Decimal("0.10")


@dataclass(frozen=True)
class PricedLine:
    """A line to be priced: product, quantity and the captured unit price."""

    product_id: str
    quantity: int
    unit_price: int


@dataclass(frozen=True)
class Totals:
    subtotal: int
    tax: int
    total: int


def round_minor(value: Decimal) -> int:
    """Round a Decimal amount half-up to a whole number of minor units."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_totals(lines: Iterable[PricedLine], tax_rate: Decimal = TAX_RATE) -> Totals:
    """Return subtotal, tax and subtotal + tax for the given lines.

    Shipping and discounts are applied by the caller via :func:`grand_total`.
    """
    subtotal = sum(line.unit_price * line.quantity for line in lines)
    tax = round_minor(Decimal(subtotal) * tax_rate)
    return Totals(subtotal=subtotal, tax=tax, total=subtotal + tax)


def grand_total(subtotal: int, tax: int, shipping_cost: int, discount: int = 0) -> int:
    return subtotal + tax + shipping_cost - discount
