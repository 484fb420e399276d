"""Checkout — turn the user's cart into a placed order.

Everything happens in one unit of work: stock for every line is reserved,
the order is added and the coupon usage is committed together. If any step
raises, none of it is persisted. The cart is cleared last.
"""

import json
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.collaborators import get_cart_service, get_catalog, get_shipping_methods
from ordering.coupon.coupon import Coupon
from ordering.domain import ordering
from ordering.exceptions import EmptyCart, ShippingMethodUnavailable
from ordering.order.order import Order, PaymentMethod
from ordering.order.pricing import PricedLine, calculate_totals
from ordering.stock.stock import StockLevel

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True, choices=PaymentMethod)
    coupon_code = String(max_length=50)
    currency = String(max_length=3, default="USD")


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart_service = get_cart_service()
        cart = cart_service.get_cart(command.user_id)
        if cart is None or not cart.items:
            raise EmptyCart()

        # Prices come from the catalog, never from the cart
        catalog = get_catalog()
        lines = []
        for cart_line in cart.items:
            product = catalog.get_product(cart_line.product_id)
            lines.append(
                {
                    "product_id": product.id,
                    "name": product.name,
                    "quantity": cart_line.quantity,
                    "unit_price": product.price,
                    "variant": cart_line.variant,
                }
            )
        subtotal = calculate_totals(
            PricedLine(product_id=line["product_id"], quantity=line["quantity"], unit_price=line["unit_price"])
            for line in lines
        ).subtotal

        coupon = None
        discount = 0
        if command.coupon_code:
            coupon_repo = current_domain.repository_for(Coupon)
            coupon = coupon_repo.by_code(command.coupon_code)
            coupon.validate(datetime.now(UTC), command.user_id)
            discount = coupon.compute_discount(subtotal)

        shipping_method = get_shipping_methods().get_default_method()
        if shipping_method is None:
            raise ShippingMethodUnavailable()

        current_domain.repository_for(StockLevel).reserve_all(lines)

        shipping_address = (
            json.loads(command.shipping_address)
            if isinstance(command.shipping_address, str)
            else command.shipping_address
        )
        order = Order.place(
            user_id=command.user_id,
            lines=lines,
            shipping_address=shipping_address,
            payment_method=command.payment_method,
            shipping_method_id=shipping_method.id,
            shipping_cost=shipping_method.base_cost,
            discount=discount,
            coupon_code=command.coupon_code,
            currency=command.currency or "USD",
        )
        current_domain.repository_for(Order).add(order)

        if coupon is not None:
            coupon.commit_usage(command.user_id)
            coupon_repo.add(coupon)

        cart_service.clear(cart.id)

        logger.info(
            "Order placed from cart",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=str(command.user_id),
            total=order.total,
        )
        return {
            "order_id": str(order.id),
            "order_number": order.order_number,
            "subtotal": order.subtotal,
            "tax": order.tax,
            "shipping_cost": order.shipping_cost,
            "discount": order.discount,
            "total": order.total,
            "currency": order.currency,
        }
