"""In-memory collaborators for development and testing.

Each fake keeps its data in plain dicts so tests can arrange carts, products
and shipping methods directly, and inspect what was sent to customers.
"""

from uuid import uuid4

from ordering.collaborators.port import (
    Cart,
    CartLine,
    CartService,
    Catalog,
    Notifier,
    Product,
    ShippingMethod,
    ShippingMethods,
)
from ordering.exceptions import ProductNotFound

DEFAULT_SHIPPING_METHOD = ShippingMethod(id="standard", name="Standard Shipping", base_cost=500)


class InMemoryCartService(CartService):
    def __init__(self) -> None:
        self.carts: dict[str, Cart] = {}
        self.cleared: list[str] = []

    def put(self, user_id: str, lines: list[dict]) -> Cart:
        """Replace the user's cart with ``lines`` (dicts of product_id, quantity, variant)."""
        cart = Cart(
            id=str(uuid4()),
            user_id=str(user_id),
            items=[
                CartLine(
                    product_id=str(line["product_id"]),
                    quantity=line["quantity"],
                    variant=line.get("variant"),
                )
                for line in lines
            ],
        )
        self.carts[str(user_id)] = cart
        return cart

    def get_cart(self, user_id: str) -> Cart | None:
        return self.carts.get(str(user_id))

    def clear(self, cart_id: str) -> None:
        for user_id, cart in list(self.carts.items()):
            if cart.id == cart_id:
                self.carts[user_id] = Cart(id=cart.id, user_id=cart.user_id, items=[])
        self.cleared.append(cart_id)


class InMemoryCatalog(Catalog):
    def __init__(self) -> None:
        self.products: dict[str, Product] = {}

    def add_product(self, product_id: str, name: str, price: int) -> Product:
        product = Product(id=str(product_id), name=name, price=price)
        self.products[product.id] = product
        return product

    def get_product(self, product_id: str) -> Product:
        product = self.products.get(str(product_id))
        if product is None:
            raise ProductNotFound(product_id)
        return product


class InMemoryShippingMethods(ShippingMethods):
    def __init__(self, default: ShippingMethod | None = DEFAULT_SHIPPING_METHOD) -> None:
        self.default = default

    def set_default(self, method: ShippingMethod | None) -> None:
        self.default = method

    def get_default_method(self) -> ShippingMethod | None:
        return self.default


class RecordingNotifier(Notifier):
    """Keeps every notification instead of sending it. Can be told to fail."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.should_fail: bool = False

    def _send(self, kind: str, **payload) -> None:
        if self.should_fail:
            raise ConnectionError(f"Notification service unavailable ({kind})")
        self.sent.append({"kind": kind, **payload})

    def order_confirmation(self, order: dict) -> None:
        self._send("order_confirmation", order=order)

    def order_status_update(self, order: dict, status: str) -> None:
        self._send("order_status_update", order=order, status=status)

    def payment_receipt(self, payment: dict) -> None:
        self._send("payment_receipt", payment=payment)
