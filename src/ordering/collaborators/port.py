"""Ports for the services the ordering core consumes but does not own.

Carts, the product catalog, shipping methods and outbound notifications all
live in other services. The ordering core only depends on these interfaces.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int
    variant: str | None = None


@dataclass(frozen=True)
class Cart:
    id: str
    user_id: str
    items: list[CartLine] = field(default_factory=list)


@dataclass(frozen=True)
class Product:
    """Catalog view of a product. ``price`` is in minor units."""

    id: str
    name: str
    price: int


@dataclass(frozen=True)
class ShippingMethod:
    id: str
    name: str
    base_cost: int


class CartService(ABC):
    @abstractmethod
    def get_cart(self, user_id: str) -> Cart | None:
        """Return the user's active cart, or None when they have none."""
        ...

    @abstractmethod
    def clear(self, cart_id: str) -> None: ...


class Catalog(ABC):
    @abstractmethod
    def get_product(self, product_id: str) -> Product:
        """Return the product or raise ``ProductNotFound``."""
        ...


class ShippingMethods(ABC):
    @abstractmethod
    def get_default_method(self) -> ShippingMethod | None: ...


class Notifier(ABC):
    """Outbound customer notifications. Delivery is fire-and-forget."""

    @abstractmethod
    def order_confirmation(self, order: dict) -> None: ...

    @abstractmethod
    def order_status_update(self, order: dict, status: str) -> None: ...

    @abstractmethod
    def payment_receipt(self, payment: dict) -> None: ...
