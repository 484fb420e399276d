"""Collaborator factory.

Provides get_*() / set_*() for the cart service, catalog, shipping methods and
notifier, defaulting to the in-memory adapters. ``reset_collaborators()`` puts
every default back, which tests do between cases.
"""

from ordering.collaborators.fake_adapter import (
    InMemoryCartService,
    InMemoryCatalog,
    InMemoryShippingMethods,
    RecordingNotifier,
)
from ordering.collaborators.port import CartService, Catalog, Notifier, ShippingMethods

_cart_service: CartService | None = None
_catalog: Catalog | None = None
_shipping_methods: ShippingMethods | None = None
_notifier: Notifier | None = None


def get_cart_service() -> CartService:
    global _cart_service
    if _cart_service is None:
        _cart_service = InMemoryCartService()
    return _cart_service


def set_cart_service(service: CartService) -> None:
    global _cart_service
    _cart_service = service


def get_catalog() -> Catalog:
    global _catalog
    if _catalog is None:
        _catalog = InMemoryCatalog()
    return _catalog


def set_catalog(catalog: Catalog) -> None:
    global _catalog
    _catalog = catalog


def get_shipping_methods() -> ShippingMethods:
    global _shipping_methods
    if _shipping_methods is None:
        _shipping_methods = InMemoryShippingMethods()
    return _shipping_methods


def set_shipping_methods(methods: ShippingMethods) -> None:
    global _shipping_methods
    _shipping_methods = methods


def get_notifier() -> Notifier:
    global _notifier
    if _notifier is None:
        _notifier = RecordingNotifier()
    return _notifier


def set_notifier(notifier: Notifier) -> None:
    global _notifier
    _notifier = notifier


def reset_collaborators() -> None:
    """Reset every collaborator to its in-memory default."""
    global _cart_service, _catalog, _shipping_methods, _notifier
    _cart_service = None
    _catalog = None
    _shipping_methods = None
    _notifier = None
