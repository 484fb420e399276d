"""Active payment gateway for charges and refunds.

``ProcessPayment`` and ``RefundPayment`` look the gateway up on every call, so
a processor installed with ``set_gateway()`` takes effect for the next
command. Until one is installed, charges go to an in-process ``FakeGateway``.
"""

from ordering.gateway.fake_adapter import FakeGateway
from ordering.gateway.port import PaymentGateway

_active_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """The gateway charges and refunds are sent to."""
    global _active_gateway
    if _active_gateway is None:
        _active_gateway = FakeGateway()
    return _active_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    global _active_gateway
    _active_gateway = gateway


def reset_gateway() -> None:
    """Drop the installed gateway; the next lookup starts a fresh FakeGateway."""
    global _active_gateway
    _active_gateway = None
