"""Payment gateway port (abstract interface).

The ledger treats the gateway as a black box that either accepts or declines
a charge or refund. Amounts cross this boundary in minor units.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ChargeResult:
    """Result of a payment charge attempt."""

    success: bool
    gateway_reference: str | None = None
    gateway_status: str | None = None
    failure_code: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    """Result of a refund attempt."""

    success: bool
    gateway_reference: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_charge(
        self,
        amount: int,
        currency: str,
        payment_method: str,
        transaction_id: str,
    ) -> ChargeResult:
        """Charge ``amount`` minor units. ``transaction_id`` doubles as idempotency key."""
        ...

    @abstractmethod
    def create_refund(
        self,
        gateway_reference: str | None,
        amount: int,
        reason: str,
    ) -> RefundResult:
        """Refund part or all of a previous charge."""
        ...
