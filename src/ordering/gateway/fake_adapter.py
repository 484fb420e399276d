"""Configurable fake payment gateway for development and testing.

Simulates a processor without any external calls. It can be switched to
decline at runtime, through ``/payments/gateway/configure`` or directly from
tests, and records every call it receives.
"""

from uuid import uuid4

from ordering.gateway.port import ChargeResult, PaymentGateway, RefundResult


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_code: str = "card_declined"
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Card declined",
        failure_code: str = "card_declined",
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.failure_code = failure_code

    def create_charge(
        self,
        amount: int,
        currency: str,
        payment_method: str,
        transaction_id: str,
    ) -> ChargeResult:
        self.calls.append(
            {
                "method": "create_charge",
                "amount": amount,
                "currency": currency,
                "payment_method": payment_method,
                "transaction_id": transaction_id,
            }
        )

        if self.should_succeed:
            return ChargeResult(
                success=True,
                gateway_reference=f"fake_ch_{uuid4().hex[:12]}",
                gateway_status="succeeded",
            )
        return ChargeResult(
            success=False,
            gateway_status="failed",
            failure_code=self.failure_code,
            failure_reason=self.failure_reason,
        )

    def create_refund(
        self,
        gateway_reference: str | None,
        amount: int,
        reason: str,
    ) -> RefundResult:
        self.calls.append(
            {
                "method": "create_refund",
                "gateway_reference": gateway_reference,
                "amount": amount,
                "reason": reason,
            }
        )

        if self.should_succeed:
            return RefundResult(
                success=True,
                gateway_reference=f"fake_re_{uuid4().hex[:12]}",
                gateway_status="succeeded",
            )
        return RefundResult(
            success=False,
            gateway_status="failed",
            failure_reason=self.failure_reason,
        )
