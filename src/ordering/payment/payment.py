"""Payment aggregate (CQRS) — the payment ledger.

A payment is one charge attempt against an order, plus every refund issued
against it. The ledger never goes negative and never double-spends:

    0 <= total_refunded <= amount

State Machine:
    PENDING → PROCESSING → COMPLETED → PARTIALLY_REFUNDED → REFUNDED
    PROCESSING → FAILED
    PENDING → CANCELLED/EXPIRED

Status after a refund is derived from the balance: nothing refunded leaves the
status alone, a partial balance is PARTIALLY_REFUNDED, the full amount is
REFUNDED. Failed refunds are kept for audit but never touch the balance.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import atomic_change, invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import (
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from ordering.domain import ordering
from ordering.exceptions import (
    InvalidOrderTotal,
    InvalidRefundAmount,
    InvalidTransition,
    PaymentNotFound,
    PaymentNotRefundable,
    RefundExceedsBalance,
)
from ordering.order.order import PaymentMethod
from ordering.payment.events import (
    PaymentCompleted,
    PaymentFailed,
    PaymentInitiated,
    RefundFailed,
    RefundProcessed,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PaymentStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class RefundStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    PARTIALLY_REFUNDED = "partially_refunded"


class RefundReason(Enum):
    CUSTOMER_REQUEST = "customer_request"
    PRODUCT_RETURN = "product_return"
    FRAUD = "fraud"
    OTHER = "other"


_VALID_TRANSITIONS = {
    PaymentStatus.PENDING: {
        PaymentStatus.PROCESSING,
        PaymentStatus.FAILED,
        PaymentStatus.CANCELLED,
        PaymentStatus.EXPIRED,
    },
    PaymentStatus.PROCESSING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.COMPLETED: {PaymentStatus.PARTIALLY_REFUNDED, PaymentStatus.REFUNDED},
    PaymentStatus.PARTIALLY_REFUNDED: {PaymentStatus.PARTIALLY_REFUNDED, PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),  # Terminal
    PaymentStatus.REFUNDED: set(),  # Terminal
    PaymentStatus.CANCELLED: set(),  # Terminal
    PaymentStatus.EXPIRED: set(),  # Terminal
}

_REFUNDABLE_STATES = {PaymentStatus.COMPLETED, PaymentStatus.PARTIALLY_REFUNDED}

# A fully refunded payment still answers with its (empty) balance
_BALANCE_CHECKED_STATES = _REFUNDABLE_STATES | {PaymentStatus.REFUNDED}


def generate_transaction_id() -> str:
    return f"TXN-{uuid4().hex[:16].upper()}"


def generate_refund_transaction_id() -> str:
    return f"REF-{uuid4().hex[:16].upper()}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Payment")
class PaymentError:
    """Why the gateway declined the charge."""

    code = String(max_length=100)
    message = String(max_length=1000)


@ordering.value_object(part_of="Payment")
class PaymentMetadata:
    """Client context captured when the payment was submitted."""

    ip_address = String(max_length=64)
    user_agent = String(max_length=500)
    device_info = String(max_length=500)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Payment")
class Refund:
    """A refund against this payment. Append-only."""

    amount = Integer(required=True, min_value=1)
    reason = String(required=True, choices=RefundReason)
    status = String(
        max_length=50,
        choices=RefundStatus,
        default=RefundStatus.PENDING.value,
    )
    transaction_id = String(required=True, max_length=64)
    gateway_reference = String(max_length=255)
    processed_at = DateTime()
    notes = String(max_length=1000)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Payment:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    amount = Integer(required=True, min_value=1)
    currency = String(max_length=3, default="USD")
    payment_method = String(required=True, choices=PaymentMethod)
    status = String(
        choices=PaymentStatus,
        default=PaymentStatus.PENDING.value,
    )
    transaction_id = String(required=True, max_length=64)
    gateway_reference = String(max_length=255)
    refunds = HasMany(Refund)
    total_refunded = Integer(default=0, min_value=0)
    error = ValueObject(PaymentError)
    metadata = ValueObject(PaymentMetadata)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def refunds_must_stay_within_amount(self):
        if not 0 <= (self.total_refunded or 0) <= self.amount:
            raise ValidationError(
                {"total_refunded": [f"Total refunded {self.total_refunded} must be between 0 and {self.amount}"]}
            )

    @invariant.post
    def status_must_match_refunded_balance(self):
        if self.status == PaymentStatus.REFUNDED.value and self.total_refunded != self.amount:
            raise ValidationError({"status": ["A refunded payment must have its full amount refunded"]})
        if self.status == PaymentStatus.PARTIALLY_REFUNDED.value and not 0 < self.total_refunded < self.amount:
            raise ValidationError({"status": ["A partially refunded payment must have a partial balance refunded"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_id,
        user_id,
        amount: int,
        currency: str,
        payment_method: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
        device_info: str | None = None,
    ):
        """Open a payment for an order's total, ready to be sent to the gateway."""
        if amount is None or amount <= 0:
            raise InvalidOrderTotal(amount)

        now = datetime.now(UTC)
        payment = cls(
            order_id=order_id,
            user_id=user_id,
            amount=amount,
            currency=currency,
            payment_method=payment_method,
            status=PaymentStatus.PROCESSING.value,
            transaction_id=generate_transaction_id(),
            metadata=PaymentMetadata(
                ip_address=ip_address,
                user_agent=user_agent,
                device_info=device_info,
            ),
            created_at=now,
            updated_at=now,
        )
        payment.raise_(
            PaymentInitiated(
                payment_id=str(payment.id),
                order_id=str(order_id),
                user_id=str(user_id),
                transaction_id=payment.transaction_id,
                amount=amount,
                currency=currency,
                payment_method=payment_method,
                initiated_at=now,
            )
        )
        return payment

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: PaymentStatus) -> None:
        current = PaymentStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition(current.value, target_status.value)

    # -------------------------------------------------------------------
    # Payment lifecycle
    # -------------------------------------------------------------------
    def mark_completed(self, gateway_reference: str | None = None) -> None:
        self._assert_can_transition(PaymentStatus.COMPLETED)

        now = datetime.now(UTC)
        self.status = PaymentStatus.COMPLETED.value
        self.gateway_reference = gateway_reference
        self.updated_at = now

        self.raise_(
            PaymentCompleted(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                user_id=str(self.user_id),
                transaction_id=self.transaction_id,
                amount=self.amount,
                currency=self.currency,
                gateway_reference=gateway_reference,
                completed_at=now,
            )
        )

    def mark_failed(self, code: str, message: str) -> None:
        self._assert_can_transition(PaymentStatus.FAILED)

        now = datetime.now(UTC)
        self.status = PaymentStatus.FAILED.value
        self.error = PaymentError(code=code, message=message)
        self.updated_at = now

        self.raise_(
            PaymentFailed(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                user_id=str(self.user_id),
                transaction_id=self.transaction_id,
                error_code=code,
                error_message=message,
                failed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Refunds
    # -------------------------------------------------------------------
    @property
    def refundable_amount(self) -> int:
        return self.amount - (self.total_refunded or 0)

    def assert_refundable(self, amount: int) -> None:
        """Raise unless ``amount`` can be refunded right now."""
        if amount is None or amount <= 0:
            raise InvalidRefundAmount(amount)
        if PaymentStatus(self.status) not in _BALANCE_CHECKED_STATES:
            raise PaymentNotRefundable(self.status)
        if amount > self.refundable_amount:
            raise RefundExceedsBalance(amount, self.refundable_amount)

    def record_refund(
        self,
        amount: int,
        reason: str,
        notes: str | None = None,
        gateway_reference: str | None = None,
    ) -> Refund:
        """Append a completed refund and move the balance and status accordingly."""
        self.assert_refundable(amount)

        now = datetime.now(UTC)
        refund = Refund(
            amount=amount,
            reason=reason,
            status=RefundStatus.COMPLETED.value,
            transaction_id=generate_refund_transaction_id(),
            gateway_reference=gateway_reference,
            processed_at=now,
            notes=notes,
        )
        self.add_refunds(refund)

        total_refunded = (self.total_refunded or 0) + amount
        target = PaymentStatus.REFUNDED if total_refunded == self.amount else PaymentStatus.PARTIALLY_REFUNDED
        self._assert_can_transition(target)

        with atomic_change(self):
            self.total_refunded = total_refunded
            self.status = target.value
            self.updated_at = now

        self.raise_(
            RefundProcessed(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                user_id=str(self.user_id),
                transaction_id=self.transaction_id,
                refund_transaction_id=refund.transaction_id,
                amount=amount,
                reason=reason,
                total_refunded=self.total_refunded,
                payment_status=self.status,
                processed_at=now,
            )
        )
        return refund

    def record_failed_refund(self, amount: int, reason: str, notes: str | None = None) -> Refund:
        """Keep a declined refund for audit. The balance is untouched."""
        now = datetime.now(UTC)
        refund = Refund(
            amount=amount,
            reason=reason,
            status=RefundStatus.FAILED.value,
            transaction_id=generate_refund_transaction_id(),
            processed_at=now,
            notes=notes,
        )
        self.add_refunds(refund)
        self.updated_at = now

        self.raise_(
            RefundFailed(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                transaction_id=self.transaction_id,
                refund_transaction_id=refund.transaction_id,
                amount=amount,
                reason=reason,
                notes=notes,
                failed_at=now,
            )
        )
        return refund

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    def summary(self) -> dict:
        return {
            "amount": self.amount,
            "total_refunded": self.total_refunded or 0,
            "remaining_amount": self.refundable_amount,
            "refund_count": len(self.refunds or []),
            "status": self.status,
        }


@ordering.repository(part_of=Payment)
class PaymentRepository:
    """Payment lookups by transaction id and page-wise iteration for reporting."""

    def by_transaction_id(self, transaction_id: str) -> Payment:
        results = self._dao.query.filter(transaction_id=transaction_id).all().items
        if not results:
            raise PaymentNotFound(transaction_id)
        return results[0]

    def for_order(self, order_id) -> list[Payment]:
        return self._dao.query.filter(order_id=str(order_id)).order_by("-created_at").all().items

    def iter_all(self, page_size: int = 100):
        """Yield every payment, one page at a time."""
        offset = 0
        while True:
            page = self._dao.query.order_by("created_at").offset(offset).limit(page_size).all().items
            yield from page
            if len(page) < page_size:
                return
            offset += page_size
