"""Coupon aggregate (CQRS) — the coupon evaluator.

Coupons are managed elsewhere; this context only reads them and bumps their
usage counters. A coupon is evaluated in three steps during checkout:

1. ``validate(now, user_id)``: window, active flag, global and per-user caps
2. ``compute_discount(subtotal)``: amount off, in minor units
3. ``commit_usage(user_id)``: only once the order has been added
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String

from ordering.domain import ordering
from ordering.exceptions import (
    CouponExhausted,
    CouponExpired,
    CouponInactive,
    CouponNotFound,
    CouponUserLimitReached,
)
from ordering.order.pricing import round_minor


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@ordering.entity(part_of="Coupon")
class CouponRedemption:
    """How many times one user has redeemed the coupon."""

    user_id = Identifier(required=True)
    count = Integer(default=0, min_value=0)


@ordering.aggregate
class Coupon:
    code = String(identifier=True, max_length=50)
    description = String(max_length=255)
    discount_type = String(required=True, choices=DiscountType)
    # Percent for percentage coupons, minor units for fixed ones
    discount_value = Integer(required=True, min_value=0)
    starts_at = DateTime(required=True)
    ends_at = DateTime(required=True)
    min_purchase = Integer(default=0, min_value=0)
    max_discount = Integer(min_value=0)
    max_usage = Integer(min_value=0)
    usage_per_user = Integer(default=1, min_value=1)
    usage_count = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    redemptions = HasMany(CouponRedemption)

    def _redemption_for(self, user_id):
        for redemption in self.redemptions:
            if str(redemption.user_id) == str(user_id):
                return redemption
        return None

    def usage_by(self, user_id) -> int:
        redemption = self._redemption_for(user_id)
        return redemption.count if redemption else 0

    def validate(self, now=None, user_id=None):
        now = now or datetime.now(UTC)

        if now < self.starts_at or now > self.ends_at:
            raise CouponExpired(self.code)
        if not self.is_active:
            raise CouponInactive(self.code)
        if self.max_usage is not None and self.usage_count >= self.max_usage:
            raise CouponExhausted(self.code)
        if user_id is not None and self.usage_by(user_id) >= self.usage_per_user:
            raise CouponUserLimitReached(self.code)

    def compute_discount(self, subtotal) -> int:
        if subtotal < (self.min_purchase or 0):
            return 0

        if self.discount_type == DiscountType.PERCENTAGE.value:
            discount = round_minor(Decimal(subtotal) * Decimal(self.discount_value) / Decimal(100))
            if self.max_discount is not None:
                discount = min(discount, self.max_discount)
        else:
            discount = self.discount_value

        return min(discount, subtotal)

    def commit_usage(self, user_id):
        self.usage_count += 1

        redemption = self._redemption_for(user_id)
        if redemption is None:
            self.add_redemptions(CouponRedemption(user_id=user_id, count=1))
        else:
            redemption.count += 1


@ordering.repository(part_of=Coupon)
class CouponRepository:
    def by_code(self, code) -> Coupon:
        try:
            return self.get(code)
        except ObjectNotFoundError:
            raise CouponNotFound(code) from None
