"""Coupon aggregate.

A coupon is created by staff and thereafter mutated only by order placement,
which bumps ``used_count`` in the same unit of work that stores the order.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String

from storefront.domain import storefront
from storefront.shared.money import round_money


class CouponType(Enum):
    PERCENT = "percent"
    FIXED = "fixed"


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def _aware(moment: datetime | None) -> datetime | None:
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


@storefront.aggregate
class Coupon:
    code = String(required=True, max_length=50, unique=True)
    type = String(required=True, choices=CouponType)
    value = Float(required=True, min_value=0.0)
    min_order_amount = Float(min_value=0.0)
    max_uses = Integer(min_value=1)
    used_count = Integer(default=0, min_value=0)
    valid_from = DateTime()
    valid_until = DateTime()
    is_active = Boolean(default=True)
    created_at = DateTime(default=lambda: datetime.now(UTC))

    @invariant.post
    def usage_cannot_exceed_cap(self):
        if self.max_uses is not None and (self.used_count or 0) > self.max_uses:
            raise ValidationError({"used_count": ["Coupon usage limit exceeded"]})

    @invariant.post
    def percent_value_must_be_a_percentage(self):
        if self.type == CouponType.PERCENT.value and (self.value <= 0 or self.value > 100):
            raise ValidationError({"value": ["Percentage must be between 1 and 100"]})

    @classmethod
    def create(cls, code, coupon_type, value, **options):
        return cls(code=normalize_code(code), type=coupon_type, value=value, **options)

    def rejection_reason(self, subtotal: float, now: datetime | None = None) -> str | None:
        """Why this coupon cannot discount ``subtotal`` right now, or None."""
        now = now or datetime.now(UTC)

        if not self.is_active:
            return "Coupon not found or inactive"
        if self.valid_from and now < _aware(self.valid_from):
            return "This coupon is not yet valid"
        if self.valid_until and now > _aware(self.valid_until):
            return "This coupon has expired"
        if self.max_uses is not None and (self.used_count or 0) >= self.max_uses:
            return "This coupon has reached its usage limit"

        minimum = self.min_order_amount or 0
        if subtotal < minimum:
            return f"Minimum order amount is {minimum:,.0f}"
        if self.discount_for(subtotal) <= 0:
            return "No discount applies"
        return None

    def discount_for(self, subtotal: float) -> float:
        """Discount amount for ``subtotal``, never more than the subtotal itself."""
        if subtotal <= 0:
            return 0.0
        if self.type == CouponType.PERCENT.value:
            discount = round_money(subtotal * self.value / 100)
        else:
            discount = round_money(self.value)
        return min(discount, round_money(subtotal))

    def record_use(self):
        self.used_count = (self.used_count or 0) + 1

    def set_active(self, is_active: bool):
        self.is_active = is_active
