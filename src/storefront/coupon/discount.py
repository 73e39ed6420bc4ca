"""Discount evaluation.

At placement an unusable coupon is not an error: the order simply goes
through at full price. ``validate_coupon`` is the checkout-form query that
tells the shopper why a code does not apply.
"""

from dataclasses import dataclass
from datetime import datetime

from protean.utils.globals import current_domain

from storefront.coupon.coupon import Coupon


@dataclass(frozen=True)
class AppliedDiscount:
    coupon_id: str
    code: str
    amount: float


@dataclass(frozen=True)
class CouponCheck:
    valid: bool
    discount: float = 0.0
    coupon_id: str | None = None
    code: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.valid:
            return {"success": True, "discount": self.discount, "couponId": self.coupon_id, "code": self.code}
        return {"success": False, "error": self.error}


def validate_coupon(code: str | None, subtotal: float, now: datetime | None = None) -> CouponCheck:
    if not (code or "").strip() or subtotal <= 0:
        return CouponCheck(valid=False, error="Invalid code or subtotal")

    coupon = current_domain.repository_for(Coupon).find_by_code(code)
    if coupon is None:
        return CouponCheck(valid=False, error="Coupon not found or inactive")

    reason = coupon.rejection_reason(subtotal, now)
    if reason is not None:
        return CouponCheck(valid=False, error=reason)

    return CouponCheck(
        valid=True,
        discount=coupon.discount_for(subtotal),
        coupon_id=str(coupon.id),
        code=coupon.code,
    )


def evaluate_coupon(code: str | None, subtotal: float, now: datetime | None = None) -> AppliedDiscount | None:
    """Discount for ``code`` against ``subtotal``, or None when it does not apply."""
    check = validate_coupon(code, subtotal, now)
    if not check.valid:
        return None
    return AppliedDiscount(coupon_id=check.coupon_id, code=check.code, amount=check.discount)
