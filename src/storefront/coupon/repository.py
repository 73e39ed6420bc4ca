"""Repository for the Coupon aggregate."""

from storefront.coupon.coupon import Coupon, normalize_code
from storefront.domain import storefront


@storefront.repository(part_of=Coupon)
class CouponRepository:
    def find_by_code(self, code: str) -> Coupon | None:
        """Find a coupon by its code, ignoring case and surrounding spaces."""
        code = normalize_code(code)
        if not code:
            return None
        matches = self._dao.query.filter(code=code).all().items
        return matches[0] if matches else None
