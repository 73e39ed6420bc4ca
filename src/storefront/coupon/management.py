"""Coupon administration: commands and handler."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.coupon.coupon import Coupon, normalize_code
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, min_length=2, max_length=50)
    coupon_type = String(required=True, max_length=10)
    value = Float(required=True)
    min_order_amount = Float(min_value=0.0)
    max_uses = Integer(min_value=1)
    valid_from = DateTime()
    valid_until = DateTime()
    is_active = Boolean(default=True)


@storefront.command(part_of="Coupon")
class SetCouponActive:
    coupon_id = Identifier(required=True)
    is_active = Boolean(required=True)


@storefront.command_handler(part_of=Coupon)
class CouponHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        code = normalize_code(command.code)
        if repo.find_by_code(code) is not None:
            raise ValidationError({"code": [f"Coupon code {code} already exists"]})
        if command.value is None or command.value <= 0:
            raise ValidationError({"value": ["Value must be positive"]})

        coupon = Coupon.create(
            code=code,
            coupon_type=(command.coupon_type or "").strip().lower(),
            value=command.value,
            min_order_amount=command.min_order_amount,
            max_uses=command.max_uses,
            valid_from=command.valid_from,
            valid_until=command.valid_until,
            is_active=command.is_active if command.is_active is not None else True,
        )
        repo.add(coupon)
        logger.info("coupon_created", coupon_id=str(coupon.id), code=code)
        return str(coupon.id)

    @handle(SetCouponActive)
    def set_coupon_active(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(command.coupon_id)
        coupon.set_active(command.is_active)
        repo.add(coupon)
