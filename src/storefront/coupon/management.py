"""Coupon management — admin commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Integer, String
from protean.utils.globals import current_domain

from storefront.coupon.coupon import Coupon
from storefront.coupon.lookup import find_by_code
from storefront.domain import storefront
from storefront.errors import CouponNotFound


@storefront.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=50)
    discount_percent = Integer(required=True, min_value=1, max_value=100)
    min_order_value = Float(min_value=0.0)
    is_active = Boolean(default=True)


@storefront.command(part_of="Coupon")
class ActivateCoupon:
    code = String(required=True, max_length=50)


@storefront.command(part_of="Coupon")
class DeactivateCoupon:
    code = String(required=True, max_length=50)


def _require(code):
    coupon = find_by_code(code)
    if coupon is None:
        raise CouponNotFound(code)
    return coupon


@storefront.command_handler(part_of=Coupon)
class ManageCouponsHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        if find_by_code(command.code) is not None:
            raise ValidationError({"code": [f"Coupon {command.code.upper()} already exists"]})

        coupon = Coupon.create(
            code=command.code,
            discount_percent=command.discount_percent,
            min_order_value=command.min_order_value,
            is_active=command.is_active,
        )
        current_domain.repository_for(Coupon).add(coupon)
        return coupon.code

    @handle(ActivateCoupon)
    def activate_coupon(self, command):
        coupon = _require(command.code)
        coupon.activate()
        current_domain.repository_for(Coupon).add(coupon)

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        coupon = _require(command.code)
        coupon.deactivate()
        current_domain.repository_for(Coupon).add(coupon)
