"""Domain events for the Coupon aggregate."""

from protean.fields import Boolean, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Coupon")
class CouponCreated:
    __version__ = "v1"

    coupon_id = Identifier(required=True)
    code = String(required=True)
    discount_percent = Integer(required=True)
    min_order_value = Float()


@storefront.event(part_of="Coupon")
class CouponStatusChanged:
    """A coupon was activated or deactivated by an admin."""

    __version__ = "v1"

    coupon_id = Identifier(required=True)
    code = String(required=True)
    is_active = Boolean(required=True)
