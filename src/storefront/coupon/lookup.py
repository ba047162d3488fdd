"""Coupon lookup by code."""

from protean.utils.globals import current_domain

from storefront.coupon.coupon import Coupon, normalize_code
from storefront.errors import CouponInactive, CouponNotFound


def find_by_code(code: str) -> Coupon | None:
    normalized = normalize_code(code)
    if not normalized:
        return None
    results = current_domain.repository_for(Coupon)._dao.query.filter(code=normalized).all().items
    return results[0] if results else None


def lookup(code: str) -> dict:
    """Return ``{code, discount_percent, min_order_value}`` for an active coupon.

    Raises ``CouponNotFound`` for unknown codes and ``CouponInactive`` for
    deactivated ones.
    """
    coupon = find_by_code(code)
    if coupon is None:
        raise CouponNotFound(normalize_code(code) or str(code))
    if not coupon.is_active:
        raise CouponInactive(coupon.code)
    return coupon.to_public()
