"""Coupon aggregate (CQRS) — a percentage discount redeemable by code.

Codes are stored uppercase and matched case-insensitively. A coupon may carry
a minimum order value; enforcing it is the pricing step's job.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String

from storefront.coupon.events import CouponCreated, CouponStatusChanged
from storefront.domain import storefront


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


@storefront.aggregate
class Coupon:
    code = String(required=True, max_length=50, unique=True)
    discount_percent = Integer(required=True, min_value=1, max_value=100)
    is_active = Boolean(default=True)
    min_order_value = Float(min_value=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, code, discount_percent, min_order_value=None, is_active=True):
        code = normalize_code(code)
        if not code:
            raise ValidationError({"code": ["Coupon code is required"]})

        now = datetime.now(UTC)
        coupon = cls(
            code=code,
            discount_percent=discount_percent,
            min_order_value=min_order_value,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        coupon.raise_(
            CouponCreated(
                coupon_id=str(coupon.id),
                code=coupon.code,
                discount_percent=coupon.discount_percent,
                min_order_value=coupon.min_order_value,
            )
        )
        return coupon

    def activate(self):
        self._set_active(True)

    def deactivate(self):
        self._set_active(False)

    def _set_active(self, is_active):
        if self.is_active == is_active:
            return
        self.is_active = is_active
        self.updated_at = datetime.now(UTC)
        self.raise_(CouponStatusChanged(coupon_id=str(self.id), code=self.code, is_active=is_active))

    def to_public(self) -> dict:
        return {
            "code": self.code,
            "discount_percent": self.discount_percent,
            "min_order_value": self.min_order_value,
        }
