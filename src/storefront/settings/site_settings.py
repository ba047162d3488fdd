"""Site settings — singleton document with shipping and online-payment limits.

Settings are read at payment initiation time. A store that never saved its
settings gets the defaults below.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float
from protean.utils.globals import current_domain

from storefront.domain import storefront

SETTINGS_ID = "default"

DEFAULT_FREE_SHIPPING_THRESHOLD = 1499.0
DEFAULT_FLAT_SHIPPING_FEE = 200.0
DEFAULT_MAX_ONLINE_PAYMENT_AMOUNT = 100000.0

# Platform cap the payment gateway imposes per order
GATEWAY_ORDER_AMOUNT_HARD_LIMIT = 500000.0


def clamp_online_payment_limit(raw_amount) -> float:
    """Return a usable online-payment ceiling, never above the gateway's hard limit."""
    try:
        parsed = float(raw_amount)
    except (TypeError, ValueError):
        parsed = 0.0
    safe_value = parsed if parsed > 0 else DEFAULT_MAX_ONLINE_PAYMENT_AMOUNT
    return min(safe_value, GATEWAY_ORDER_AMOUNT_HARD_LIMIT)


@storefront.aggregate
class SiteSettings:
    free_shipping_threshold = Float(default=DEFAULT_FREE_SHIPPING_THRESHOLD, min_value=0.0)
    flat_shipping_fee = Float(default=DEFAULT_FLAT_SHIPPING_FEE, min_value=0.0)
    max_online_payment_amount = Float(default=DEFAULT_MAX_ONLINE_PAYMENT_AMOUNT, min_value=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def default_settings(cls):
        now = datetime.now(UTC)
        return cls(id=SETTINGS_ID, created_at=now, updated_at=now)

    @property
    def online_payment_limit(self) -> float:
        return clamp_online_payment_limit(self.max_online_payment_amount)

    def update(self, free_shipping_threshold=None, flat_shipping_fee=None, max_online_payment_amount=None):
        """Partial update; omitted values keep their current setting."""
        if free_shipping_threshold is not None:
            self.free_shipping_threshold = free_shipping_threshold
        if flat_shipping_fee is not None:
            self.flat_shipping_fee = flat_shipping_fee
        if max_online_payment_amount is not None:
            self.max_online_payment_amount = clamp_online_payment_limit(max_online_payment_amount)
        self.updated_at = datetime.now(UTC)


def get_site_settings() -> SiteSettings:
    """Load the stored settings, falling back to unsaved defaults."""
    try:
        return current_domain.repository_for(SiteSettings).get(SETTINGS_ID)
    except ObjectNotFoundError:
        return SiteSettings.default_settings()
