"""Order pricing from live catalogue data.

Runs when a payment order is initiated. Cart price snapshots are ignored:
every line is priced at the product's current price. The resulting breakdown
is kept on the payment record, and finalization places the order from that
record without pricing again. Lines for the same variant are merged.
Arithmetic is done in ``Decimal`` and rounded half-up to two places before
being handed back as floats.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from protean.exceptions import ValidationError

from storefront.catalogue.lookup import check_stock, load_product, merge_lines
from storefront.coupon.lookup import lookup
from storefront.errors import CouponMinimumNotMet, InsufficientStock, PaymentLimitExceeded
from storefront.settings.site_settings import get_site_settings

_CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)


def to_minor_units(amount) -> int:
    """Convert a major-unit amount (rupees) to gateway minor units (paise)."""
    return int((to_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    name: str
    color: str
    size: str
    quantity: int
    unit_price: float
    line_total: float
    image: str = ""

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "variant": {"color": self.color, "size": self.size},
            "quantity": self.quantity,
            "price": self.unit_price,
            "line_total": self.line_total,
            "image": self.image,
        }


@dataclass(frozen=True)
class PricingBreakdown:
    lines: list[PricedLine]
    subtotal: float
    discount: float
    shipping: float
    total: float
    coupon: dict | None = None
    free_shipping_threshold: float = 0.0
    payment_limit: float = 0.0

    @property
    def discounted_subtotal(self) -> float:
        return float(to_money(self.subtotal) - to_money(self.discount))

    def to_dict(self) -> dict:
        return {
            "items": [line.to_dict() for line in self.lines],
            "subtotal": self.subtotal,
            "discount": self.discount,
            "discounted_subtotal": self.discounted_subtotal,
            "shipping": self.shipping,
            "total": self.total,
            "coupon": self.coupon,
        }


def price_order(items, coupon_code: str | None = None) -> PricingBreakdown:
    """Price normalized cart lines against live catalogue and settings.

    ``items`` are mappings with ``product_id``, ``variant`` ({color, size}) and
    ``quantity``. Raises ``InsufficientStock`` listing every short line,
    coupon errors, ``PaymentLimitExceeded`` or a ``ValidationError`` for an
    empty cart or a non-positive total.
    """
    items = merge_lines(items or [])
    if not items:
        raise ValidationError({"items": ["Cart is empty"]})

    shortages = check_stock(items)
    if shortages:
        raise InsufficientStock(shortages)

    lines = []
    subtotal = Decimal("0")
    for item in items:
        product = load_product(str(item["product_id"]))
        quantity = int(item["quantity"])
        unit_price = to_money(product.price)
        line_total = to_money(unit_price * quantity)
        subtotal += line_total
        lines.append(
            PricedLine(
                product_id=str(product.id),
                name=product.name,
                color=item["variant"]["color"],
                size=item["variant"]["size"],
                quantity=quantity,
                unit_price=float(unit_price),
                line_total=float(line_total),
                image=product.primary_image,
            )
        )
    subtotal = to_money(subtotal)

    coupon = None
    discount = Decimal("0.00")
    if coupon_code:
        coupon = lookup(coupon_code)
        min_order_value = coupon.get("min_order_value")
        if min_order_value and subtotal < to_money(min_order_value):
            raise CouponMinimumNotMet(coupon["code"], min_order_value, float(subtotal))
        discount = to_money(subtotal * Decimal(coupon["discount_percent"]) / Decimal(100))

    settings = get_site_settings()
    threshold = to_money(settings.free_shipping_threshold)
    discounted_subtotal = subtotal - discount
    shipping = Decimal("0.00") if discounted_subtotal > threshold else to_money(settings.flat_shipping_fee)

    total = to_money(discounted_subtotal + shipping)
    if total <= 0:
        raise ValidationError({"total": ["Order total must be greater than zero"]})

    limit = settings.online_payment_limit
    if total > to_money(limit):
        raise PaymentLimitExceeded(float(total), limit)

    return PricingBreakdown(
        lines=lines,
        subtotal=float(subtotal),
        discount=float(discount),
        shipping=float(shipping),
        total=float(total),
        coupon=coupon,
        free_shipping_threshold=float(threshold),
        payment_limit=limit,
    )
