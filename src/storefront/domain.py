"""Storefront bounded context — catalogue stock, cart, coupons, checkout and order tracking.

Checkout finalization touches the product, payment record, order and cart
aggregates inside one unit of work, so all of them live in this one domain.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

storefront = Domain(name="storefront")
