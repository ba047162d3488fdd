"""Storefront API package."""

from storefront.api.errors import register_exception_handlers
from storefront.api.routes import (
    admin_router,
    cart_router,
    coupon_router,
    order_router,
    payment_router,
    product_router,
    settings_router,
    tracking_router,
)

ROUTERS = [
    cart_router,
    product_router,
    coupon_router,
    payment_router,
    order_router,
    tracking_router,
    settings_router,
    admin_router,
]

__all__ = [
    "ROUTERS",
    "admin_router",
    "cart_router",
    "coupon_router",
    "order_router",
    "payment_router",
    "product_router",
    "register_exception_handlers",
    "settings_router",
    "tracking_router",
]
