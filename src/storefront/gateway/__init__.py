"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (``PAYMENT_GATEWAY=fake``, default)
- RazorpayGateway for production (``PAYMENT_GATEWAY=razorpay``)
"""

import os

from storefront.gateway.fake_adapter import FakeGateway
from storefront.gateway.port import PaymentGateway
from storefront.gateway.razorpay_adapter import RazorpayGateway

DEFAULT_CURRENCY = "INR"

_current_gateway: PaymentGateway | None = None


def gateway_currency() -> str:
    return os.getenv("PAYMENT_CURRENCY", DEFAULT_CURRENCY)


def gateway_from_env() -> PaymentGateway:
    """Build the gateway named by ``PAYMENT_GATEWAY``."""
    kind = os.getenv("PAYMENT_GATEWAY", "fake").lower()
    if kind == "razorpay":
        return RazorpayGateway(
            key_id=os.getenv("RAZORPAY_KEY_ID", ""),
            key_secret=os.getenv("RAZORPAY_KEY_SECRET", ""),
        )
    if kind == "fake":
        return FakeGateway()
    raise ValueError(f"Unknown payment gateway: {kind}")


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, building it from the environment on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = gateway_from_env()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
