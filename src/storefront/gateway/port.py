"""Payment gateway port (abstract interface).

Defines the contract every payment gateway adapter implements, so that
FakeGateway (dev/test) and RazorpayGateway (production) can be swapped
without touching checkout code.
"""

import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class GatewayOrder:
    """An order created on the gateway, awaiting the customer's payment."""

    gateway_order_id: str
    amount_minor: int
    currency: str
    receipt: str
    status: str = "created"
    notes: dict = field(default_factory=dict)


def sign_payment(secret: str, gateway_order_id: str, gateway_payment_id: str) -> str:
    """Hex HMAC-SHA256 of ``"{order_id}|{payment_id}"`` keyed by the gateway secret."""
    message = f"{gateway_order_id}|{gateway_payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def signature_matches(expected: str, signature: str | None) -> bool:
    """Constant-time comparison of UTF-8 bytes; any submitted text is accepted."""
    return hmac.compare_digest(expected.encode(), (signature or "").encode())


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name recorded on payments, e.g. ``razorpay``."""
        ...

    @property
    @abstractmethod
    def public_key(self) -> str:
        """Key id the client-side checkout widget is opened with."""
        ...

    @abstractmethod
    def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: dict | None = None,
    ) -> GatewayOrder:
        """Create an order on the gateway for ``amount_minor`` (e.g. paise)."""
        ...

    @abstractmethod
    def verify_payment_signature(
        self,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> bool:
        """Check the signature the client returned after a successful payment."""
        ...
