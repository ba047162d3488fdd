"""Configurable fake payment gateway for development and testing.

Creates orders without any external calls and signs payments with a local
secret, so tests can produce valid (or deliberately invalid) signatures via
``sign()``. It can also be told to reject order creation.
"""

from uuid import uuid4

from storefront.errors import GatewayError
from storefront.gateway.port import GatewayOrder, PaymentGateway, sign_payment, signature_matches


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, key_id: str = "rzp_test_fake", secret: str = "fake-secret") -> None:
        self.key_id = key_id
        self.secret = secret
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    @property
    def name(self) -> str:
        return "fake"

    @property
    def public_key(self) -> str:
        return self.key_id

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def sign(self, gateway_order_id: str, gateway_payment_id: str) -> str:
        """Produce the signature a real checkout would hand back to the client."""
        return sign_payment(self.secret, gateway_order_id, gateway_payment_id)

    def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: dict | None = None,
    ) -> GatewayOrder:
        call = {
            "method": "create_order",
            "amount_minor": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "notes": dict(notes or {}),
        }
        self.calls.append(call)

        if not self.should_succeed:
            raise GatewayError(self.failure_reason)

        return GatewayOrder(
            gateway_order_id=f"order_fake_{uuid4().hex[:14]}",
            amount_minor=amount_minor,
            currency=currency,
            receipt=receipt,
            notes=dict(notes or {}),
        )

    def verify_payment_signature(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        self.calls.append(
            {
                "method": "verify_payment_signature",
                "gateway_order_id": gateway_order_id,
                "gateway_payment_id": gateway_payment_id,
            }
        )
        expected = self.sign(gateway_order_id, gateway_payment_id)
        return signature_matches(expected, signature)
