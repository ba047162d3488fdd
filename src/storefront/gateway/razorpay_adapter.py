"""Razorpay payment gateway adapter.

Orders are created over Razorpay's REST API with HTTP basic auth (key id and
secret). Payment signatures are verified locally: Razorpay signs
``"{order_id}|{payment_id}"`` with the key secret using HMAC-SHA256.
"""

import httpx
import structlog

from storefront.errors import GatewayError
from storefront.gateway.port import GatewayOrder, PaymentGateway, sign_payment, signature_matches

logger = structlog.get_logger(__name__)

RAZORPAY_API_BASE = "https://api.razorpay.com/v1"


class RazorpayGateway(PaymentGateway):
    """Production Razorpay gateway adapter."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = RAZORPAY_API_BASE,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not key_id or not key_secret:
            raise GatewayError("Razorpay key id and key secret are required")
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def name(self) -> str:
        return "razorpay"

    @property
    def public_key(self) -> str:
        return self.key_id

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            auth=(self.key_id, self.key_secret),
            timeout=self.timeout,
            transport=self.transport,
        )

    def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: dict | None = None,
    ) -> GatewayOrder:
        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "notes": dict(notes or {}),
        }

        try:
            with self._client() as client:
                response = client.post("/orders", json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Razorpay rejected order creation",
                status_code=exc.response.status_code,
                receipt=receipt,
            )
            raise GatewayError(f"Payment gateway rejected the order ({exc.response.status_code})") from exc
        except httpx.HTTPError as exc:
            logger.error("Razorpay request failed", error=str(exc), receipt=receipt)
            raise GatewayError("Payment gateway is unreachable") from exc

        body = response.json()
        return GatewayOrder(
            gateway_order_id=body["id"],
            amount_minor=int(body.get("amount", amount_minor)),
            currency=body.get("currency", currency),
            receipt=body.get("receipt", receipt),
            status=body.get("status", "created"),
            notes=body.get("notes") or {},
        )

    def verify_payment_signature(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        expected = sign_payment(self.key_secret, gateway_order_id, gateway_payment_id)
        return signature_matches(expected, signature)
