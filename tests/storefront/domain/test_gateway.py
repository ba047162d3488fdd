"""Tests for the payment gateway adapters and factory."""

import hashlib
import hmac
import json

import httpx
import pytest
from storefront.errors import GatewayError
from storefront.gateway import gateway_currency, gateway_from_env, get_gateway, reset_gateway
from storefront.gateway.fake_adapter import FakeGateway
from storefront.gateway.port import sign_payment
from storefront.gateway.razorpay_adapter import RazorpayGateway


class TestSignature:
    def test_hmac_over_order_and_payment_ids(self):
        expected = hmac.new(b"secret", b"order_1|pay_1", hashlib.sha256).hexdigest()
        assert sign_payment("secret", "order_1", "pay_1") == expected


class TestFakeGateway:
    def test_create_order_records_call(self):
        gateway = FakeGateway()
        order = gateway.create_order(amount_minor=120000, currency="INR", receipt="riv-1", notes={"userId": "u1"})
        assert order.gateway_order_id.startswith("order_fake_")
        assert order.amount_minor == 120000
        assert gateway.calls[-1]["notes"] == {"userId": "u1"}

    def test_configured_failure(self):
        gateway = FakeGateway()
        gateway.configure(should_succeed=False, failure_reason="Down for maintenance")
        with pytest.raises(GatewayError, match="Down for maintenance"):
            gateway.create_order(amount_minor=100, currency="INR", receipt="riv-1")

    def test_verify_signature(self):
        gateway = FakeGateway(secret="s3cret")
        signature = gateway.sign("order_1", "pay_1")
        assert gateway.verify_payment_signature("order_1", "pay_1", signature) is True
        assert gateway.verify_payment_signature("order_1", "pay_2", signature) is False
        assert gateway.verify_payment_signature("order_1", "pay_1", "") is False
        assert gateway.verify_payment_signature("order_1", "pay_1", None) is False
        assert gateway.verify_payment_signature("order_1", "pay_1", "\u00e9" * 64) is False


class TestRazorpayGateway:
    def _gateway(self, handler):
        return RazorpayGateway(key_id="rzp_test_1", key_secret="secret", transport=httpx.MockTransport(handler))

    def test_create_order(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "id": "order_rzp_1",
                    "amount": 120000,
                    "currency": "INR",
                    "receipt": "riv-1",
                    "status": "created",
                },
            )

        order = self._gateway(handler).create_order(120000, "INR", "riv-1", {"userId": "u1"})

        assert order.gateway_order_id == "order_rzp_1"
        assert seen["url"] == "https://api.razorpay.com/v1/orders"
        assert seen["auth"].startswith("Basic ")
        assert seen["body"] == {"amount": 120000, "currency": "INR", "receipt": "riv-1", "notes": {"userId": "u1"}}

    def test_rejected_order_raises_gateway_error(self):
        gateway = self._gateway(lambda request: httpx.Response(400, json={"error": {"code": "BAD_REQUEST_ERROR"}}))
        with pytest.raises(GatewayError):
            gateway.create_order(100, "INR", "riv-1")

    def test_network_failure_raises_gateway_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GatewayError):
            self._gateway(handler).create_order(100, "INR", "riv-1")

    def test_verify_signature(self):
        gateway = RazorpayGateway(key_id="rzp_test_1", key_secret="secret")
        signature = sign_payment("secret", "order_1", "pay_1")
        assert gateway.verify_payment_signature("order_1", "pay_1", signature) is True
        assert gateway.verify_payment_signature("order_1", "pay_1", sign_payment("other", "order_1", "pay_1")) is False

    def test_non_ascii_signature_is_a_mismatch(self):
        gateway = RazorpayGateway(key_id="rzp_test_1", key_secret="secret")
        assert gateway.verify_payment_signature("order_1", "pay_1", "\u00e9" * 64) is False

    def test_requires_credentials(self):
        with pytest.raises(GatewayError):
            RazorpayGateway(key_id="", key_secret="")

    def test_public_key(self):
        assert RazorpayGateway(key_id="rzp_live_1", key_secret="x").public_key == "rzp_live_1"

    def test_provider_name(self):
        assert RazorpayGateway(key_id="rzp_live_1", key_secret="x").name == "razorpay"


class TestGatewayFactory:
    def test_fake_by_default(self, monkeypatch):
        monkeypatch.delenv("PAYMENT_GATEWAY", raising=False)
        assert isinstance(gateway_from_env(), FakeGateway)

    def test_razorpay_from_env(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_GATEWAY", "razorpay")
        monkeypatch.setenv("RAZORPAY_KEY_ID", "rzp_test_1")
        monkeypatch.setenv("RAZORPAY_KEY_SECRET", "secret")
        assert isinstance(gateway_from_env(), RazorpayGateway)

    def test_unknown_gateway(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_GATEWAY", "paypal")
        with pytest.raises(ValueError):
            gateway_from_env()

    def test_get_gateway_is_cached_until_reset(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_GATEWAY", "fake")
        reset_gateway()
        first = get_gateway()
        assert get_gateway() is first
        reset_gateway()
        assert get_gateway() is not first

    def test_currency_defaults_to_inr(self, monkeypatch):
        monkeypatch.delenv("PAYMENT_CURRENCY", raising=False)
        assert gateway_currency() == "INR"
