"""Storefront log event processors."""

from storefront.utils.logging import REDACTED, add_service_name, redact_payment_secrets


class TestRedactPaymentSecrets:
    def test_masks_signature_and_secret(self):
        event = redact_payment_secrets(
            None,
            "warning",
            {"event": "Payment signature mismatch", "gateway_signature": "ab12" * 16, "secret": "test-secret"},
        )

        assert event["gateway_signature"] == REDACTED
        assert event["secret"] == REDACTED
        assert event["event"] == "Payment signature mismatch"

    def test_leaves_identifiers_alone(self):
        event = redact_payment_secrets(
            None, "info", {"gateway_order_id": "order_1", "gateway_payment_id": "pay_1", "signature": None}
        )

        assert event == {"gateway_order_id": "order_1", "gateway_payment_id": "pay_1", "signature": None}


class TestAddServiceName:
    def test_defaults_to_storefront(self, monkeypatch):
        monkeypatch.delenv("SERVICE_NAME", raising=False)
        assert add_service_name(None, "info", {"event": "x"})["service"] == "storefront"

    def test_keeps_explicit_service(self):
        assert add_service_name(None, "info", {"service": "payments"})["service"] == "payments"
