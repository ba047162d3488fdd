"""Opening gateway orders for a checkout."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.errors import GatewayError, InsufficientStock
from storefront.payment.payment import PaymentRecord
from storefront.payment.queries import find_by_gateway_order_id


def payment_records():
    return current_domain.repository_for(PaymentRecord)._dao.query.all().items


class TestInitiatePaymentOrder:
    def test_returns_gateway_order_and_pricing(self, store, shirt, gateway):
        result = store.initiate("user-001", [store.line(shirt, quantity=2)])

        assert result["gateway_order_id"].startswith("order_fake_")
        assert result["amount"] == 1200.0
        assert result["amount_minor"] == 120000
        assert result["currency"] == "INR"
        assert result["key"] == "rzp_test_key"
        assert result["pricing"]["shipping"] == 200.0

    def test_gateway_called_in_minor_units(self, store, shirt, gateway):
        store.initiate("user-001", [store.line(shirt, quantity=2)])

        call = gateway.calls[-1]
        assert call["method"] == "create_order"
        assert call["amount_minor"] == 120000
        assert call["receipt"].startswith("riv-")
        assert call["notes"] == {"userId": "user-001", "email": "asha@example.com"}

    def test_record_persisted_in_created_state(self, store, shirt, save10):
        result = store.initiate("user-001", [store.line(shirt, quantity=2)], coupon_code="SAVE10")

        record = find_by_gateway_order_id(result["gateway_order_id"])
        assert record.status == "created"
        assert record.provider == "fake"
        assert record.amount == 1100.0
        assert record.amount_minor == 110000
        assert record.discount == 100.0
        assert record.coupon_code == "SAVE10"
        assert record.lines[0]["price"] == 500.0
        assert record.address["city"] == "Bengaluru"

    def test_stock_is_not_reserved(self, store, shirt):
        from storefront.catalogue.lookup import find_variant

        store.initiate("user-001", [store.line(shirt, quantity=5)])
        assert find_variant(shirt, "Red", "M") == 5

    def test_currency_from_environment(self, store, shirt, monkeypatch):
        monkeypatch.setenv("PAYMENT_CURRENCY", "USD")
        assert store.initiate("user-001", [store.line(shirt)])["currency"] == "USD"


class TestInitiationFailures:
    def test_gateway_failure_persists_nothing(self, store, shirt, gateway):
        gateway.configure(should_succeed=False, failure_reason="Gateway timeout")

        with pytest.raises(GatewayError):
            store.initiate("user-001", [store.line(shirt)])
        assert payment_records() == []

    def test_stock_failure_never_reaches_gateway(self, store, shirt, gateway):
        with pytest.raises(InsufficientStock):
            store.initiate("user-001", [store.line(shirt, quantity=6)])

        assert gateway.calls == []
        assert payment_records() == []

    def test_missing_contact_details(self, store, shirt, gateway):
        address = dict(store.shipping_address, email="")
        with pytest.raises(ValidationError):
            store.initiate("user-001", [store.line(shirt)], shipping_address=address)
        assert gateway.calls == []


class TestDuplicateLines:
    def test_duplicate_lines_for_last_unit_are_rejected_before_gateway(self, store, gateway):
        product = store.add_product(name="Limited Print", price=800.0, variants=(("Black", "L", 1),))
        line = store.line(product, color="Black", size="L")

        with pytest.raises(InsufficientStock) as exc:
            store.initiate("user-001", [line, line])

        assert exc.value.shortages[0].requested == 2
        assert exc.value.shortages[0].available == 1
        assert gateway.calls == []
        assert payment_records() == []

    def test_duplicate_lines_are_merged_into_one(self, store, shirt):
        result = store.initiate("user-001", [store.line(shirt, quantity=1), store.line(shirt, quantity=2)])

        assert result["amount"] == 1500.0
        record = find_by_gateway_order_id(result["gateway_order_id"])
        assert [line["quantity"] for line in record.lines] == [3]
