"""Domain tests for the PaymentRecord aggregate."""

import pytest
from protean.exceptions import ValidationError
from storefront.checkout.pricing import PricedLine, PricingBreakdown
from storefront.gateway.port import GatewayOrder
from storefront.payment.events import PaymentCaptured, PaymentFailed
from storefront.payment.payment import INSUFFICIENT_STOCK_AFTER_CAPTURE, PaymentRecord, PaymentStatus


def _record():
    pricing = PricingBreakdown(
        lines=[
            PricedLine(
                product_id="prod-001",
                name="Linen Shirt",
                color="Red",
                size="M",
                quantity=2,
                unit_price=500.0,
                line_total=1000.0,
            )
        ],
        subtotal=1000.0,
        discount=100.0,
        shipping=200.0,
        total=1100.0,
        coupon={"code": "SAVE10", "discount_percent": 10, "min_order_value": 500.0},
    )
    gateway_order = GatewayOrder(
        gateway_order_id="order_001",
        amount_minor=110000,
        currency="INR",
        receipt="riv-1",
    )
    return PaymentRecord.create(
        user_id="user-001",
        provider="razorpay",
        gateway_order=gateway_order,
        pricing=pricing,
        shipping_address={"name": "Asha Rao", "email": "asha@example.com", "phone": "1"},
    )


class TestPaymentRecord:
    def test_created_snapshot(self):
        record = _record()
        assert record.status == PaymentStatus.CREATED.value
        assert record.amount == 1100.0
        assert record.amount_minor == 110000
        assert record.lines[0]["variant"] == {"color": "Red", "size": "M"}
        assert record.coupon == {"code": "SAVE10", "discount_percent": 10}
        assert record.pricing == {"subtotal": 1000.0, "discount": 100.0, "shipping": 200.0, "total": 1100.0}

    def test_mark_paid(self):
        record = _record()
        record.mark_paid(order_id="ord-1", gateway_payment_id="pay_1", signature="sig", method="card")
        assert record.is_paid
        assert record.order_id == "ord-1"
        assert isinstance(record._events[-1], PaymentCaptured)

    def test_mark_failed(self):
        record = _record()
        record.mark_failed(INSUFFICIENT_STOCK_AFTER_CAPTURE, gateway_payment_id="pay_1")
        assert record.is_failed
        assert record.failure_reason == INSUFFICIENT_STOCK_AFTER_CAPTURE
        assert isinstance(record._events[-1], PaymentFailed)

    def test_paid_is_terminal(self):
        record = _record()
        record.mark_paid(order_id="ord-1", gateway_payment_id="pay_1", signature="sig")
        with pytest.raises(ValidationError):
            record.mark_failed("late failure")
        with pytest.raises(ValidationError):
            record.mark_paid(order_id="ord-2", gateway_payment_id="pay_2", signature="sig")

    def test_failed_is_terminal(self):
        record = _record()
        record.mark_failed("signature_mismatch")
        with pytest.raises(ValidationError):
            record.mark_paid(order_id="ord-1", gateway_payment_id="pay_1", signature="sig")
