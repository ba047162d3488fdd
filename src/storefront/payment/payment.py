"""PaymentRecord aggregate (CQRS) — one gateway order and its outcome.

A record is created in CREATED when a gateway order is opened and moves
exactly once, to PAID or FAILED. It also keeps the priced cart, coupon and
shipping address that the charged amount was computed from, so finalization
never has to trust what the client sends back.

State Machine:
    CREATED → PAID
    CREATED → FAILED
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.payment.events import PaymentCaptured, PaymentFailed, PaymentOrderCreated


class PaymentStatus(Enum):
    CREATED = "created"
    PAID = "paid"
    FAILED = "failed"


# State machine transition map
_VALID_TRANSITIONS = {
    PaymentStatus.CREATED: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.PAID: set(),  # Terminal
    PaymentStatus.FAILED: set(),  # Terminal
}

# Failure reasons
SIGNATURE_MISMATCH = "signature_mismatch"
INSUFFICIENT_STOCK_AFTER_CAPTURE = "insufficient_stock_after_capture"


@storefront.aggregate
class PaymentRecord:
    user_id = Identifier(required=True)
    order_id = Identifier()
    provider = String(required=True, max_length=50)
    status = String(choices=PaymentStatus, default=PaymentStatus.CREATED.value)
    amount = Float(required=True, min_value=0.01)
    amount_minor = Integer(required=True)
    currency = String(max_length=3, default="INR")
    receipt = String(max_length=100)
    gateway_order_id = String(required=True, max_length=255, unique=True)
    gateway_payment_id = String(max_length=255)
    gateway_signature = String(max_length=255)
    method = String(max_length=50)
    failure_reason = String(max_length=255)

    # What the amount was computed from
    subtotal = Float(default=0.0)
    discount = Float(default=0.0)
    shipping = Float(default=0.0)
    coupon_code = String(max_length=50)
    coupon_discount_percent = Integer()
    items = Text()  # JSON: priced lines
    shipping_address = Text()  # JSON

    created_at = DateTime()
    updated_at = DateTime()
    paid_at = DateTime()
    failed_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id, provider, gateway_order, pricing, shipping_address: dict):
        """Record a freshly created gateway order.

        ``gateway_order`` is a ``GatewayOrder``; ``pricing`` a ``PricingBreakdown``.
        """
        now = datetime.now(UTC)
        record = cls(
            user_id=user_id,
            provider=provider,
            status=PaymentStatus.CREATED.value,
            amount=pricing.total,
            amount_minor=gateway_order.amount_minor,
            currency=gateway_order.currency,
            receipt=gateway_order.receipt,
            gateway_order_id=gateway_order.gateway_order_id,
            subtotal=pricing.subtotal,
            discount=pricing.discount,
            shipping=pricing.shipping,
            coupon_code=pricing.coupon["code"] if pricing.coupon else None,
            coupon_discount_percent=pricing.coupon["discount_percent"] if pricing.coupon else None,
            items=json.dumps([line.to_dict() for line in pricing.lines]),
            shipping_address=json.dumps(shipping_address),
            created_at=now,
            updated_at=now,
        )
        record.raise_(
            PaymentOrderCreated(
                payment_record_id=str(record.id),
                user_id=str(user_id),
                gateway_order_id=record.gateway_order_id,
                amount=record.amount,
                currency=record.currency,
                created_at=now,
            )
        )
        return record

    # -------------------------------------------------------------------
    # Stored checkout snapshot
    # -------------------------------------------------------------------
    @property
    def lines(self) -> list[dict]:
        return json.loads(self.items) if self.items else []

    @property
    def address(self) -> dict:
        return json.loads(self.shipping_address) if self.shipping_address else {}

    @property
    def coupon(self) -> dict | None:
        if not self.coupon_code:
            return None
        return {"code": self.coupon_code, "discount_percent": self.coupon_discount_percent}

    @property
    def pricing(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "discount": self.discount,
            "shipping": self.shipping,
            "total": self.amount,
        }

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.PAID.value

    @property
    def is_failed(self) -> bool:
        return self.status == PaymentStatus.FAILED.value

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: PaymentStatus) -> None:
        current = PaymentStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def mark_paid(self, order_id, gateway_payment_id, signature, method=None):
        self._assert_can_transition(PaymentStatus.PAID)

        now = datetime.now(UTC)
        self.status = PaymentStatus.PAID.value
        self.order_id = order_id
        self.gateway_payment_id = gateway_payment_id
        self.gateway_signature = signature
        self.method = method
        self.paid_at = now
        self.updated_at = now

        self.raise_(
            PaymentCaptured(
                payment_record_id=str(self.id),
                gateway_order_id=self.gateway_order_id,
                gateway_payment_id=gateway_payment_id,
                order_id=str(order_id),
                amount=self.amount,
                paid_at=now,
            )
        )

    def mark_failed(self, reason, gateway_payment_id=None, signature=None):
        self._assert_can_transition(PaymentStatus.FAILED)

        now = datetime.now(UTC)
        self.status = PaymentStatus.FAILED.value
        self.failure_reason = reason
        self.gateway_payment_id = gateway_payment_id or self.gateway_payment_id
        self.gateway_signature = signature or self.gateway_signature
        self.failed_at = now
        self.updated_at = now

        self.raise_(
            PaymentFailed(
                payment_record_id=str(self.id),
                gateway_order_id=self.gateway_order_id,
                gateway_payment_id=gateway_payment_id,
                reason=reason,
                failed_at=now,
            )
        )

    def to_summary(self) -> dict:
        return {
            "payment_record_id": str(self.id),
            "user_id": str(self.user_id),
            "order_id": str(self.order_id) if self.order_id else None,
            "provider": self.provider,
            "status": self.status,
            "amount": self.amount,
            "currency": self.currency,
            "gateway_order_id": self.gateway_order_id,
            "gateway_payment_id": self.gateway_payment_id,
            "failure_reason": self.failure_reason,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "failed_at": self.failed_at.isoformat() if self.failed_at else None,
        }
