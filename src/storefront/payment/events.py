"""Domain events for the PaymentRecord aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="PaymentRecord")
class PaymentOrderCreated:
    """A gateway order was created and is awaiting the customer's payment."""

    __version__ = "v1"

    payment_record_id = Identifier(required=True)
    user_id = Identifier(required=True)
    gateway_order_id = String(required=True)
    amount = Float(required=True)
    currency = String(required=True)
    created_at = DateTime(required=True)


@storefront.event(part_of="PaymentRecord")
class PaymentCaptured:
    __version__ = "v1"

    payment_record_id = Identifier(required=True)
    gateway_order_id = String(required=True)
    gateway_payment_id = String(required=True)
    order_id = Identifier(required=True)
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@storefront.event(part_of="PaymentRecord")
class PaymentFailed:
    __version__ = "v1"

    payment_record_id = Identifier(required=True)
    gateway_order_id = String(required=True)
    gateway_payment_id = String()
    reason = String(required=True)
    failed_at = DateTime(required=True)
