"""Payment order initiation — command and handler.

Prices the cart from live catalogue data, opens a gateway order for the
total and records it. Nothing is persisted unless every check passes and
the gateway accepted the order.
"""

import json
import time

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.checkout.pricing import price_order, to_minor_units
from storefront.domain import storefront
from storefront.gateway import gateway_currency, get_gateway
from storefront.order.order import build_shipping_address
from storefront.payment.payment import PaymentRecord

logger = structlog.get_logger(__name__)


@storefront.command(part_of="PaymentRecord")
class InitiatePaymentOrder:
    """Open a gateway order for the requester's cart."""

    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, variant: {color, size}, quantity}
    coupon_code = String(max_length=50)
    shipping_address = Text(required=True)  # JSON


def _loads(value):
    return json.loads(value) if isinstance(value, str) else value


def make_receipt() -> str:
    return f"riv-{int(time.time() * 1000)}"


@storefront.command_handler(part_of=PaymentRecord)
class InitiatePaymentHandler:
    @handle(InitiatePaymentOrder)
    def initiate_payment_order(self, command):
        shipping_address = _loads(command.shipping_address) or {}
        address = build_shipping_address(shipping_address)

        pricing = price_order(_loads(command.items), coupon_code=command.coupon_code)

        gateway = get_gateway()
        currency = gateway_currency()
        gateway_order = gateway.create_order(
            amount_minor=to_minor_units(pricing.total),
            currency=currency,
            receipt=make_receipt(),
            notes={"userId": str(command.user_id), "email": address.email},
        )

        record = PaymentRecord.create(
            user_id=command.user_id,
            provider=gateway.name,
            gateway_order=gateway_order,
            pricing=pricing,
            shipping_address=address.to_dict(),
        )
        current_domain.repository_for(PaymentRecord).add(record)

        logger.info(
            "Payment order created",
            user_id=str(command.user_id),
            gateway_order_id=gateway_order.gateway_order_id,
            amount=pricing.total,
            currency=currency,
        )

        return {
            "gateway_order_id": gateway_order.gateway_order_id,
            "amount": pricing.total,
            "amount_minor": gateway_order.amount_minor,
            "currency": gateway_order.currency,
            "key": gateway.public_key,
            "pricing": pricing.to_dict(),
        }
