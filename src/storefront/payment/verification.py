"""Payment verification and order finalization.

``finalize_payment()`` is the entry point. It checks the gateway signature,
then processes ``FinalizePayment``, whose handler claims the payment,
commits stock, creates the order, marks the payment paid and clears the
cart in one unit of work: if any step raises, none of it is saved.

Failures that must survive that rollback (a bad signature, stock that ran
out after the customer was charged) are recorded afterwards through a
separate ``FailPayment`` command.
"""

from collections import defaultdict

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.items import clear_cart
from storefront.catalogue.lookup import check_stock
from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.errors import Forbidden, InsufficientStock, NotFound, PaymentClosed, SignatureInvalid
from storefront.gateway import get_gateway
from storefront.order.order import Order
from storefront.order.queries import load_order, unique_tracking_number
from storefront.payment.payment import (
    INSUFFICIENT_STOCK_AFTER_CAPTURE,
    SIGNATURE_MISMATCH,
    PaymentRecord,
    PaymentStatus,
)
from storefront.payment.queries import find_by_gateway_order_id

logger = structlog.get_logger(__name__)

# Attempts at the finalization unit of work when a concurrent writer wins
MAX_FINALIZE_ATTEMPTS = 2


@storefront.command(part_of="PaymentRecord")
class FinalizePayment:
    user_id = Identifier(required=True)
    gateway_order_id = String(required=True, max_length=255)
    gateway_payment_id = String(required=True, max_length=255)
    gateway_signature = String(required=True, max_length=255)
    method = String(max_length=50)


@storefront.command(part_of="PaymentRecord")
class FailPayment:
    gateway_order_id = String(required=True, max_length=255)
    reason = String(required=True, max_length=255)
    user_id = Identifier()
    gateway_payment_id = String(max_length=255)
    gateway_signature = String(max_length=255)


def _order_reference(order: Order, replayed: bool) -> dict:
    return {
        "order_id": str(order.id),
        "tracking_number": order.tracking_number,
        "status": order.status,
        "payment_status": PaymentStatus.PAID.value,
        "total": order.pricing.total if order.pricing else None,
        "replayed": replayed,
    }


def _commit_stock(lines) -> None:
    """Decrement stock for every line, saving each product once."""
    quantities = defaultdict(list)
    for line in lines:
        quantities[str(line["product_id"])].append(line)

    repo = current_domain.repository_for(Product)
    for product_id, product_lines in quantities.items():
        product = repo.get(product_id)
        for line in product_lines:
            product.decrement_stock(
                color=line["variant"]["color"],
                size=line["variant"]["size"],
                quantity=int(line["quantity"]),
            )
        repo.add(product)


@storefront.command_handler(part_of=PaymentRecord)
class PaymentVerificationHandler:
    @handle(FinalizePayment)
    def finalize(self, command):
        record = find_by_gateway_order_id(command.gateway_order_id)
        if record is None:
            raise NotFound("Payment", command.gateway_order_id)

        if str(record.user_id) != str(command.user_id):
            raise Forbidden("This payment belongs to another user")

        if record.is_paid:
            return _order_reference(load_order(record.order_id), replayed=True)
        if record.is_failed:
            raise PaymentClosed(record.gateway_order_id, record.status)

        lines = record.lines
        shortages = check_stock(lines)
        if shortages:
            raise InsufficientStock(shortages)

        _commit_stock(lines)

        order = Order.place(
            user_id=record.user_id,
            lines=lines,
            shipping_address=record.address,
            pricing=record.pricing,
            payment={
                "provider": record.provider,
                "status": PaymentStatus.PAID.value,
                "amount": record.amount,
                "currency": record.currency,
                "gateway_order_id": record.gateway_order_id,
                "gateway_payment_id": command.gateway_payment_id,
                "method": command.method,
            },
            coupon=record.coupon,
            tracking_number=unique_tracking_number(),
        )
        current_domain.repository_for(Order).add(order)

        record.mark_paid(
            order_id=str(order.id),
            gateway_payment_id=command.gateway_payment_id,
            signature=command.gateway_signature,
            method=command.method,
        )
        current_domain.repository_for(PaymentRecord).add(record)

        clear_cart(record.user_id)

        return _order_reference(order, replayed=False)

    @handle(FailPayment)
    def fail(self, command):
        """Mark a still-open payment failed. Settled payments are left alone."""
        record = find_by_gateway_order_id(command.gateway_order_id)
        if record is None or record.status != PaymentStatus.CREATED.value:
            return None
        if command.user_id and str(record.user_id) != str(command.user_id):
            return None

        record.mark_failed(
            reason=command.reason,
            gateway_payment_id=command.gateway_payment_id,
            signature=command.gateway_signature,
        )
        current_domain.repository_for(PaymentRecord).add(record)
        return record.status


def _record_failure(user_id, gateway_order_id, reason, gateway_payment_id=None, signature=None):
    current_domain.process(
        FailPayment(
            gateway_order_id=gateway_order_id,
            reason=reason,
            user_id=user_id,
            gateway_payment_id=gateway_payment_id,
            gateway_signature=signature,
        ),
        asynchronous=False,
    )


def finalize_payment(user_id, gateway_order_id, gateway_payment_id, gateway_signature, method=None) -> dict:
    """Verify a gateway payment and turn it into an order.

    Returns an order reference. Verifying an already paid payment again
    returns the same order with ``replayed`` set.
    """
    log = logger.bind(user_id=str(user_id), gateway_order_id=gateway_order_id)

    gateway = get_gateway()
    if not gateway.verify_payment_signature(gateway_order_id, gateway_payment_id, gateway_signature or ""):
        log.warning("Payment signature mismatch", gateway_payment_id=gateway_payment_id)
        _record_failure(user_id, gateway_order_id, SIGNATURE_MISMATCH, gateway_payment_id, gateway_signature)
        raise SignatureInvalid()

    command = FinalizePayment(
        user_id=user_id,
        gateway_order_id=gateway_order_id,
        gateway_payment_id=gateway_payment_id,
        gateway_signature=gateway_signature,
        method=method,
    )

    for attempt in range(1, MAX_FINALIZE_ATTEMPTS + 1):
        try:
            result = current_domain.process(command, asynchronous=False)
        except InsufficientStock as exc:
            log.warning(
                "Stock ran out after payment capture, queued for reconciliation",
                gateway_payment_id=gateway_payment_id,
                shortages=[shortage.to_dict() for shortage in exc.shortages],
            )
            _record_failure(
                user_id,
                gateway_order_id,
                INSUFFICIENT_STOCK_AFTER_CAPTURE,
                gateway_payment_id,
                gateway_signature,
            )
            raise
        except ExpectedVersionError:
            if attempt == MAX_FINALIZE_ATTEMPTS:
                log.error("Payment finalization lost a concurrent update", attempts=attempt)
                raise
            log.info("Concurrent update during payment finalization, retrying", attempt=attempt)
            continue

        if result["replayed"]:
            log.info("Payment already finalized", order_id=result["order_id"])
        else:
            log.info(
                "Payment verified and order placed",
                order_id=result["order_id"],
                tracking_number=result["tracking_number"],
                total=result["total"],
            )
        return result
