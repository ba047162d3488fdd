"""PaymentRecord reads."""

from protean.utils.globals import current_domain

from storefront.payment.payment import INSUFFICIENT_STOCK_AFTER_CAPTURE, PaymentRecord, PaymentStatus


def find_by_gateway_order_id(gateway_order_id: str) -> PaymentRecord | None:
    results = (
        current_domain.repository_for(PaymentRecord)._dao.query.filter(gateway_order_id=gateway_order_id).all().items
    )
    return results[0] if results else None


def pending_reconciliation() -> list[dict]:
    """Payments captured by the gateway that could not become orders.

    These need a manual refund or fulfilment decision.
    """
    records = (
        current_domain.repository_for(PaymentRecord)
        ._dao.query.filter(
            status=PaymentStatus.FAILED.value,
            failure_reason=INSUFFICIENT_STOCK_AFTER_CAPTURE,
        )
        .order_by("-failed_at")
        .limit(None)
        .all()
        .items
    )
    return [record.to_summary() for record in records]
