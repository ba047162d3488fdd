"""Order reads — owner/admin detail, public tracking lookup, user history."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.errors import Forbidden, NotFound
from storefront.order.order import Order, generate_tracking_number


def load_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise NotFound("Order", str(order_id)) from exc


def find_by_tracking_number(tracking_number: str) -> Order | None:
    normalized = (tracking_number or "").strip().upper()
    if not normalized:
        return None
    results = current_domain.repository_for(Order)._dao.query.filter(tracking_number=normalized).all().items
    return results[0] if results else None


def tracking_number_taken(tracking_number: str) -> bool:
    return find_by_tracking_number(tracking_number) is not None


def unique_tracking_number(on=None, attempts: int = 20) -> str:
    for _ in range(attempts):
        candidate = generate_tracking_number(on)
        if not tracking_number_taken(candidate):
            return candidate
    raise RuntimeError("Could not allocate a unique tracking number")


def get_by_tracking_number(tracking_number: str) -> dict:
    """Public tracking view. Never exposes payment details or street lines."""
    order = find_by_tracking_number(tracking_number)
    if order is None:
        raise NotFound("Tracking information", tracking_number)
    return order.to_public()


def get_by_order_id(order_id, requester_id, is_admin: bool = False) -> dict:
    """Full order detail for its owner or an admin."""
    order = load_order(order_id)
    if not is_admin and str(order.user_id) != str(requester_id):
        raise Forbidden("You do not have access to this order")
    return order.to_detail()


def list_for_user(user_id) -> list[dict]:
    """The user's orders, newest first."""
    orders = (
        current_domain.repository_for(Order)
        ._dao.query.filter(user_id=str(user_id))
        .order_by("-created_at")
        .limit(None)
        .all()
        .items
    )
    return [order.to_detail() for order in orders]


def all_orders() -> list[Order]:
    return current_domain.repository_for(Order)._dao.query.limit(None).all().items
