"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A paid checkout produced an order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    tracking_number = String(required=True)
    item_count = Integer(required=True)
    total = Float(required=True)
    gateway_order_id = String()
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    """A tracking event moved the order to a new status."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    tracking_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    message = String()
    updated_by = String()
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class TrackingDetailsUpdated:
    __version__ = "v1"

    order_id = Identifier(required=True)
    carrier = String()
    tracking_id = String()
    notes = String()
    updated_by = String()
