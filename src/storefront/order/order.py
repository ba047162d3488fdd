"""Order aggregate (CQRS) — a paid checkout and its delivery tracking.

Items, prices, payment and shipping address are fixed when the order is
placed. Afterwards only the status, the carrier details and the append-only
tracking history change.

Tracking state machine:
    PLACED → PROCESSING → SHIPPED → OUT_FOR_DELIVERY → DELIVERED
    CANCELLED from any state except DELIVERED
    DELIVERED and CANCELLED are terminal
"""

import random
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.errors import InvalidTransition
from storefront.order.events import OrderPlaced, OrderStatusChanged, TrackingDetailsUpdated


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class TrackingStatus(Enum):
    PLACED = "placed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# State machine transition map
_VALID_TRANSITIONS = {
    TrackingStatus.PLACED: {TrackingStatus.PROCESSING, TrackingStatus.CANCELLED},
    TrackingStatus.PROCESSING: {TrackingStatus.SHIPPED, TrackingStatus.CANCELLED},
    TrackingStatus.SHIPPED: {TrackingStatus.OUT_FOR_DELIVERY, TrackingStatus.CANCELLED},
    TrackingStatus.OUT_FOR_DELIVERY: {TrackingStatus.DELIVERED, TrackingStatus.CANCELLED},
    TrackingStatus.DELIVERED: set(),  # Terminal
    TrackingStatus.CANCELLED: set(),  # Terminal
}

INITIAL_TRACKING_MESSAGE = "Your order has been placed and is being prepared."

DEFAULT_STATUS_MESSAGES = {
    TrackingStatus.PLACED: INITIAL_TRACKING_MESSAGE,
    TrackingStatus.PROCESSING: "Your order is being processed and will be shipped soon.",
    TrackingStatus.SHIPPED: "Your order has been shipped and is on the way.",
    TrackingStatus.OUT_FOR_DELIVERY: "Your order is out for delivery and will reach you soon.",
    TrackingStatus.DELIVERED: "Your order has been delivered successfully.",
    TrackingStatus.CANCELLED: "Your order has been cancelled.",
}
FALLBACK_STATUS_MESSAGE = "Order status updated."


def default_message(status) -> str:
    try:
        return DEFAULT_STATUS_MESSAGES[TrackingStatus(status)]
    except ValueError:
        return FALLBACK_STATUS_MESSAGE


def generate_tracking_number(on=None) -> str:
    """Return a tracking number of the form ``RIV-YYYYMMDD-NNNN``."""
    on = on or datetime.now(UTC)
    return f"RIV-{on.strftime('%Y%m%d')}-{random.randint(1000, 9999)}"


def can_transition(current, target) -> bool:
    return TrackingStatus(target) in _VALID_TRANSITIONS.get(TrackingStatus(current), set())


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ShippingAddress:
    """Where the order ships, captured at checkout.

    Name, email and phone are mandatory; the postal lines are optional.
    """

    name = String(required=True, max_length=255)
    email = String(required=True, max_length=255)
    phone = String(required=True, max_length=30)
    address_line1 = String(max_length=255)
    address_line2 = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=100)

    def public_view(self) -> dict:
        """The coarse location that may be shown to anyone holding the tracking number."""
        return {
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
        }


ADDRESS_FIELDS = (
    "name",
    "email",
    "phone",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "postal_code",
    "country",
)


def build_shipping_address(data: dict) -> ShippingAddress:
    """Build a ShippingAddress from a request mapping, ignoring unknown keys.

    Raises ``ValidationError`` when name, email or phone is missing.
    """
    return ShippingAddress(**{key: data[key] for key in ADDRESS_FIELDS if data.get(key) not in (None, "")})


@storefront.value_object(part_of="Order")
class TrackingInfo:
    carrier = String(max_length=100)
    tracking_id = String(max_length=255)
    notes = Text()


@storefront.value_object(part_of="Order")
class PaymentDetails:
    """Snapshot of the captured payment."""

    provider = String(max_length=50)
    status = String(max_length=20)
    amount = Float(default=0.0)
    currency = String(max_length=3, default="INR")
    gateway_order_id = String(max_length=255)
    gateway_payment_id = String(max_length=255)
    method = String(max_length=50)


@storefront.value_object(part_of="Order")
class AppliedCoupon:
    code = String(max_length=50)
    discount_percent = Integer(default=0)


@storefront.value_object(part_of="Order")
class OrderPricing:
    subtotal = Float(default=0.0)
    discount = Float(default=0.0)
    shipping = Float(default=0.0)
    total = Float(default=0.0)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    color = String(required=True, max_length=50)
    size = String(required=True, max_length=20)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)
    image = String(max_length=1024)

    def to_view(self) -> dict:
        return {
            "product_id": str(self.product_id),
            "name": self.name,
            "variant": {"color": self.color, "size": self.size},
            "quantity": self.quantity,
            "price": self.price,
            "image": self.image,
        }


@storefront.entity(part_of="Order")
class TrackingEvent:
    """One entry in the order's append-only tracking history."""

    sequence = Integer(required=True, min_value=0)
    status = String(required=True, choices=TrackingStatus)
    timestamp = DateTime(required=True)
    message = String(max_length=500)
    updated_by = String(max_length=255)

    def to_view(self) -> dict:
        return {
            "status": self.status,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "message": self.message,
            "updated_by": self.updated_by,
        }


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    user_id = Identifier(required=True)
    status = String(choices=TrackingStatus, default=TrackingStatus.PLACED.value)
    tracking_number = String(max_length=50)
    items = HasMany(OrderItem)
    tracking_events = HasMany(TrackingEvent)
    shipping_address = ValueObject(ShippingAddress)
    tracking = ValueObject(TrackingInfo)
    payment = ValueObject(PaymentDetails)
    coupon = ValueObject(AppliedCoupon)
    pricing = ValueObject(OrderPricing)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        user_id,
        lines,
        shipping_address: dict,
        pricing: dict,
        payment: dict,
        coupon: dict | None = None,
        tracking_number: str | None = None,
    ):
        """Create a placed order with its initial tracking event.

        ``lines`` are priced line dicts (product_id, name, variant, quantity,
        price, image).
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        order = cls(
            user_id=user_id,
            status=TrackingStatus.PLACED.value,
            tracking_number=tracking_number or generate_tracking_number(now),
            shipping_address=build_shipping_address(shipping_address),
            tracking=TrackingInfo(),
            payment=PaymentDetails(**payment),
            coupon=AppliedCoupon(code=coupon["code"], discount_percent=coupon["discount_percent"]) if coupon else None,
            pricing=OrderPricing(
                subtotal=pricing["subtotal"],
                discount=pricing["discount"],
                shipping=pricing["shipping"],
                total=pricing["total"],
            ),
            created_at=now,
            updated_at=now,
        )
        for line in lines:
            order.add_items(
                OrderItem(
                    product_id=line["product_id"],
                    name=line["name"],
                    color=line["variant"]["color"],
                    size=line["variant"]["size"],
                    quantity=line["quantity"],
                    price=line["price"],
                    image=line.get("image") or None,
                )
            )
        order.add_tracking_events(
            TrackingEvent(
                sequence=0,
                status=TrackingStatus.PLACED.value,
                timestamp=now,
                message=INITIAL_TRACKING_MESSAGE,
            )
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                tracking_number=order.tracking_number,
                item_count=sum(line["quantity"] for line in lines),
                total=order.pricing.total,
                gateway_order_id=order.payment.gateway_order_id,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Tracking history
    # -------------------------------------------------------------------
    def history(self) -> list:
        """Tracking events in the order they were appended."""
        return sorted(self.tracking_events, key=lambda event: event.sequence)

    def _next_sequence(self) -> int:
        return max((event.sequence for event in self.tracking_events), default=-1) + 1

    def _assert_can_transition(self, target_status: TrackingStatus) -> None:
        current = TrackingStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition(current.value, target_status.value)

    def append_status(
        self,
        status,
        message=None,
        updated_by=None,
        carrier=None,
        tracking_id=None,
        notes=None,
    ):
        """Append a tracking event and move the order to ``status``.

        Moving into SHIPPED needs the carrier and tracking id in the same call.
        """
        try:
            target = TrackingStatus(status)
        except ValueError as exc:
            raise ValidationError({"status": [f"Unknown tracking status: {status}"]}) from exc

        self._assert_can_transition(target)

        if target == TrackingStatus.SHIPPED and not (carrier and tracking_id):
            raise ValidationError({"tracking": ["Carrier and tracking id are required to mark an order shipped"]})

        if carrier or tracking_id or notes:
            self._merge_tracking(carrier=carrier, tracking_id=tracking_id, notes=notes)

        now = datetime.now(UTC)
        previous_status = self.status
        event_message = message or default_message(target)
        self.add_tracking_events(
            TrackingEvent(
                sequence=self._next_sequence(),
                status=target.value,
                timestamp=now,
                message=event_message,
                updated_by=updated_by,
            )
        )
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                tracking_number=self.tracking_number,
                previous_status=previous_status,
                new_status=target.value,
                message=event_message,
                updated_by=updated_by,
                changed_at=now,
            )
        )

    def update_tracking_details(self, carrier=None, tracking_id=None, notes=None, updated_by=None):
        """Change carrier details without moving the status."""
        if TrackingStatus(self.status) in (TrackingStatus.DELIVERED, TrackingStatus.CANCELLED):
            raise ValidationError({"status": [f"Tracking details of a {self.status} order cannot change"]})

        self._merge_tracking(carrier=carrier, tracking_id=tracking_id, notes=notes)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            TrackingDetailsUpdated(
                order_id=str(self.id),
                carrier=self.tracking.carrier,
                tracking_id=self.tracking.tracking_id,
                notes=self.tracking.notes,
                updated_by=updated_by,
            )
        )

    def _merge_tracking(self, carrier=None, tracking_id=None, notes=None):
        current = self.tracking or TrackingInfo()
        self.tracking = TrackingInfo(
            carrier=carrier if carrier is not None else current.carrier,
            tracking_id=tracking_id if tracking_id is not None else current.tracking_id,
            notes=notes if notes is not None else current.notes,
        )

    # -------------------------------------------------------------------
    # Repair
    # -------------------------------------------------------------------
    def backfill_tracking(self) -> bool:
        """Give an order missing tracking data a tracking number and history.

        Returns whether anything changed. Running it twice is harmless.
        """
        changed = False
        placed_at = self.created_at or datetime.now(UTC)

        if not self.tracking_number:
            self.tracking_number = generate_tracking_number(placed_at)
            changed = True

        if not self.tracking_events:
            self.add_tracking_events(
                TrackingEvent(
                    sequence=0,
                    status=TrackingStatus.PLACED.value,
                    timestamp=placed_at,
                    message=INITIAL_TRACKING_MESSAGE,
                )
            )
            if self.status and self.status != TrackingStatus.PLACED.value:
                self.add_tracking_events(
                    TrackingEvent(
                        sequence=1,
                        status=self.status,
                        timestamp=self.updated_at or placed_at,
                        message=f"Order status updated to {self.status}.",
                    )
                )
            changed = True

        if changed:
            self.updated_at = datetime.now(UTC)
        return changed

    @property
    def missing_tracking_id(self) -> bool:
        return self.status == TrackingStatus.SHIPPED.value and not (self.tracking and self.tracking.tracking_id)

    # -------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------
    def to_detail(self) -> dict:
        """Full view for the order's owner and admins."""
        return {
            "order_id": str(self.id),
            "user_id": str(self.user_id),
            "status": self.status,
            "tracking_number": self.tracking_number,
            "items": [item.to_view() for item in self.items],
            "shipping_address": self.shipping_address.to_dict() if self.shipping_address else None,
            "tracking": self.tracking.to_dict() if self.tracking else None,
            "payment": self.payment.to_dict() if self.payment else None,
            "coupon": self.coupon.to_dict() if self.coupon else None,
            "pricing": self.pricing.to_dict() if self.pricing else None,
            "tracking_events": [event.to_view() for event in self.history()],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_public(self) -> dict:
        """What anyone holding the tracking number may see. No payment or street details."""
        return {
            "tracking_number": self.tracking_number,
            "status": self.status,
            "items": [
                {
                    "name": item.name,
                    "variant": {"color": item.color, "size": item.size},
                    "quantity": item.quantity,
                    "image": item.image,
                }
                for item in self.items
            ],
            "shipping_address": self.shipping_address.public_view() if self.shipping_address else None,
            "tracking": {
                "carrier": self.tracking.carrier if self.tracking else None,
                "tracking_id": self.tracking.tracking_id if self.tracking else None,
            },
            "tracking_events": [event.to_view() for event in self.history()],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
