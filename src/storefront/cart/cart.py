"""Shopping Cart aggregate (CQRS) — one cart per user.

The cart is keyed by the user id. Each line snapshots the product name, image
and price at the time it was added; those snapshots are for display only and
are never trusted when an order is priced.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from storefront.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated
from storefront.domain import storefront
from storefront.errors import NotFound


@storefront.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    color = String(required=True, max_length=50)
    size = String(required=True, max_length=20)
    quantity = Integer(required=True, min_value=1)
    price = Float(default=0.0)
    name = String(max_length=255)
    image = String(max_length=1024)
    added_at = DateTime()

    @property
    def variant(self) -> dict:
        return {"color": self.color, "size": self.size}

    def matches(self, product_id, color, size) -> bool:
        return str(self.product_id) == str(product_id) and self.color == color and self.size == size

    def to_line(self) -> dict:
        return {
            "product_id": str(self.product_id),
            "variant": self.variant,
            "quantity": self.quantity,
            "price": self.price,
            "name": self.name,
            "image": self.image,
        }


@storefront.aggregate
class ShoppingCart:
    user_id = Identifier(identifier=True, required=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def lines_must_be_unique(self):
        keys = [(str(i.product_id), i.color, i.size) for i in self.items]
        if len(keys) != len(set(keys)):
            raise ValidationError({"items": ["A product variant may appear only once in the cart"]})

    @classmethod
    def create(cls, user_id):
        now = datetime.now(UTC)
        return cls(user_id=user_id, created_at=now, updated_at=now)

    def line_for(self, product_id, color, size):
        return next((i for i in self.items if i.matches(product_id, color, size)), None)

    def quantity_of(self, product_id, color, size) -> int:
        line = self.line_for(product_id, color, size)
        return line.quantity if line else 0

    def add_item(self, product_id, color, size, quantity, price=0.0, name=None, image=None):
        """Add a line, merging quantity with an existing line for the same variant.

        A merged line keeps its quantity sum but takes the newer price, name
        and image snapshot.
        """
        now = datetime.now(UTC)
        existing = self.line_for(product_id, color, size)

        if existing:
            existing.quantity += quantity
            existing.price = price
            existing.name = name or existing.name
            existing.image = image or existing.image
            line_quantity = existing.quantity
        else:
            self.add_items(
                CartItem(
                    product_id=product_id,
                    color=color,
                    size=size,
                    quantity=quantity,
                    price=price,
                    name=name,
                    image=image,
                    added_at=now,
                )
            )
            line_quantity = quantity

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                user_id=str(self.user_id),
                product_id=str(product_id),
                color=color,
                size=size,
                quantity=quantity,
                line_quantity=line_quantity,
            )
        )

    def update_quantity(self, product_id, color, size, quantity):
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        line = self.line_for(product_id, color, size)
        if line is None:
            raise NotFound("Cart item", f"{product_id}:{color}/{size}")

        previous_quantity = line.quantity
        line.quantity = quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                user_id=str(self.user_id),
                product_id=str(product_id),
                color=color,
                size=size,
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, product_id, color, size) -> bool:
        """Remove a line if present. Returns whether anything was removed."""
        line = self.line_for(product_id, color, size)
        if line is None:
            return False

        self.remove_items(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemRemoved(
                user_id=str(self.user_id),
                product_id=str(product_id),
                color=color,
                size=size,
            )
        )
        return True

    def clear(self):
        removed = len(self.items)
        for line in list(self.items):
            self.remove_items(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(user_id=str(self.user_id), items_removed=removed))

    def lines(self) -> list[dict]:
        return [item.to_line() for item in self.items]
