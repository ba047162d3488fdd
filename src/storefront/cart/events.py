"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="ShoppingCart")
class CartItemAdded:
    """A line was added to a cart, or an existing line's quantity grew."""

    __version__ = "v1"

    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    color = String(required=True)
    size = String(required=True)
    quantity = Integer(required=True)
    line_quantity = Integer(required=True)


@storefront.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    """The quantity of a cart line was replaced."""

    __version__ = "v1"

    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    color = String(required=True)
    size = String(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="ShoppingCart")
class CartItemRemoved:
    __version__ = "v1"

    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    color = String(required=True)
    size = String(required=True)


@storefront.event(part_of="ShoppingCart")
class CartCleared:
    __version__ = "v1"

    user_id = Identifier(required=True)
    items_removed = Integer(required=True)
