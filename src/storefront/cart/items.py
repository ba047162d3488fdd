"""Cart item management — commands, handler and cart reads.

Every quantity change is checked against live variant stock. Reads return the
stored lines as they are; stock is re-validated only by checkout.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.catalogue.lookup import load_product
from storefront.domain import storefront
from storefront.errors import InsufficientStock, NotFound, StockShortage


@storefront.command(part_of="ShoppingCart")
class AddToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    color = String(required=True, max_length=50)
    size = String(required=True, max_length=20)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="ShoppingCart")
class UpdateCartQuantity:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    color = String(required=True, max_length=50)
    size = String(required=True, max_length=20)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="ShoppingCart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    color = String(required=True, max_length=50)
    size = String(required=True, max_length=20)


@storefront.command(part_of="ShoppingCart")
class ClearCart:
    user_id = Identifier(required=True)


def find_cart(user_id) -> ShoppingCart | None:
    try:
        return current_domain.repository_for(ShoppingCart).get(user_id)
    except ObjectNotFoundError:
        return None


def get_cart(user_id) -> list[dict]:
    """Return the user's cart lines. A user without a cart has an empty one."""
    cart = find_cart(user_id)
    return cart.lines() if cart else []


def clear_cart(user_id) -> None:
    """Remove every line from the user's cart, if they have one."""
    cart = find_cart(user_id)
    if cart is None:
        return
    cart.clear()
    current_domain.repository_for(ShoppingCart).add(cart)


def _live_variant(product_id, color, size):
    product = load_product(product_id)
    variant = product.variant_for(color, size)
    if variant is None:
        raise NotFound("Variant", f"{product_id}:{color}/{size}")
    return product, variant


def _ensure_stock(product, variant, requested):
    if requested > variant.stock:
        raise InsufficientStock(
            [
                StockShortage(
                    product_id=str(product.id),
                    name=product.name,
                    color=variant.color,
                    size=variant.size,
                    requested=requested,
                    available=variant.stock,
                )
            ]
        )


@storefront.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = find_cart(command.user_id) or ShoppingCart.create(user_id=command.user_id)

        product, variant = _live_variant(command.product_id, command.color, command.size)
        merged = cart.quantity_of(command.product_id, command.color, command.size) + command.quantity
        _ensure_stock(product, variant, merged)

        cart.add_item(
            product_id=command.product_id,
            color=command.color,
            size=command.size,
            quantity=command.quantity,
            price=product.price,
            name=product.name,
            image=product.primary_image,
        )
        repo.add(cart)
        return cart.lines()

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = find_cart(command.user_id)
        if cart is None or cart.line_for(command.product_id, command.color, command.size) is None:
            raise NotFound("Cart item", f"{command.product_id}:{command.color}/{command.size}")

        product, variant = _live_variant(command.product_id, command.color, command.size)
        _ensure_stock(product, variant, command.quantity)

        cart.update_quantity(
            product_id=command.product_id,
            color=command.color,
            size=command.size,
            quantity=command.quantity,
        )
        repo.add(cart)
        return cart.lines()

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        cart = find_cart(command.user_id)
        if cart is None:
            return []

        if cart.remove_item(product_id=command.product_id, color=command.color, size=command.size):
            current_domain.repository_for(ShoppingCart).add(cart)
        return cart.lines()

    @handle(ClearCart)
    def clear(self, command):
        clear_cart(command.user_id)
        return []
