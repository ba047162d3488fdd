"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductAdded:
    """A product was added to the catalogue."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    name = String(required=True)
    slug = String(required=True)
    price = Float(required=True)
    added_at = DateTime(required=True)


@storefront.event(part_of="Product")
class VariantAdded:
    """A color/size variant was added to a product."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    color = String(required=True)
    size = String(required=True)
    stock = Integer(required=True)


@storefront.event(part_of="Product")
class VariantStockSet:
    """An admin set the stock of a variant to an absolute value."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    color = String(required=True)
    size = String(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)


@storefront.event(part_of="Product")
class VariantStockDecremented:
    """Stock was committed to a placed order."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    color = String(required=True)
    size = String(required=True)
    quantity = Integer(required=True)
    remaining_stock = Integer(required=True)
