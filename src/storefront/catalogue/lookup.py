"""Read-side catalogue access used by the cart, pricing and finalization.

Every read goes to the repository, so callers always see live stock and
prices rather than anything cached on a cart line.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.errors import NotFound, StockShortage


def load_product(product_id: str) -> Product:
    try:
        return current_domain.repository_for(Product).get(product_id)
    except ObjectNotFoundError as exc:
        raise NotFound("Product", product_id) from exc


def find_product(product_id: str) -> Product | None:
    try:
        return current_domain.repository_for(Product).get(product_id)
    except ObjectNotFoundError:
        return None


def find_variant(product_id: str, color: str, size: str) -> int:
    """Return live stock for a product variant.

    Raises ``NotFound`` if either the product or the variant is missing.
    """
    product = load_product(product_id)
    variant = product.variant_for(color, size)
    if variant is None:
        raise NotFound("Variant", f"{product_id}:{color}/{size}")
    return variant.stock


def find_price(product_id: str) -> float:
    return load_product(product_id).price


def merge_lines(lines) -> list[dict]:
    """Combine lines for the same product variant, summing their quantities.

    The first line for a variant keeps its position and other keys.
    """
    merged = {}
    for line in lines:
        key = (str(line["product_id"]), line["variant"]["color"], line["variant"]["size"])
        if key in merged:
            merged[key]["quantity"] += int(line["quantity"])
        else:
            merged[key] = {**line, "quantity": int(line["quantity"])}
    return list(merged.values())


def check_stock(lines) -> list[StockShortage]:
    """Report every product variant that cannot be fulfilled from current stock.

    ``lines`` are mappings with ``product_id``, ``variant`` ({color, size}),
    ``quantity`` and optionally ``name``. Lines for the same variant are checked
    against stock by their combined quantity. A missing product or variant is
    reported as a shortage with zero availability.
    """
    shortages = []
    for line in merge_lines(lines):
        product_id = str(line["product_id"])
        color = line["variant"]["color"]
        size = line["variant"]["size"]
        quantity = int(line["quantity"])

        product = find_product(product_id)
        if product is None:
            shortages.append(
                StockShortage(
                    product_id=product_id,
                    name=line.get("name") or "Unknown product",
                    color=color,
                    size=size,
                    requested=quantity,
                    available=0,
                    issue="Product not found",
                )
            )
            continue

        variant = product.variant_for(color, size)
        if variant is None:
            shortages.append(
                StockShortage(
                    product_id=product_id,
                    name=product.name,
                    color=color,
                    size=size,
                    requested=quantity,
                    available=0,
                    issue="Variant not found",
                )
            )
            continue

        if variant.stock < quantity:
            shortages.append(
                StockShortage(
                    product_id=product_id,
                    name=product.name,
                    color=color,
                    size=size,
                    requested=quantity,
                    available=variant.stock,
                )
            )
    return shortages
