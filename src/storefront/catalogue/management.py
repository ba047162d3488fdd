"""Catalogue management — admin commands and handler."""

import json

from protean import handle
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront


@storefront.command(part_of="Product")
class AddProduct:
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.01)
    slug = String(max_length=255)
    description = Text()
    images = Text()  # JSON array of image URLs
    category = String(max_length=100)
    is_featured = Boolean(default=False)
    variants = Text()  # JSON: list of {color, size, stock}


@storefront.command(part_of="Product")
class AddVariant:
    product_id = Identifier(required=True)
    color = String(required=True, max_length=50)
    size = String(required=True, max_length=20)
    stock = Integer(default=0, min_value=0)


@storefront.command(part_of="Product")
class SetVariantStock:
    product_id = Identifier(required=True)
    color = String(required=True, max_length=50)
    size = String(required=True, max_length=20)
    stock = Integer(required=True, min_value=0)


def _loads(value):
    if not value:
        return []
    return json.loads(value) if isinstance(value, str) else value


@storefront.command_handler(part_of=Product)
class ManageCatalogueHandler:
    @handle(AddProduct)
    def add_product(self, command):
        product = Product.create(
            name=command.name,
            price=command.price,
            slug=command.slug,
            description=command.description,
            images=_loads(command.images),
            category=command.category,
            is_featured=command.is_featured,
        )
        for variant in _loads(command.variants):
            product.add_variant(
                color=variant["color"],
                size=variant["size"],
                stock=int(variant.get("stock", 0)),
            )

        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(AddVariant)
    def add_variant(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.add_variant(color=command.color, size=command.size, stock=command.stock)
        repo.add(product)

    @handle(SetVariantStock)
    def set_variant_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.set_stock(color=command.color, size=command.size, stock=command.stock)
        repo.add(product)
