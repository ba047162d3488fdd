"""Product aggregate (CQRS) — catalogue entry with color/size variants.

Each variant carries its own stock count. Stock is only ever decremented by
checkout finalization and set by admin edits; it can never go negative.
"""

import json
import re
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Integer, String, Text

from storefront.catalogue.events import ProductAdded, VariantAdded, VariantStockDecremented, VariantStockSet
from storefront.domain import storefront
from storefront.errors import InsufficientStock, StockShortage


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "product"


@storefront.entity(part_of="Product")
class ProductVariant:
    color = String(required=True, max_length=50)
    size = String(required=True, max_length=20)
    stock = Integer(default=0, min_value=0)

    def matches(self, color, size) -> bool:
        return self.color == color and self.size == size


@storefront.aggregate
class Product:
    name = String(required=True, max_length=255)
    slug = String(required=True, max_length=255)
    description = Text()
    price = Float(required=True, min_value=0.01)
    images = Text()  # JSON array of image URLs
    category = String(max_length=100)
    is_featured = Boolean(default=False)
    variants = HasMany(ProductVariant)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def variants_must_be_unique(self):
        keys = [(v.color, v.size) for v in self.variants]
        if len(keys) != len(set(keys)):
            raise ValidationError({"variants": ["Each color/size combination may appear only once"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, name, price, description=None, images=None, category=None, slug=None, is_featured=False):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            slug=slug or slugify(name),
            description=description,
            price=price,
            images=json.dumps(images or []),
            category=category,
            is_featured=is_featured,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                name=product.name,
                slug=product.slug,
                price=product.price,
                added_at=now,
            )
        )
        return product

    @property
    def image_urls(self) -> list[str]:
        return json.loads(self.images) if self.images else []

    @property
    def primary_image(self) -> str:
        urls = self.image_urls
        return urls[0] if urls else ""

    # -------------------------------------------------------------------
    # Variants and stock
    # -------------------------------------------------------------------
    def variant_for(self, color, size):
        """Return the variant with this color and size, or None."""
        return next((v for v in self.variants if v.matches(color, size)), None)

    def add_variant(self, color, size, stock=0):
        if self.variant_for(color, size) is not None:
            raise ValidationError({"variants": [f"Variant {color}/{size} already exists"]})

        self.add_variants(ProductVariant(color=color, size=size, stock=stock))
        self.updated_at = datetime.now(UTC)

        self.raise_(
            VariantAdded(
                product_id=str(self.id),
                color=color,
                size=size,
                stock=stock,
            )
        )

    def set_stock(self, color, size, stock):
        variant = self._require_variant(color, size)
        if stock < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})

        previous_stock = variant.stock
        variant.stock = stock
        self.updated_at = datetime.now(UTC)

        self.raise_(
            VariantStockSet(
                product_id=str(self.id),
                color=color,
                size=size,
                previous_stock=previous_stock,
                new_stock=stock,
            )
        )

    def decrement_stock(self, color, size, quantity):
        """Commit ``quantity`` units of a variant. Fails without side effects if stock is short."""
        variant = self._require_variant(color, size)
        if variant.stock < quantity:
            raise InsufficientStock(
                [
                    StockShortage(
                        product_id=str(self.id),
                        name=self.name,
                        color=color,
                        size=size,
                        requested=quantity,
                        available=variant.stock,
                    )
                ]
            )

        variant.stock -= quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            VariantStockDecremented(
                product_id=str(self.id),
                color=color,
                size=size,
                quantity=quantity,
                remaining_stock=variant.stock,
            )
        )

    def _require_variant(self, color, size):
        variant = self.variant_for(color, size)
        if variant is None:
            raise ValidationError({"variant": [f"Variant {color}/{size} not found for \"{self.name}\""]})
        return variant
