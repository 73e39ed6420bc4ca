"""Product aggregate root with Variant entity.

The catalogue itself is edited elsewhere; this domain reads products at
decision time and is the only writer of their stock fields. Simple products
carry stock on the product, variable products carry it on each variant.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Integer, String, Text

from storefront.domain import storefront
from storefront.exceptions import InsufficientStock


class ProductKind(Enum):
    SIMPLE = "simple"
    VARIABLE = "variable"


def _normalize(value) -> str:
    return str(value).strip().lower() if value else ""


@storefront.entity(part_of="Product")
class Variant:
    """A specific attribute combination (e.g. color + size) of a variable product."""

    attributes = Text()  # JSON: {"color": "Black", "size": "M"}
    stock = Integer(default=0, min_value=0)
    price = Float(min_value=0.0)  # Overrides the product price when set

    @property
    def attribute_values(self) -> dict:
        if not self.attributes:
            return {}
        return json.loads(self.attributes)

    def matches(self, color: str | None, size: str | None) -> bool:
        """Case-insensitive match on the requested color and size."""
        values = {key.lower(): value for key, value in self.attribute_values.items()}
        return _normalize(values.get("color")) == _normalize(color) and _normalize(values.get("size")) == _normalize(
            size
        )


@storefront.aggregate
class Product:
    title = String(required=True, max_length=255)
    slug = String(max_length=255)
    image = String(max_length=500)
    kind = String(choices=ProductKind, default=ProductKind.SIMPLE.value)
    is_active = Boolean(default=True)
    regular_price = Float(required=True, min_value=0.0)
    sale_price = Float(min_value=0.0)
    stock = Integer(default=0, min_value=0)  # Meaningful only for simple products
    variants = HasMany(Variant)
    created_at = DateTime(default=lambda: datetime.now(UTC))
    updated_at = DateTime(default=lambda: datetime.now(UTC))

    @property
    def is_variable(self) -> bool:
        return self.kind == ProductKind.VARIABLE.value

    @property
    def effective_price(self) -> float:
        """Sale price when present and strictly lower than the regular price."""
        if self.sale_price is not None and self.sale_price < self.regular_price:
            return self.sale_price
        return self.regular_price

    def unit_price_for(self, variant: Variant | None = None) -> float:
        if self.is_variable and variant is not None and variant.price is not None:
            return variant.price
        return self.effective_price

    def find_variant(self, color: str | None, size: str | None) -> Variant | None:
        return next((v for v in self.variants if v.matches(color, size)), None)

    def get_variant(self, variant_id) -> Variant | None:
        return next((v for v in self.variants if str(v.id) == str(variant_id)), None)

    def add_variant(self, attributes: dict, stock: int = 0, price: float | None = None) -> Variant:
        if not self.is_variable:
            raise ValidationError({"variants": ["Only variable products can have variants"]})

        variant = Variant(attributes=json.dumps(attributes), stock=stock, price=price)
        self.add_variants(variant)
        self.updated_at = datetime.now(UTC)
        return variant

    def available_stock(self, variant_id=None) -> int:
        if variant_id is None:
            return self.stock
        return self._variant_or_error(variant_id).stock

    # -------------------------------------------------------------------
    # Stock mutation
    # -------------------------------------------------------------------
    def withdraw_stock(self, quantity: int, variant_id=None) -> int:
        """Take ``quantity`` units out of stock, refusing to go below zero.

        Returns the remaining stock of the product or variant.
        """
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        if variant_id is None:
            if self.stock < quantity:
                raise InsufficientStock(str(self.id), quantity, self.stock, title=self.title)
            self.stock -= quantity
            remaining = self.stock
        else:
            variant = self._variant_or_error(variant_id)
            if variant.stock < quantity:
                raise InsufficientStock(str(self.id), quantity, variant.stock, str(variant_id), self.title)
            variant.stock -= quantity
            remaining = variant.stock

        self.updated_at = datetime.now(UTC)
        return remaining

    def replenish_stock(self, quantity: int, variant_id=None) -> int:
        """Put ``quantity`` units back into stock."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        if variant_id is None:
            self.stock += quantity
            remaining = self.stock
        else:
            variant = self._variant_or_error(variant_id)
            variant.stock += quantity
            remaining = variant.stock

        self.updated_at = datetime.now(UTC)
        return remaining

    def _variant_or_error(self, variant_id) -> Variant:
        variant = self.get_variant(variant_id)
        if variant is None:
            raise ValidationError({"variants": [f"Variant {variant_id} not found"]})
        return variant
