"""Cart resolution: untrusted cart lines in, server-priced line items out.

Client-submitted prices and images are accepted for display only and never
reach a total. Resolution is read-only and stops at the first failing line.
"""

from collections import defaultdict
from dataclasses import dataclass

from protean.exceptions import ValidationError

from storefront.catalogue.snapshot import CatalogueSnapshot
from storefront.exceptions import InsufficientStock, ProductInactive, ProductNotFound, VariantNotFound
from storefront.shared.money import round_money


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int
    color: str | None = None
    size: str | None = None
    claimed_price: float | None = None
    claimed_image: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        return cls(
            product_id=str(data.get("product_id") or data.get("productId") or ""),
            quantity=data.get("quantity"),
            color=data.get("color") or None,
            size=data.get("size") or None,
            claimed_price=data.get("price"),
            claimed_image=data.get("image"),
        )

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "color": self.color,
            "size": self.size,
        }


@dataclass(frozen=True)
class ResolvedLineItem:
    product_id: str
    variant_id: str | None
    quantity: int
    unit_price: float
    title: str
    image: str | None = None
    color: str | None = None
    size: str | None = None

    @property
    def line_total(self) -> float:
        return round_money(self.unit_price * self.quantity)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "title": self.title,
            "image": self.image,
            "color": self.color,
            "size": self.size,
        }


def validate_cart_lines(lines: list[CartLine]) -> None:
    if not lines:
        raise ValidationError({"items": ["Cart is empty"]})

    errors = []
    for position, line in enumerate(lines, start=1):
        if not line.product_id:
            errors.append(f"Line {position}: product is required")
        if not isinstance(line.quantity, int) or isinstance(line.quantity, bool) or line.quantity < 1:
            errors.append(f"Line {position}: quantity must be a whole number of at least 1")
    if errors:
        raise ValidationError({"items": errors})


def resolve_cart(lines: list[CartLine], snapshot: CatalogueSnapshot | None = None) -> list[ResolvedLineItem]:
    """Resolve every line against current catalog state, or raise the first failure.

    Lines that draw on the same product (or the same variant) are checked
    against their combined quantity.
    """
    validate_cart_lines(lines)
    snapshot = snapshot or CatalogueSnapshot()

    demand = defaultdict(int)
    resolved = []
    for line in lines:
        product = snapshot.product(line.product_id)
        if product is None:
            raise ProductNotFound(line.product_id)
        if not product.is_active:
            raise ProductInactive(line.product_id, product.title)

        variant = None
        if product.is_variable:
            variant = product.find_variant(line.color, line.size)
            if variant is None:
                raise VariantNotFound(line.product_id, line.color, line.size, product.title)
            available = variant.stock
            variant_id = str(variant.id)
        else:
            available = product.stock
            variant_id = None

        demand[(line.product_id, variant_id)] += line.quantity
        if available < demand[(line.product_id, variant_id)]:
            raise InsufficientStock(
                line.product_id, demand[(line.product_id, variant_id)], available, variant_id, product.title
            )

        resolved.append(
            ResolvedLineItem(
                product_id=str(product.id),
                variant_id=variant_id,
                quantity=line.quantity,
                unit_price=product.unit_price_for(variant),
                title=product.title,
                image=product.image or line.claimed_image,
                color=line.color,
                size=line.size,
            )
        )

    return resolved


def cart_subtotal(items: list[ResolvedLineItem]) -> float:
    return round_money(sum(item.unit_price * item.quantity for item in items))
