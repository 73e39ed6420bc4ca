"""Inventory ledger: stock reservation and restoration.

Stock lives on ``Product`` (simple products) and on its ``Variant`` entities
(variable products). Every call loads each affected product once, applies
all of its movements, and only then writes. Stock is checked against the
freshly loaded product, so a sale that raced ahead since the cart was
resolved makes the reservation fail instead of driving stock negative. A
product written concurrently by another unit of work fails the version
check on save and the whole unit of work rolls back.
"""

from collections import defaultdict
from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.exceptions import ProductNotFound

logger = structlog.get_logger(__name__)


def _group_by_product(items) -> dict[str, list[tuple]]:
    movements = defaultdict(list)
    for item in items:
        variant_id = str(item.variant_id) if item.variant_id else None
        movements[str(item.product_id)].append((variant_id, item.quantity))
    return movements


def withdraw_items(items) -> list[Product]:
    """Withdraw stock for every line item on freshly loaded products, without saving.

    ``items`` are anything with ``product_id``, ``variant_id`` and
    ``quantity``. Raises ``ProductNotFound`` or ``InsufficientStock``.
    """
    repo = current_domain.repository_for(Product)

    updated = []
    for product_id, movements in _group_by_product(items).items():
        try:
            product = repo.get(product_id)
        except ObjectNotFoundError as exc:
            raise ProductNotFound(product_id) from exc

        for variant_id, quantity in movements:
            product.withdraw_stock(quantity, variant_id)
        updated.append(product)

    return updated


def reserve_items(items) -> list[Product]:
    """Withdraw and save stock for every line item, or raise without writing anything."""
    repo = current_domain.repository_for(Product)
    updated = withdraw_items(items)
    for product in updated:
        repo.add(product)
    return updated


def restore_items(items) -> list[Product]:
    """Put stock back for every line item.

    Products or variants that no longer exist in the catalog are skipped with a
    warning; there is nothing left to restock.
    """
    repo = current_domain.repository_for(Product)

    updated = []
    for product_id, movements in _group_by_product(items).items():
        try:
            product = repo.get(product_id)
        except ObjectNotFoundError:
            logger.warning("restock_skipped_missing_product", product_id=product_id)
            continue

        for variant_id, quantity in movements:
            if variant_id is not None and product.get_variant(variant_id) is None:
                logger.warning("restock_skipped_missing_variant", product_id=product_id, variant_id=variant_id)
                continue
            product.replenish_stock(quantity, variant_id)
        updated.append(product)

    for product in updated:
        repo.add(product)
    return updated


@dataclass(frozen=True)
class StockMovement:
    product_id: str
    variant_id: str | None
    quantity: int


def reserve(product_id, variant_id, quantity: int) -> int:
    """Withdraw ``quantity`` from one product or variant; returns the stock left."""
    product = reserve_items([StockMovement(product_id, variant_id, quantity)])[0]
    return product.available_stock(variant_id)


def restore(product_id, variant_id, quantity: int) -> int | None:
    """Return ``quantity`` to one product or variant; returns the new stock, if restocked."""
    updated = restore_items([StockMovement(product_id, variant_id, quantity)])
    if not updated or (variant_id is not None and updated[0].get_variant(variant_id) is None):
        return None
    return updated[0].available_stock(variant_id)
