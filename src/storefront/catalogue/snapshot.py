"""Catalog snapshot reader.

Reads product and variant state at decision time. A snapshot caches each
product it loads, so one resolution sees one consistent copy of every
product even when the cart lists it more than once.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product


class CatalogueSnapshot:
    def __init__(self):
        self._products = {}

    def product(self, product_id) -> Product | None:
        key = str(product_id)
        if key not in self._products:
            try:
                self._products[key] = current_domain.repository_for(Product).get(key)
            except ObjectNotFoundError:
                self._products[key] = None
        return self._products[key]
