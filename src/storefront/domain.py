"""Storefront bounded context: Order Placement and Inventory Consistency.

Turns shopping carts into durable, price-correct, stock-safe orders. Catalogue
stock, coupon usage, order numbering and the orders themselves live in one
domain so that a single unit of work can commit all of them together.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
