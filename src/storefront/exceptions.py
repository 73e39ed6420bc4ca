"""Typed failures raised by the order placement engine.

Resolution and guard failures are caught at the placement boundary and
turned into a ``PlacementFailed`` result. Malformed input is reported with
Protean's ``ValidationError`` instead, like every other field-level problem.
"""


class StorefrontError(Exception):
    """Base exception for all storefront failures."""

    code: str | None = None

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Cart resolution
# ---------------------------------------------------------------------------
class ResolutionError(StorefrontError):
    """A cart line could not be turned into a trusted line item."""

    def __init__(self, message: str, product_id: str):
        self.product_id = product_id
        super().__init__(message)


class ProductNotFound(ResolutionError):
    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}", product_id)


class ProductInactive(ResolutionError):
    def __init__(self, product_id: str, title: str | None = None):
        self.title = title
        super().__init__(f'"{title or product_id}" is no longer available', product_id)


class VariantNotFound(ResolutionError):
    def __init__(self, product_id: str, color: str | None, size: str | None, title: str | None = None):
        self.color = color
        self.size = size
        self.title = title
        super().__init__(
            f'"{title or product_id}" is not available in color "{color or "-"}" and size "{size or "-"}"',
            product_id,
        )


class InsufficientStock(ResolutionError):
    def __init__(
        self,
        product_id: str,
        requested: int,
        available: int,
        variant_id: str | None = None,
        title: str | None = None,
    ):
        self.requested = requested
        self.available = available
        self.variant_id = variant_id
        self.title = title
        super().__init__(
            f'Only {available} left in stock for "{title or product_id}" (requested {requested})',
            product_id,
        )


# ---------------------------------------------------------------------------
# Abuse guard
# ---------------------------------------------------------------------------
class OriginBanned(StorefrontError):
    code = "IP_BANNED"

    def __init__(self, client_ip: str):
        self.client_ip = client_ip
        super().__init__("Orders from your network are blocked. Please contact support.")


class CooldownActive(StorefrontError):
    code = "COOLDOWN"

    def __init__(self, remaining_seconds: int, cooldown_minutes: int):
        self.remaining_seconds = remaining_seconds
        self.cooldown_minutes = cooldown_minutes
        super().__init__(
            f"Please wait {remaining_seconds} seconds before placing another order "
            f"(one order every {cooldown_minutes} minutes)."
        )


# ---------------------------------------------------------------------------
# Store level
# ---------------------------------------------------------------------------
class SequencingConflict(StorefrontError):
    """Another transaction claimed the same order number first."""

    def __init__(self, order_number: str):
        self.order_number = order_number
        super().__init__(f"Order number {order_number} was allocated concurrently")


class StoreUnavailable(StorefrontError):
    def __init__(self, message: str = "Failed to create order. Please try again."):
        super().__init__(message)


# ---------------------------------------------------------------------------
# Order lifecycle
# ---------------------------------------------------------------------------
class OrderNotFound(StorefrontError):
    def __init__(self, order_ref: str):
        self.order_ref = order_ref
        super().__init__(f"Order not found: {order_ref}")


class InvalidTransition(StorefrontError):
    pass
