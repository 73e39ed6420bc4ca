"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """An order was committed together with its stock and coupon effects."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier()
    items = Text(required=True)  # JSON: list of line item dicts
    subtotal = Float(required=True)
    discount_amount = Float()
    shipping_cost = Float()
    total = Float(required=True)
    coupon_code = String()
    payment_method = String(required=True)
    client_ip = String()
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    """The order left every active status; its stock goes back on the shelf."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    item_count = Integer(required=True)
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentVerified:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    payment_method = String(required=True)
    transaction_id = String(required=True)
    verified_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentRejected:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    reason = String()
    rejected_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderDeleted:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    status = String(required=True)
    deleted_at = DateTime(required=True)
