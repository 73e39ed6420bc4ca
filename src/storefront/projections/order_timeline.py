"""Order timeline: append-only history of what happened to each order.

Staff read it on the order detail screen. Entries outlive the order itself,
so a deleted order still leaves its trail behind.
"""

import uuid

from protean.core.projector import on
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.events import (
    OrderCancelled,
    OrderDeleted,
    OrderPlaced,
    OrderStatusChanged,
    PaymentRejected,
    PaymentVerified,
)
from storefront.order.order import Order


@storefront.projection
class OrderTimeline:
    entry_id = Identifier(identifier=True, required=True)
    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=20)
    event_type = String(required=True, max_length=50)
    description = String(required=True, max_length=500)
    occurred_at = DateTime(required=True)
    event_metadata = Text()  # JSON: extra event data


def _add_entry(event, event_type, description, occurred_at, event_metadata=None):
    current_domain.repository_for(OrderTimeline).add(
        OrderTimeline(
            entry_id=str(uuid.uuid4()),
            order_id=event.order_id,
            order_number=event.order_number,
            event_type=event_type,
            description=description,
            occurred_at=occurred_at,
            event_metadata=event_metadata,
        )
    )


def timeline_for(order_id) -> list[OrderTimeline]:
    """Timeline entries of one order, oldest first."""
    return (
        current_domain.repository_for(OrderTimeline)
        ._dao.query.filter(order_id=str(order_id))
        .order_by("occurred_at")
        .all()
        .items
    )


@storefront.projector(projector_for=OrderTimeline, aggregates=[Order])
class OrderTimelineProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        description = f"Order placed for {event.total:,.2f} ({event.payment_method})"
        if event.coupon_code:
            description += f" with coupon {event.coupon_code}"
        _add_entry(event, "OrderPlaced", description, event.placed_at, event.items)

    @on(OrderStatusChanged)
    def on_status_changed(self, event):
        _add_entry(
            event,
            "OrderStatusChanged",
            f"Status changed from {event.previous_status} to {event.new_status}",
            event.changed_at,
        )

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        _add_entry(
            event,
            "OrderCancelled",
            f"Cancelled from {event.previous_status}; {event.item_count} unit(s) returned to stock",
            event.cancelled_at,
        )

    @on(PaymentVerified)
    def on_payment_verified(self, event):
        _add_entry(
            event,
            "PaymentVerified",
            f"{event.payment_method} payment verified (transaction {event.transaction_id})",
            event.verified_at,
        )

    @on(PaymentRejected)
    def on_payment_rejected(self, event):
        reason = f": {event.reason}" if event.reason else ""
        _add_entry(event, "PaymentRejected", f"Payment rejected{reason}", event.rejected_at)

    @on(OrderDeleted)
    def on_order_deleted(self, event):
        _add_entry(event, "OrderDeleted", f"Order deleted while {event.status}", event.deleted_at)
