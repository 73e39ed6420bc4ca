"""Order aggregate root with OrderItem entity.

An order is created once, with all of its items, inside the placement unit
of work. Afterwards only its status, payment status and internal note
change. Line item prices are the prices charged at placement and are never
recomputed from the catalog.

Status model:
    pending / confirmed / processing / shipped / delivered move freely
    between each other (staff decide the order of steps). Any of them can
    move to cancelled, which is terminal and puts the items' stock back.
Payment status (independent): pending → paid, or pending → failed.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.exceptions import InvalidTransition
from storefront.order.events import (
    OrderCancelled,
    OrderDeleted,
    OrderPlaced,
    OrderStatusChanged,
    PaymentRejected,
    PaymentVerified,
)
from storefront.shared.money import order_total
from storefront.shipping.rates import ShippingZone


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class PaymentMethod(Enum):
    COD = "cod"
    BKASH = "bkash"
    NAGAD = "nagad"
    ROCKET = "rocket"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    variant_id = Identifier()
    title = String(required=True, max_length=255)
    image = String(max_length=500)
    color = String(max_length=100)
    size = String(max_length=100)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=20, unique=True)
    user_id = Identifier()  # None for guest checkout

    full_name = String(required=True, max_length=255)
    phone = String(required=True, max_length=30)
    alt_phone = String(max_length=30)
    email = String(max_length=254)
    address = Text(required=True)
    city = String(max_length=100)
    delivery_note = Text()
    shipping_zone = String(required=True, choices=ShippingZone)

    subtotal = Float(required=True, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    shipping_cost = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)

    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    sender_number = String(max_length=30)
    transaction_id = String(max_length=100)

    coupon_id = Identifier()
    coupon_code = String(max_length=50)
    client_ip = String(max_length=45)
    admin_note = Text()

    items = HasMany(OrderItem)
    created_at = DateTime(default=lambda: datetime.now(UTC))
    updated_at = DateTime(default=lambda: datetime.now(UTC))

    @invariant.post
    def total_must_match_components(self):
        expected = order_total(self.subtotal or 0.0, self.discount_amount or 0.0, self.shipping_cost or 0.0)
        if abs((self.total or 0.0) - expected) > 0.005:
            raise ValidationError({"total": [f"Total {self.total} does not equal {expected}"]})

    @invariant.post
    def discount_cannot_exceed_subtotal(self):
        if (self.discount_amount or 0.0) > (self.subtotal or 0.0):
            raise ValidationError({"discount_amount": ["Discount cannot exceed the subtotal"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number: str,
        items,
        customer: dict,
        shipping_zone: ShippingZone,
        subtotal: float,
        discount_amount: float,
        shipping_cost: float,
        payment_method: str,
        user_id=None,
        coupon_id=None,
        coupon_code=None,
        client_ip=None,
        sender_number=None,
        transaction_id=None,
    ):
        """Build a new pending order from resolved line items.

        Args:
            items: ``ResolvedLineItem`` objects, already priced.
            customer: full_name, phone and address, plus optional alt_phone,
                email, city and delivery_note.
        """
        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            user_id=user_id,
            shipping_zone=shipping_zone.value,
            subtotal=subtotal,
            discount_amount=discount_amount,
            shipping_cost=shipping_cost,
            total=order_total(subtotal, discount_amount, shipping_cost),
            payment_method=payment_method,
            sender_number=sender_number,
            transaction_id=transaction_id,
            coupon_id=coupon_id,
            coupon_code=coupon_code,
            client_ip=client_ip,
            items=[
                OrderItem(
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    title=item.title,
                    image=item.image,
                    color=item.color,
                    size=item.size,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
                for item in items
            ],
            created_at=now,
            updated_at=now,
            **customer,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id) if user_id else None,
                items=json.dumps([item.to_dict() for item in items]),
                subtotal=order.subtotal,
                discount_amount=order.discount_amount,
                shipping_cost=order.shipping_cost,
                total=order.total,
                coupon_code=coupon_code,
                payment_method=payment_method,
                client_ip=client_ip,
                placed_at=now,
            )
        )
        return order

    @property
    def is_cancelled(self) -> bool:
        return self.status == OrderStatus.CANCELLED.value

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def change_status(self, new_status: OrderStatus) -> bool:
        """Move the order to ``new_status``.

        Returns True when the move cancels the order, in which case the
        caller must restore the order's stock.
        """
        new_status = OrderStatus(new_status)
        current = OrderStatus(self.status)
        if new_status == current:
            return False
        if current == OrderStatus.CANCELLED:
            raise InvalidTransition(f"Order {self.order_number} is cancelled and cannot become {new_status.value}")

        now = datetime.now(UTC)
        self.status = new_status.value
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=current.value,
                new_status=new_status.value,
                changed_at=now,
            )
        )

        if new_status == OrderStatus.CANCELLED:
            self.raise_(
                OrderCancelled(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    previous_status=current.value,
                    item_count=self.item_count,
                    cancelled_at=now,
                )
            )
            return True
        return False

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def verify_payment(self):
        """Mark a manually checked mobile payment as paid."""
        if self.payment_method == PaymentMethod.COD.value:
            raise InvalidTransition("Cash on delivery orders are not verified")
        if self.payment_status != PaymentStatus.PENDING.value:
            raise InvalidTransition(f"Payment is already {self.payment_status}")
        if not self.sender_number or not self.transaction_id:
            raise InvalidTransition("Sender number and transaction ID are required to verify payment")

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.PAID.value
        if self.status == OrderStatus.PENDING.value:
            self.change_status(OrderStatus.PROCESSING)
        self.updated_at = now
        self.raise_(
            PaymentVerified(
                order_id=str(self.id),
                order_number=self.order_number,
                payment_method=self.payment_method,
                transaction_id=self.transaction_id,
                verified_at=now,
            )
        )

    def reject_payment(self, reason: str | None = None) -> bool:
        """Mark the payment failed and cancel the order.

        Returns True when the order was cancelled by this call and its stock
        must be restored.
        """
        if self.payment_status != PaymentStatus.PENDING.value:
            raise InvalidTransition(f"Payment is already {self.payment_status}")

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.FAILED.value
        if reason and reason.strip():
            note = f"Payment rejected: {reason.strip()}"
            self.admin_note = f"{self.admin_note}\n{note}" if self.admin_note else note
        self.updated_at = now
        self.raise_(
            PaymentRejected(
                order_id=str(self.id),
                order_number=self.order_number,
                reason=reason,
                rejected_at=now,
            )
        )
        return self.change_status(OrderStatus.CANCELLED)

    def mark_deleted(self):
        self.raise_(
            OrderDeleted(
                order_id=str(self.id),
                order_number=self.order_number,
                status=self.status,
                deleted_at=datetime.now(UTC),
            )
        )
