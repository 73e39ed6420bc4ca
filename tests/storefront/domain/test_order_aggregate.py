"""Tests for the Order aggregate: placement, status and payment transitions."""

import pytest
from protean.exceptions import ValidationError
from storefront.cart.resolution import ResolvedLineItem
from storefront.exceptions import InvalidTransition
from storefront.order.events import OrderCancelled, OrderPlaced, PaymentRejected
from storefront.order.order import Order, OrderStatus, PaymentMethod, PaymentStatus
from storefront.shipping.rates import ShippingZone

CUSTOMER = {
    "full_name": "Rahim Uddin",
    "phone": "01712345678",
    "address": "House 12, Road 5, Dhanmondi",
    "city": "dhaka",
}


def _place(payment_method=PaymentMethod.COD.value, **overrides):
    fields = {
        "order_number": "2000",
        "items": [
            ResolvedLineItem(product_id="prod-1", variant_id=None, quantity=2, unit_price=350.0, title="Panjabi"),
        ],
        "customer": CUSTOMER,
        "shipping_zone": ShippingZone.INSIDE_HUB,
        "subtotal": 700.0,
        "discount_amount": 0.0,
        "shipping_cost": 80.0,
        "payment_method": payment_method,
    }
    fields.update(overrides)
    return Order.place(**fields)


def _mobile_payment_order():
    return _place(PaymentMethod.BKASH.value, sender_number="01811111111", transaction_id="TXN123")


class TestPlace:
    def test_total_is_computed(self):
        assert _place().total == 780.0

    def test_starts_pending(self):
        order = _place()
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value

    def test_items_keep_prices(self):
        order = _place()
        assert len(order.items) == 1
        assert order.items[0].unit_price == 350.0
        assert order.item_count == 2

    def test_raises_order_placed(self):
        order = _place()
        assert isinstance(order._events[-1], OrderPlaced)
        assert order._events[-1].order_number == "2000"

    def test_guest_order_has_no_user(self):
        assert _place().user_id is None

    def test_discount_cannot_exceed_subtotal(self):
        with pytest.raises(ValidationError):
            _place(discount_amount=800.0)


class TestChangeStatus:
    def test_free_movement_between_active_statuses(self):
        order = _place()
        assert order.change_status(OrderStatus.SHIPPED) is False
        assert order.change_status(OrderStatus.PROCESSING) is False
        assert order.status == OrderStatus.PROCESSING.value

    def test_cancel_requests_restock(self):
        order = _place()
        order.change_status(OrderStatus.PROCESSING)
        assert order.change_status(OrderStatus.CANCELLED) is True
        assert isinstance(order._events[-1], OrderCancelled)

    def test_cancel_twice_restocks_once(self):
        order = _place()
        assert order.change_status(OrderStatus.CANCELLED) is True
        assert order.change_status(OrderStatus.CANCELLED) is False

    def test_cancelled_is_terminal(self):
        order = _place()
        order.change_status(OrderStatus.CANCELLED)
        with pytest.raises(InvalidTransition):
            order.change_status(OrderStatus.PENDING)


class TestVerifyPayment:
    def test_marks_paid_and_processing(self):
        order = _mobile_payment_order()
        order.verify_payment()
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.status == OrderStatus.PROCESSING.value

    def test_keeps_later_status(self):
        order = _mobile_payment_order()
        order.change_status(OrderStatus.SHIPPED)
        order.verify_payment()
        assert order.status == OrderStatus.SHIPPED.value

    def test_cash_on_delivery_cannot_be_verified(self):
        with pytest.raises(InvalidTransition):
            _place().verify_payment()

    def test_requires_references(self):
        order = _place(PaymentMethod.NAGAD.value)
        with pytest.raises(InvalidTransition):
            order.verify_payment()

    def test_only_from_pending(self):
        order = _mobile_payment_order()
        order.verify_payment()
        with pytest.raises(InvalidTransition):
            order.verify_payment()


class TestRejectPayment:
    def test_fails_payment_and_cancels(self):
        order = _mobile_payment_order()
        assert order.reject_payment("Transaction not found") is True
        assert order.payment_status == PaymentStatus.FAILED.value
        assert order.status == OrderStatus.CANCELLED.value
        assert any(isinstance(event, PaymentRejected) for event in order._events)

    def test_appends_reason_to_note(self):
        order = _mobile_payment_order()
        order.admin_note = "Called customer"
        order.reject_payment("Wrong amount")
        assert order.admin_note == "Called customer\nPayment rejected: Wrong amount"

    def test_already_cancelled_needs_no_restock(self):
        order = _mobile_payment_order()
        order.change_status(OrderStatus.CANCELLED)
        assert order.reject_payment() is False
        assert order.admin_note is None
