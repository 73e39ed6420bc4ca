"""Application tests for status changes, payment review and order deletion."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from storefront.exceptions import InvalidTransition, OrderNotFound
from storefront.order.lifecycle import DeleteOrder, RejectPayment, UpdateOrderStatus, VerifyPayment
from storefront.order.order import Order, OrderStatus, PaymentStatus
from storefront.order.placement import place_order


@pytest.fixture
def stocked(make_product, make_variable_product):
    simple = make_product(title="Panjabi", regular_price=350.0, stock=10)
    variable = make_variable_product(variants=[("Black", "M", 5, None)])
    return simple, variable


@pytest.fixture
def placed(stocked, checkout):
    """An order for 2 simple units and 1 variant unit."""

    def _place(**overrides):
        simple, variable = stocked
        outcome = place_order(
            checkout(
                {"product_id": str(simple.id), "quantity": 2},
                {"product_id": str(variable.id), "quantity": 1, "color": "Black", "size": "M"},
                **overrides,
            )
        )
        return current_domain.repository_for(Order).get(outcome.order_id)

    return _place


def _stock(stocked, fresh):
    simple, variable = stocked
    return fresh(simple).stock, fresh(variable).variants[0].stock


def _set_status(order, status):
    return current_domain.process(UpdateOrderStatus(order_id=order.id, status=status), asynchronous=False)


class TestStatusChanges:
    def test_move_through_fulfilment(self, placed, stocked, fresh):
        order = placed()
        for status in ("confirmed", "processing", "shipped", "delivered"):
            assert _set_status(order, status) == status

        assert fresh(order).status == OrderStatus.DELIVERED.value
        assert _stock(stocked, fresh) == (8, 4)

    def test_cancel_after_processing_restores_stock_once(self, placed, stocked, fresh):
        order = placed()
        _set_status(order, "processing")

        _set_status(order, "cancelled")
        _set_status(order, "cancelled")

        assert fresh(order).status == OrderStatus.CANCELLED.value
        assert _stock(stocked, fresh) == (10, 5)

    def test_cancelled_order_cannot_be_reopened(self, placed, stocked, fresh):
        order = placed()
        _set_status(order, "cancelled")

        with pytest.raises(InvalidTransition):
            _set_status(order, "pending")

        assert _stock(stocked, fresh) == (10, 5)

    def test_unknown_status_rejected(self, placed):
        with pytest.raises(ValidationError):
            UpdateOrderStatus(order_id=placed().id, status="lost")

    def test_unknown_order(self):
        with pytest.raises(OrderNotFound):
            current_domain.process(UpdateOrderStatus(order_id="missing-order", status="shipped"), asynchronous=False)

    def test_restock_skips_deleted_product(self, placed, stocked, fresh):
        simple, variable = stocked
        order = placed()
        current_domain.repository_for(type(simple))._dao.delete(fresh(simple))

        _set_status(order, "cancelled")

        assert fresh(variable).variants[0].stock == 5


class TestPaymentReview:
    def test_verify_mobile_payment(self, placed, fresh):
        order = placed(payment_method="bkash", sender_number="01811111111", transaction_id="TXN1")

        result = current_domain.process(VerifyPayment(order_id=order.id), asynchronous=False)

        assert result == PaymentStatus.PAID.value
        order = fresh(order)
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.status == OrderStatus.PROCESSING.value

    def test_cash_on_delivery_not_verifiable(self, placed):
        order = placed()
        with pytest.raises(InvalidTransition):
            current_domain.process(VerifyPayment(order_id=order.id), asynchronous=False)

    def test_reject_cancels_and_restores(self, placed, stocked, fresh):
        order = placed(payment_method="rocket", sender_number="01811111111", transaction_id="TXN2")

        current_domain.process(RejectPayment(order_id=order.id, reason="No such transaction"), asynchronous=False)

        order = fresh(order)
        assert order.payment_status == PaymentStatus.FAILED.value
        assert order.status == OrderStatus.CANCELLED.value
        assert order.admin_note == "Payment rejected: No such transaction"
        assert _stock(stocked, fresh) == (10, 5)

    def test_reject_after_cancel_does_not_restock_again(self, placed, stocked, fresh):
        order = placed(payment_method="bkash", sender_number="01811111111", transaction_id="TXN3")
        _set_status(order, "cancelled")

        current_domain.process(RejectPayment(order_id=order.id), asynchronous=False)

        assert _stock(stocked, fresh) == (10, 5)


class TestDeleteOrder:
    def test_delete_active_order_restores_stock(self, placed, stocked, fresh):
        order = placed()

        current_domain.process(DeleteOrder(order_id=order.id), asynchronous=False)

        with pytest.raises(ObjectNotFoundError):
            fresh(order)
        assert _stock(stocked, fresh) == (10, 5)

    def test_delete_cancelled_order_does_not_restock_twice(self, placed, stocked, fresh):
        order = placed()
        _set_status(order, "cancelled")

        current_domain.process(DeleteOrder(order_id=order.id), asynchronous=False)

        assert _stock(stocked, fresh) == (10, 5)
