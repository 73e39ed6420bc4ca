"""Order lifecycle: status changes, payment review and deletion.

Cancelling an order (directly, or by rejecting its payment) puts its stock
back in the same unit of work. A cancelled order is never restocked a
second time because cancelled is terminal. Deleting an order that is not
cancelled restocks it first.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.exceptions import OrderNotFound
from storefront.inventory.ledger import restore_items
from storefront.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)


@storefront.command(part_of="Order")
class VerifyPayment:
    order_id = Identifier(required=True)


@storefront.command(part_of="Order")
class RejectPayment:
    order_id = Identifier(required=True)
    reason = Text()


@storefront.command(part_of="Order")
class DeleteOrder:
    order_id = Identifier(required=True)


def _load(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise OrderNotFound(str(order_id)) from exc


@storefront.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        order = _load(command.order_id)
        previous = order.status
        if order.change_status(OrderStatus(command.status)):
            restore_items(order.items)
            logger.info("order_stock_restored", order_number=order.order_number, items=len(order.items))
        current_domain.repository_for(Order).add(order)
        logger.info("order_status_changed", order_number=order.order_number, previous=previous, status=order.status)
        return order.status

    @handle(VerifyPayment)
    def verify_payment(self, command):
        order = _load(command.order_id)
        order.verify_payment()
        current_domain.repository_for(Order).add(order)
        logger.info("order_payment_verified", order_number=order.order_number)
        return order.payment_status

    @handle(RejectPayment)
    def reject_payment(self, command):
        order = _load(command.order_id)
        if order.reject_payment(command.reason):
            restore_items(order.items)
        current_domain.repository_for(Order).add(order)
        logger.info("order_payment_rejected", order_number=order.order_number, reason=command.reason)
        return order.payment_status

    @handle(DeleteOrder)
    def delete_order(self, command):
        order = _load(command.order_id)
        if not order.is_cancelled:
            restore_items(order.items)

        repo = current_domain.repository_for(Order)
        order.mark_deleted()
        for item in list(order.items):
            order.remove_items(item)
        repo.add(order)
        repo._dao.delete(order)
        logger.info("order_deleted", order_number=order.order_number, status=order.status)
        return str(order.id)
