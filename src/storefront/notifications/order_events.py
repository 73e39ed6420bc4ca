"""Purchase tracking reacts to committed orders.

``OrderPlaced`` reaches this handler only after the placement unit of work
has committed, so a tracking failure can never undo an order.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.notifications.purchase import notify_purchase
from storefront.order.events import OrderPlaced
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.event_handler(part_of=Order)
class PurchaseTrackingHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        try:
            order = current_domain.repository_for(Order).get(event.order_id)
        except ObjectNotFoundError:
            logger.warning("purchase_tracking_skipped_missing_order", order_number=event.order_number)
            return
        notify_purchase(order)
