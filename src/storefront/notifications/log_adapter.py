"""Purchase tracker that writes each event to the structured log.

Used when no external tracking service is configured; log shippers can
forward the ``purchase_tracked`` records to an analytics pipeline.
"""

import structlog

from storefront.notifications.port import PurchaseEvent, PurchaseTracker

logger = structlog.get_logger(__name__)


class LogPurchaseTracker(PurchaseTracker):
    def track(self, event: PurchaseEvent) -> None:
        logger.info("purchase_tracked", **event.to_dict())
