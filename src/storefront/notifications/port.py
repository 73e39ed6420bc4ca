"""Purchase tracking port (abstract interface).

Analytics and ad-attribution services are told about each committed order
through this contract. Adapters are called after the order is committed and
their failures never reach the shopper.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PurchaseEvent:
    """Normalized "Purchase" event for one committed order."""

    order_number: str
    value: float
    currency: str
    num_items: int
    content_ids: list[str]
    user_data: dict = field(default_factory=dict)
    event_name: str = "Purchase"

    def to_dict(self) -> dict:
        return {
            "event_name": self.event_name,
            "order_number": self.order_number,
            "value": self.value,
            "currency": self.currency,
            "num_items": self.num_items,
            "content_ids": list(self.content_ids),
            "user_data": dict(self.user_data),
        }


class PurchaseTracker(ABC):
    """Abstract purchase tracking interface."""

    @abstractmethod
    def track(self, event: PurchaseEvent) -> None:
        """Deliver ``event``; may raise on delivery failure."""
        ...
