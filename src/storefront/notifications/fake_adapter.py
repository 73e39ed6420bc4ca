"""Recording purchase tracker for development and testing.

Keeps every event it receives and can be told to fail, which lets tests
prove that a broken tracker never affects a committed order.
"""

from storefront.notifications.port import PurchaseEvent, PurchaseTracker


class FakePurchaseTracker(PurchaseTracker):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Tracking endpoint unreachable"
        self.events: list[PurchaseEvent] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Tracking endpoint unreachable") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def track(self, event: PurchaseEvent) -> None:
        if not self.should_succeed:
            raise ConnectionError(self.failure_reason)
        self.events.append(event)
