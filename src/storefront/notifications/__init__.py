"""Purchase tracker factory.

Provides get_tracker() / set_tracker() to swap implementations:
- LogPurchaseTracker by default
- FakePurchaseTracker for tests
"""

from storefront.notifications.log_adapter import LogPurchaseTracker
from storefront.notifications.port import PurchaseTracker

_current_tracker: PurchaseTracker | None = None


def get_tracker() -> PurchaseTracker:
    """Return the current purchase tracker. Defaults to LogPurchaseTracker."""
    global _current_tracker
    if _current_tracker is None:
        _current_tracker = LogPurchaseTracker()
    return _current_tracker


def set_tracker(tracker: PurchaseTracker) -> None:
    global _current_tracker
    _current_tracker = tracker


def reset_tracker() -> None:
    global _current_tracker
    _current_tracker = None
