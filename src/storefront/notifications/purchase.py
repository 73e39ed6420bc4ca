"""Purchase event construction and best-effort delivery.

Contact details are normalized before hashing so the same shopper always
produces the same digest: emails are trimmed and lower-cased, phone numbers
reduced to digits with the 880 country code.
"""

import hashlib
import re

import structlog

from storefront.notifications import get_tracker
from storefront.notifications.port import PurchaseEvent
from storefront.settings.setting import CheckoutSettings

logger = structlog.get_logger(__name__)

COUNTRY_CODE = "880"


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def normalize_phone(phone: str | None, country_code: str = COUNTRY_CODE) -> str:
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) == 11 and digits.startswith("0"):
        return country_code + digits[1:]
    if len(digits) == 10 and digits.startswith("1"):
        return country_code + digits
    if len(digits) >= 10 and not digits.startswith(country_code):
        return country_code + digits
    return digits


def sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def build_user_data(email=None, phone=None, client_ip=None, hash_contact: bool = True) -> dict:
    user_data = {}
    email = normalize_email(email)
    phone = normalize_phone(phone)
    if email:
        user_data["em"] = [sha256(email)] if hash_contact else [email]
    if phone:
        user_data["ph"] = [sha256(phone)] if hash_contact else [phone]
    if client_ip:
        user_data["client_ip_address"] = client_ip
    return user_data


def build_purchase_event(order, settings: CheckoutSettings) -> PurchaseEvent:
    content_ids = list(dict.fromkeys(str(item.product_id) for item in order.items))
    return PurchaseEvent(
        order_number=order.order_number,
        value=order.total,
        currency=settings.currency,
        num_items=order.item_count,
        content_ids=content_ids,
        user_data=build_user_data(
            email=order.email,
            phone=order.phone,
            client_ip=order.client_ip,
            hash_contact=settings.tracking_hash_contact,
        ),
    )


def notify_purchase(order, settings: CheckoutSettings | None = None) -> bool:
    """Send the purchase event for a committed order.

    Returns whether the event was delivered. Never raises: the order is
    already committed and tracking is advisory.
    """
    try:
        settings = settings or CheckoutSettings.load()
        if not settings.tracking_enabled:
            return False
        get_tracker().track(build_purchase_event(order, settings))
    except Exception as exc:
        logger.warning(
            "purchase_tracking_failed",
            order_number=order.order_number,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return False
    return True
