"""Order placement: command, handler, and the checkout boundary.

``PlaceOrderHandler`` does all of the work inside one unit of work:

    1. resolve the cart against current catalog state
    2. apply the abuse guard (ban list, cooldown)
    3. compute the subtotal
    4. evaluate the coupon and the shipping rate
    5. compute the total
    6. withdraw stock for every item and count the coupon use
    7. allocate the next order number
    8. store the stock, coupon and order changes

Any exception aborts the unit of work, so nothing of a failed attempt is
kept. ``place_order`` is what callers use: it validates input, runs the
command, retries attempts that lost a write race, and turns every failure
into a ``PlacementFailed`` result instead of raising.
"""

import json
import re
from dataclasses import dataclass, field

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.cart.resolution import CartLine, cart_subtotal, resolve_cart, validate_cart_lines
from storefront.catalogue.product import Product
from storefront.coupon.coupon import Coupon
from storefront.coupon.discount import evaluate_coupon
from storefront.domain import storefront
from storefront.exceptions import (
    CooldownActive,
    OriginBanned,
    ResolutionError,
    SequencingConflict,
    StoreUnavailable,
)
from storefront.guard.abuse import enforce_origin_policy
from storefront.guard.banned_ip import normalize_ip
from storefront.guard.origin import record_origin_order
from storefront.inventory.ledger import withdraw_items
from storefront.order.order import Order, PaymentMethod
from storefront.order.sequencer import next_order_number
from storefront.settings.setting import CheckoutSettings
from storefront.shipping.rates import ShippingZone, parse_zone, shipping_cost, zone_for_city

logger = structlog.get_logger(__name__)

MAX_ATTEMPTS = 3

_PHONE = re.compile(r"^[0-9+]+$")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# ---------------------------------------------------------------------------
# Command and handler
# ---------------------------------------------------------------------------
@storefront.command(part_of="Order")
class PlaceOrder:
    items = Text(required=True)  # JSON: list of cart line dicts
    full_name = String(required=True, max_length=255)
    phone = String(required=True, max_length=30)
    alt_phone = String(max_length=30)
    email = String(max_length=254)
    address = Text(required=True)
    city = String(max_length=100)
    delivery_note = Text()
    shipping_zone = String(max_length=20)
    payment_method = String(required=True, max_length=20)
    sender_number = String(max_length=30)
    transaction_id = String(max_length=100)
    coupon_code = String(max_length=50)
    user_id = Identifier()
    client_ip = String(max_length=45)


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        lines = [CartLine.from_dict(line) for line in json.loads(command.items)]
        items = resolve_cart(lines)

        settings = CheckoutSettings.load()
        enforce_origin_policy(command.client_ip, settings)

        subtotal = cart_subtotal(items)
        discount = evaluate_coupon(command.coupon_code, subtotal)
        zone = parse_zone(command.shipping_zone) if command.shipping_zone else zone_for_city(command.city)
        shipping = shipping_cost(
            zone,
            subtotal,
            rates=settings.zone_rates,
            free_shipping_minimum=settings.free_shipping_minimum,
        )

        # Every check that can refuse the order runs before the first write
        coupon = None
        if discount is not None:
            coupon = current_domain.repository_for(Coupon).get(discount.coupon_id)
            coupon.record_use()
        products = withdraw_items(items)

        order_number = next_order_number()
        order = Order.place(
            order_number=order_number,
            items=items,
            customer={
                "full_name": command.full_name.strip(),
                "phone": command.phone.strip(),
                "alt_phone": command.alt_phone or None,
                "email": command.email or None,
                "address": command.address.strip(),
                "city": command.city,
                "delivery_note": command.delivery_note or None,
            },
            shipping_zone=zone,
            subtotal=subtotal,
            discount_amount=discount.amount if discount else 0.0,
            shipping_cost=shipping,
            payment_method=command.payment_method,
            user_id=command.user_id,
            coupon_id=discount.coupon_id if discount else None,
            coupon_code=discount.code if discount else None,
            client_ip=command.client_ip,
            sender_number=command.sender_number,
            transaction_id=command.transaction_id,
        )

        for product in products:
            current_domain.repository_for(Product).add(product)
        if coupon is not None:
            current_domain.repository_for(Coupon).add(coupon)
        record_origin_order(command.client_ip, order.created_at)
        try:
            current_domain.repository_for(Order).add(order)
        except ValidationError as exc:
            if "order_number" in exc.messages:
                raise SequencingConflict(order_number) from exc
            raise

        return {"order_id": str(order.id), "order_number": order.order_number}


# ---------------------------------------------------------------------------
# Checkout boundary
# ---------------------------------------------------------------------------
@dataclass
class CheckoutRequest:
    items: list[CartLine]
    full_name: str
    phone: str
    address: str
    payment_method: str = PaymentMethod.COD.value
    city: str | None = None
    shipping_zone: str | None = None
    email: str | None = None
    alt_phone: str | None = None
    delivery_note: str | None = None
    sender_number: str | None = None
    transaction_id: str | None = None
    coupon_code: str | None = None
    user_id: str | None = None
    client_ip: str | None = None

    def to_command(self) -> PlaceOrder:
        return PlaceOrder(
            items=json.dumps([line.to_dict() for line in self.items]),
            full_name=self.full_name,
            phone=self.phone,
            alt_phone=self.alt_phone,
            email=self.email,
            address=self.address,
            city=self.city,
            delivery_note=self.delivery_note,
            shipping_zone=self.shipping_zone,
            payment_method=(self.payment_method or "").strip().lower(),
            sender_number=self.sender_number,
            transaction_id=self.transaction_id,
            coupon_code=self.coupon_code,
            user_id=self.user_id,
            client_ip=normalize_ip(self.client_ip) or None,
        )


def validate_checkout(request: CheckoutRequest) -> None:
    """Reject malformed checkout input before any store access."""
    validate_cart_lines(request.items)

    errors = {}
    full_name = (request.full_name or "").strip()
    if not 2 <= len(full_name) <= 100:
        errors["full_name"] = ["Name must be between 2 and 100 characters"]

    phone = (request.phone or "").strip()
    if not _PHONE.match(phone) or not 11 <= len(phone) <= 14:
        errors["phone"] = ["Please enter a valid phone number"]
    if request.alt_phone and not _PHONE.match(request.alt_phone.strip()):
        errors["alt_phone"] = ["Please enter a valid phone number"]
    if request.email and not _EMAIL.match(request.email.strip()):
        errors["email"] = ["Please enter a valid email"]

    address = (request.address or "").strip()
    if not 10 <= len(address) <= 500:
        errors["address"] = ["Please enter a detailed address"]
    if request.delivery_note and len(request.delivery_note) > 500:
        errors["delivery_note"] = ["Note is too long"]

    if request.shipping_zone:
        try:
            ShippingZone(request.shipping_zone.strip().lower())
        except ValueError:
            errors["shipping_zone"] = ["Shipping zone must be inside-hub or outside-hub"]
    elif not (request.city or "").strip():
        errors["city"] = ["Please select a city"]

    method = (request.payment_method or "").strip().lower()
    if method not in {m.value for m in PaymentMethod}:
        errors["payment_method"] = ["Please choose a payment method"]
    elif method != PaymentMethod.COD.value:
        if not (request.sender_number or "").strip():
            errors["sender_number"] = ["Sender number is required for mobile payments"]
        if not (request.transaction_id or "").strip():
            errors["transaction_id"] = ["Transaction ID is required for mobile payments"]

    if errors:
        raise ValidationError(errors)


@dataclass(frozen=True)
class PlacementSucceeded:
    order_id: str
    order_number: str

    def to_dict(self) -> dict:
        return {"orderId": self.order_id, "orderNumber": self.order_number}


@dataclass(frozen=True)
class PlacementFailed:
    error: str
    kind: str  # validation | resolution | guard | unavailable
    code: str | None = None
    cooldown_remaining_seconds: int | None = None
    cooldown_minutes: int | None = None
    details: dict = field(default_factory=dict)

    @classmethod
    def from_validation(cls, exc: ValidationError) -> "PlacementFailed":
        messages = exc.messages if isinstance(exc.messages, dict) else {"input": [str(exc.messages)]}
        first = next((msgs[0] if isinstance(msgs, list) else msgs for msgs in messages.values()), "Invalid input")
        return cls(error=str(first), kind="validation", details=messages)

    @classmethod
    def from_guard(cls, exc: OriginBanned | CooldownActive) -> "PlacementFailed":
        return cls(
            error=exc.message,
            kind="guard",
            code=exc.code,
            cooldown_remaining_seconds=getattr(exc, "remaining_seconds", None),
            cooldown_minutes=getattr(exc, "cooldown_minutes", None),
        )

    def to_dict(self) -> dict:
        result = {"error": self.error}
        if self.code is not None:
            result["code"] = self.code
        if self.cooldown_remaining_seconds is not None:
            result["cooldownRemainingSeconds"] = self.cooldown_remaining_seconds
        if self.cooldown_minutes is not None:
            result["cooldownMinutes"] = self.cooldown_minutes
        return result


def place_order(request: CheckoutRequest) -> PlacementSucceeded | PlacementFailed:
    """Place an order for ``request``; never raises for business failures."""
    try:
        validate_checkout(request)
    except ValidationError as exc:
        return PlacementFailed.from_validation(exc)

    log = logger.bind(client_ip=request.client_ip, lines=len(request.items))
    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            result = current_domain.process(request.to_command(), asynchronous=False)
        except (OriginBanned, CooldownActive) as exc:
            log.warning("order_rejected_by_guard", code=exc.code)
            return PlacementFailed.from_guard(exc)
        except ResolutionError as exc:
            log.warning("order_resolution_failed", product_id=exc.product_id, error=exc.message)
            return PlacementFailed(error=exc.message, kind="resolution")
        except (SequencingConflict, ExpectedVersionError) as exc:
            log.warning("order_write_conflict", attempt=attempt, error=str(exc))
            continue
        except ValidationError as exc:
            if "order_number" in exc.messages:
                log.warning("order_write_conflict", attempt=attempt, error=str(exc.messages))
                continue
            log.warning("order_validation_failed", errors=exc.messages)
            return PlacementFailed.from_validation(exc)
        except StoreUnavailable as exc:
            log.error("order_store_unavailable", error=exc.message)
            return PlacementFailed(error=exc.message, kind="unavailable")
        except Exception:
            log.exception("order_placement_error", attempt=attempt)
            return PlacementFailed(error=StoreUnavailable().message, kind="unavailable")

        log.info("order_placed", order_id=result["order_id"], order_number=result["order_number"], attempt=attempt)
        return PlacementSucceeded(order_id=result["order_id"], order_number=result["order_number"])

    log.error("order_placement_retries_exhausted", attempts=MAX_ATTEMPTS)
    return PlacementFailed(error=StoreUnavailable().message, kind="unavailable")
