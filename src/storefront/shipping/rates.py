"""Shipping rate resolution by zone, with a free-shipping threshold."""

from enum import Enum

# Cities served from the hub warehouse at the inside rate
HUB_CITIES = frozenset({"dhaka", "gazipur", "narayanganj"})


class ShippingZone(Enum):
    INSIDE_HUB = "inside-hub"
    OUTSIDE_HUB = "outside-hub"


def zone_for_city(city: str | None) -> ShippingZone:
    if city and city.strip().lower() in HUB_CITIES:
        return ShippingZone.INSIDE_HUB
    return ShippingZone.OUTSIDE_HUB


def parse_zone(value) -> ShippingZone:
    """Accept a ``ShippingZone`` or its string value."""
    if isinstance(value, ShippingZone):
        return value
    return ShippingZone(str(value).strip().lower())


def shipping_cost(zone, subtotal: float, *, rates: dict, free_shipping_minimum: float = 0) -> float:
    """Cost of shipping ``subtotal`` worth of goods to ``zone``.

    A ``free_shipping_minimum`` of 0 disables the free-shipping rule.
    """
    if free_shipping_minimum > 0 and subtotal >= free_shipping_minimum:
        return 0.0
    return float(rates[parse_zone(zone)])
