"""StoreSetting aggregate and the typed checkout configuration view.

Settings are stored as plain key/value strings, the same shape the admin
screen edits. Missing keys fall back to ``DEFAULT_SETTINGS``.
"""

from dataclasses import dataclass

from protean.fields import String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.shipping.rates import ShippingZone

DEFAULT_SETTINGS = {
    "shippingInsideHub": "80",
    "shippingOutsideHub": "130",
    "freeShippingMinimum": "2000",
    "orderCooldownEnabled": "false",
    "orderCooldownMinutes": "10",
    "currency": "BDT",
    "purchaseTrackingEnabled": "false",
    "purchaseTrackingHashContact": "true",
}


@storefront.aggregate
class StoreSetting:
    key = String(identifier=True, max_length=100)
    value = Text(default="")


def load_settings() -> dict[str, str]:
    """Return every known setting, stored values taking precedence."""
    stored = current_domain.repository_for(StoreSetting)._dao.query.all().items
    merged = dict(DEFAULT_SETTINGS)
    merged.update({record.key: record.value or "" for record in stored})
    return merged


def _as_int(values: dict, key: str) -> int:
    try:
        return int(float(values[key]))
    except (KeyError, TypeError, ValueError):
        return int(DEFAULT_SETTINGS[key])


def _as_bool(values: dict, key: str) -> bool:
    return str(values.get(key, DEFAULT_SETTINGS[key])).strip().lower() == "true"


@dataclass(frozen=True)
class CheckoutSettings:
    shipping_inside_hub: int
    shipping_outside_hub: int
    free_shipping_minimum: int
    cooldown_enabled: bool
    cooldown_minutes: int
    currency: str
    tracking_enabled: bool
    tracking_hash_contact: bool

    @classmethod
    def from_values(cls, values: dict[str, str]) -> "CheckoutSettings":
        return cls(
            shipping_inside_hub=_as_int(values, "shippingInsideHub"),
            shipping_outside_hub=_as_int(values, "shippingOutsideHub"),
            free_shipping_minimum=_as_int(values, "freeShippingMinimum"),
            cooldown_enabled=_as_bool(values, "orderCooldownEnabled"),
            cooldown_minutes=_as_int(values, "orderCooldownMinutes"),
            currency=values.get("currency") or DEFAULT_SETTINGS["currency"],
            tracking_enabled=_as_bool(values, "purchaseTrackingEnabled"),
            tracking_hash_contact=_as_bool(values, "purchaseTrackingHashContact"),
        )

    @classmethod
    def load(cls) -> "CheckoutSettings":
        return cls.from_values(load_settings())

    @property
    def zone_rates(self) -> dict:
        return {
            ShippingZone.INSIDE_HUB: self.shipping_inside_hub,
            ShippingZone.OUTSIDE_HUB: self.shipping_outside_hub,
        }
