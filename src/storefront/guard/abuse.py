"""Abuse guard: ban list and per-origin cooldown.

``enforce_origin_policy`` is the gate run inside the placement unit of
work. ``checkout_eligibility`` is the pre-flight query for the checkout
page; it runs the very same gate and reports the outcome instead of raising.
"""

import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from protean.utils.globals import current_domain

from storefront.exceptions import CooldownActive, OriginBanned
from storefront.guard.banned_ip import is_banned, normalize_ip
from storefront.order.order import Order
from storefront.settings.setting import CheckoutSettings


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=UTC)


def cooldown_remaining(client_ip: str, cooldown_minutes: int, now: datetime | None = None) -> int:
    """Seconds left before ``client_ip`` may order again, 0 when it may order now."""
    latest = current_domain.repository_for(Order).latest_from_origin(client_ip)
    if latest is None or latest.created_at is None:
        return 0

    now = now or datetime.now(UTC)
    window = timedelta(minutes=cooldown_minutes)
    elapsed = now - _aware(latest.created_at)
    if elapsed >= window:
        return 0
    return max(1, math.ceil((window - elapsed).total_seconds()))


def enforce_origin_policy(
    client_ip: str | None, settings: CheckoutSettings | None = None, now: datetime | None = None
) -> None:
    """Raise ``OriginBanned`` or ``CooldownActive`` when ``client_ip`` may not order.

    Requests without a known origin pass both checks.
    """
    client_ip = normalize_ip(client_ip)
    if not client_ip:
        return

    if is_banned(client_ip):
        raise OriginBanned(client_ip)

    settings = settings or CheckoutSettings.load()
    if settings.cooldown_enabled and settings.cooldown_minutes > 0:
        remaining = cooldown_remaining(client_ip, settings.cooldown_minutes, now)
        if remaining > 0:
            raise CooldownActive(remaining, settings.cooldown_minutes)


@dataclass(frozen=True)
class Eligibility:
    allowed: bool
    error: str | None = None
    code: str | None = None
    cooldown_remaining_seconds: int | None = None
    cooldown_minutes: int | None = None

    def to_dict(self) -> dict:
        result = {"allowed": self.allowed}
        if self.error is not None:
            result["error"] = self.error
        if self.code is not None:
            result["code"] = self.code
        if self.cooldown_remaining_seconds is not None:
            result["cooldownRemainingSeconds"] = self.cooldown_remaining_seconds
        if self.cooldown_minutes is not None:
            result["cooldownMinutes"] = self.cooldown_minutes
        return result


def checkout_eligibility(client_ip: str | None, now: datetime | None = None) -> Eligibility:
    try:
        enforce_origin_policy(client_ip, now=now)
    except OriginBanned as exc:
        return Eligibility(allowed=False, error=exc.message, code=exc.code)
    except CooldownActive as exc:
        return Eligibility(
            allowed=False,
            error=exc.message,
            code=exc.code,
            cooldown_remaining_seconds=exc.remaining_seconds,
            cooldown_minutes=exc.cooldown_minutes,
        )
    return Eligibility(allowed=True)
