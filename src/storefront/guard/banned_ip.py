"""BannedIp aggregate: the ban list keyed by network address."""

import re
from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront

_IPV4 = re.compile(r"^(?:[0-9]{1,3}\.){3}[0-9]{1,3}$")
_IPV6_LIKE = re.compile(r"^[a-fA-F0-9:.]+$")


def normalize_ip(ip: str | None) -> str:
    return (ip or "").strip()


def is_valid_ip(ip: str | None) -> bool:
    ip = normalize_ip(ip)
    if not ip or len(ip) > 45:
        return False
    if _IPV4.match(ip):
        return True
    return ":" in ip and bool(_IPV6_LIKE.match(ip))


@storefront.aggregate
class BannedIp:
    ip_address = String(identifier=True, max_length=45)
    reason = Text()
    created_at = DateTime(default=lambda: datetime.now(UTC))


def is_banned(ip: str | None) -> bool:
    ip = normalize_ip(ip)
    if not ip:
        return False
    try:
        current_domain.repository_for(BannedIp).get(ip)
    except ObjectNotFoundError:
        return False
    return True
