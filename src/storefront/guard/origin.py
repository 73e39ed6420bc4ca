"""OriginActivity aggregate: one record per ordering network address.

Every placement from a known address rewrites that address's record in
the same unit of work as the order. Two simultaneous placements from one
address therefore conflict on the record's version, and the retried loser
sees the winner's order when it re-runs the cooldown check.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront


@storefront.aggregate
class OriginActivity:
    ip_address = String(identifier=True, max_length=45)
    order_count = Integer(default=0, min_value=0)
    last_order_at = DateTime()

    def record_order(self, at: datetime | None = None):
        self.order_count = (self.order_count or 0) + 1
        self.last_order_at = at or datetime.now(UTC)


def record_origin_order(client_ip: str | None, at: datetime | None = None) -> OriginActivity | None:
    if not client_ip:
        return None

    repo = current_domain.repository_for(OriginActivity)
    try:
        activity = repo.get(client_ip)
    except ObjectNotFoundError:
        activity = OriginActivity(ip_address=client_ip)
    activity.record_order(at)
    repo.add(activity)
    return activity
