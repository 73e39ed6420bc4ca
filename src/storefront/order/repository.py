"""Repository for the Order aggregate."""

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.repository(part_of=Order)
class OrderRepository:
    def find_by_number(self, order_number: str) -> Order | None:
        matches = self._dao.query.filter(order_number=str(order_number).strip()).all().items
        return matches[0] if matches else None

    def latest_from_origin(self, client_ip: str) -> Order | None:
        """Most recently created order placed from ``client_ip``."""
        matches = self._dao.query.filter(client_ip=client_ip).order_by("-created_at").limit(1).all().items
        return matches[0] if matches else None

    def number_taken(self, order_number: str) -> bool:
        return self._dao.query.filter(order_number=order_number).all().total > 0
