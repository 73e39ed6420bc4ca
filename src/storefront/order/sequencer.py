"""Order sequencer.

Order numbers come from a single ``OrderCounter`` aggregate that is read and
written in the same unit of work as the order insert. Two placements that
read the same counter value collide on the counter's version (and on the
unique ``order_number`` column); the loser is rolled back and retried by
the placement boundary. Numbers are therefore unique and increasing, and a
rolled-back attempt may leave a gap.
"""

from protean.exceptions import ObjectNotFoundError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order

ORDER_NUMBER_BASE = 2000
COUNTER_NAME = "order_number"


@storefront.aggregate
class OrderCounter:
    name = String(identifier=True, max_length=50)
    last_value = Integer(default=ORDER_NUMBER_BASE - 1)

    def advance(self) -> int:
        self.last_value = max(ORDER_NUMBER_BASE, (self.last_value or 0) + 1)
        return self.last_value


def next_order_number() -> str:
    """Allocate the next order number inside the current unit of work."""
    repo = current_domain.repository_for(OrderCounter)
    try:
        counter = repo.get(COUNTER_NAME)
    except ObjectNotFoundError:
        counter = OrderCounter(name=COUNTER_NAME)

    orders = current_domain.repository_for(Order)
    number = str(counter.advance())
    # Orders imported with explicit numbers may sit ahead of the counter
    while orders.number_taken(number):
        number = str(counter.advance())

    repo.add(counter)
    return number

