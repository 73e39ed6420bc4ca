import json

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture
from storefront.cart.resolution import CartLine
from storefront.catalogue.product import Product, ProductKind
from storefront.coupon.coupon import Coupon
from storefront.notifications import set_tracker
from storefront.notifications.fake_adapter import FakePurchaseTracker
from storefront.order.placement import CheckoutRequest
from storefront.settings.management import UpdateSettings


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


# ---------------------------------------------------------------------------
# Catalog and coupon seeding
# ---------------------------------------------------------------------------
@pytest.fixture
def make_product():
    def _make(title="Cotton Panjabi", regular_price=350.0, stock=10, **overrides):
        product = Product(title=title, regular_price=regular_price, stock=stock, **overrides)
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture
def make_variable_product():
    """Create a variable product; ``variants`` is a list of (color, size, stock, price)."""

    def _make(title="Denim Jacket", regular_price=1200.0, variants=(("Black", "M", 5, None),), **overrides):
        product = Product(title=title, regular_price=regular_price, kind=ProductKind.VARIABLE.value, **overrides)
        for color, size, stock, price in variants:
            product.add_variant({"color": color, "size": size}, stock=stock, price=price)
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture
def make_coupon():
    def _make(code="SAVE10", coupon_type="percent", value=10.0, **overrides):
        coupon = Coupon.create(code=code, coupon_type=coupon_type, value=value, **overrides)
        current_domain.repository_for(Coupon).add(coupon)
        return coupon

    return _make


@pytest.fixture
def configure():
    def _configure(**values):
        current_domain.process(UpdateSettings(values=json.dumps(values)), asynchronous=False)

    return _configure


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
@pytest.fixture
def checkout():
    """Build a valid cash-on-delivery checkout for the given cart lines."""

    def _checkout(*lines, **overrides):
        fields = {
            "items": [CartLine.from_dict(line) for line in lines],
            "full_name": "Rahim Uddin",
            "phone": "01712345678",
            "address": "House 12, Road 5, Dhanmondi",
            "city": "dhaka",
            "payment_method": "cod",
        }
        fields.update(overrides)
        return CheckoutRequest(**fields)

    return _checkout


@pytest.fixture
def tracker():
    fake = FakePurchaseTracker()
    set_tracker(fake)
    return fake


def reload(aggregate):
    return current_domain.repository_for(type(aggregate)).get(aggregate.id)


@pytest.fixture
def fresh():
    """Reload an aggregate from its repository."""
    return reload
