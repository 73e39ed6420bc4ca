"""BDD tests for order placement: totals, stock, coupons and the abuse guard."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when
from storefront.coupon.coupon import Coupon
from storefront.guard.management import BanIp
from storefront.order.lifecycle import UpdateOrderStatus
from storefront.order.order import Order
from storefront.order.placement import PlacementFailed, PlacementSucceeded, place_order

scenarios("features/order_placement.feature")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def shop():
    """Products, outcomes and the latest order for the running scenario."""
    return {"outcomes": []}


def _order(shop):
    outcome = shop["outcomes"][-1]
    assert isinstance(outcome, PlacementSucceeded)
    return current_domain.repository_for(Order).get(outcome.order_id)


def _variant(product, color, size):
    return next(v for v in product.variants if v.matches(color, size))


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("inside-hub shipping costs {rate:d} and free shipping starts at {minimum:d}"))
def shipping_rates(configure, rate, minimum):
    configure(shippingInsideHub=str(rate), freeShippingMinimum=str(minimum))


@given(parsers.cfparse("a simple product priced at {price:d} with {stock:d} in stock"))
def simple_product(shop, make_product, price, stock):
    shop["simple"] = make_product(regular_price=float(price), stock=stock)


@given(parsers.cfparse('a variable product with a "{color}" "{size}" variant and {stock:d} in stock'))
def variable_product(shop, make_variable_product, color, size, stock):
    shop["variable"] = make_variable_product(variants=[(color, size, stock, None)])


@given(parsers.cfparse('a {percent:d} percent coupon "{code}"'))
def percent_coupon(make_coupon, percent, code):
    make_coupon(code=code, coupon_type="percent", value=float(percent))


@given(parsers.cfparse('the network "{ip}" is banned'))
def banned_network(ip):
    current_domain.process(BanIp(ip_address=ip, reason="Fake orders"), asynchronous=False)


@given(parsers.cfparse("the shopper has ordered {quantity:d} of the simple product"))
def existing_order(shop, checkout, quantity):
    shop["outcomes"].append(place_order(checkout({"product_id": str(shop["simple"].id), "quantity": quantity})))


@given("the order is processing")
def order_processing(shop):
    order = _order(shop)
    current_domain.process(UpdateOrderStatus(order_id=order.id, status="processing"), asynchronous=False)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("the shopper orders {quantity:d} of the simple product inside the hub"))
def order_simple(shop, checkout, quantity):
    line = {"product_id": str(shop["simple"].id), "quantity": quantity}
    shop["outcomes"].append(place_order(checkout(line, shipping_zone="inside-hub")))


@when(parsers.cfparse('the shopper orders {quantity:d} of the simple product inside the hub with coupon "{code}"'))
def order_simple_with_coupon(shop, checkout, quantity, code):
    line = {"product_id": str(shop["simple"].id), "quantity": quantity}
    shop["outcomes"].append(place_order(checkout(line, shipping_zone="inside-hub", coupon_code=code)))


@when(parsers.cfparse('the shopper orders {quantity:d} of the simple product from "{ip}" with coupon "{code}"'))
def order_simple_from(shop, checkout, quantity, ip, code):
    line = {"product_id": str(shop["simple"].id), "quantity": quantity}
    shop["outcomes"].append(place_order(checkout(line, client_ip=ip, coupon_code=code)))


@when(parsers.cfparse('two shoppers each order {quantity:d} of the "{color}" "{size}" variant'))
def two_shoppers(shop, checkout, quantity, color, size):
    line = {"product_id": str(shop["variable"].id), "quantity": quantity, "color": color, "size": size}
    for ip in ("203.0.113.10", "203.0.113.11"):
        shop["outcomes"].append(place_order(checkout(line, client_ip=ip)))


@when("the order is cancelled twice")
def cancel_twice(shop):
    order = _order(shop)
    for _ in range(2):
        current_domain.process(UpdateOrderStatus(order_id=order.id, status="cancelled"), asynchronous=False)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the order is placed")
def order_placed(shop):
    assert isinstance(shop["outcomes"][-1], PlacementSucceeded)


@then(parsers.cfparse("the order subtotal is {amount:d}"))
def order_subtotal(shop, amount):
    assert _order(shop).subtotal == amount


@then(parsers.cfparse("the order shipping cost is {amount:d}"))
def order_shipping(shop, amount):
    assert _order(shop).shipping_cost == amount


@then(parsers.cfparse("the order discount is {amount:d}"))
def order_discount(shop, amount):
    assert _order(shop).discount_amount == amount


@then(parsers.cfparse("the order total is {amount:d}"))
def order_total(shop, amount):
    assert _order(shop).total == amount


@then(parsers.cfparse("the simple product has {stock:d} in stock"))
def simple_stock(shop, fresh, stock):
    assert fresh(shop["simple"]).stock == stock


@then(parsers.cfparse('the "{color}" "{size}" variant has {stock:d} in stock'))
def variant_stock(shop, fresh, color, size, stock):
    assert _variant(fresh(shop["variable"]), color, size).stock == stock


@then("exactly one order is placed")
def exactly_one(shop):
    placed = [o for o in shop["outcomes"] if isinstance(o, PlacementSucceeded)]
    assert len(placed) == 1
    assert current_domain.repository_for(Order)._dao.query.all().total == 1


@then(parsers.cfparse("the other shopper is told only {available:d} are left"))
def other_refused(shop, available):
    failed = [o for o in shop["outcomes"] if isinstance(o, PlacementFailed)]
    assert len(failed) == 1
    assert failed[0].kind == "resolution"
    assert failed[0].error.startswith(f"Only {available} left in stock")


@then(parsers.cfparse('the order is refused with code "{code}"'))
def refused_with_code(shop, code):
    outcome = shop["outcomes"][-1]
    assert isinstance(outcome, PlacementFailed)
    assert outcome.code == code


@then("no order exists")
def no_order():
    assert current_domain.repository_for(Order)._dao.query.all().total == 0


@then(parsers.cfparse('the coupon "{code}" has been used {count:d} time'))
@then(parsers.cfparse('the coupon "{code}" has been used {count:d} times'))
def coupon_used(code, count):
    assert current_domain.repository_for(Coupon).find_by_code(code).used_count == count
