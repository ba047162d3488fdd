"""Shared BDD fixtures and step definitions for storefront scenarios."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when
from storefront.catalogue.lookup import find_variant
from storefront.order.queries import get_by_order_id, get_by_tracking_number
from storefront.order.tracking import AppendTrackingStatus


@pytest.fixture()
def products():
    """Product ids by name."""
    return {}


@pytest.fixture()
def checkout():
    """What the scenario has done so far: payment order, order references, errors."""
    return {"payment": None, "orders": [], "error": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.parse('a product "{name}" priced {price:d} with {stock:d} units of {color}/{size}'))
def _(store, products, name, price, stock, color, size):
    products[name] = store.add_product(name=name, price=float(price), variants=((color, size, stock),))


@given(parsers.parse('an active coupon "{code}" for {percent:d} percent off orders of at least {minimum:d}'))
def _(store, code, percent, minimum):
    store.create_coupon(code=code, discount_percent=percent, min_order_value=float(minimum))


@given(parsers.parse('"{user_id}" has {quantity:d} "{name}" in the cart'))
def _(store, products, user_id, quantity, name):
    store.add_to_cart(user_id, products[name], quantity=quantity)


@given("a placed order", target_fixture="order_reference")
def _(store):
    product_id = store.add_product()
    return store.checkout("user-001", [store.line(product_id, quantity=1)])


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.parse('"{user_id}" starts checkout'))
def _(store, checkout, user_id):
    from storefront.cart.items import get_cart

    checkout["payment"] = store.initiate(user_id, get_cart(user_id))


@when(parsers.parse('"{user_id}" starts checkout with coupon "{code}"'))
def _(store, checkout, user_id, code):
    from storefront.cart.items import get_cart

    checkout["payment"] = store.initiate(user_id, get_cart(user_id), coupon_code=code)


@when(parsers.parse('"{user_id}" completes the payment'))
@when(parsers.parse('"{user_id}" completes the payment again'))
def _(store, checkout, user_id):
    checkout["orders"].append(store.pay(user_id, checkout["payment"]["gateway_order_id"]))


@when(parsers.parse('"{user_id}" submits a forged payment signature'))
def _(store, checkout, user_id):
    try:
        store.pay(user_id, checkout["payment"]["gateway_order_id"], signature="forged")
    except ValidationError as exc:
        checkout["error"] = exc


@when(parsers.parse('the order is marked "{status}"'))
def _(order_reference, checkout, status):
    _append_status(order_reference, checkout, status=status)


@when(parsers.parse('the order is shipped with "{carrier}" tracking id "{tracking_id}"'))
def _(order_reference, checkout, carrier, tracking_id):
    _append_status(order_reference, checkout, status="shipped", carrier=carrier, tracking_id=tracking_id)


@when("someone looks up the tracking number", target_fixture="public_view")
def _(order_reference):
    return get_by_tracking_number(order_reference["tracking_number"])


def _append_status(order_reference, checkout, **kwargs):
    try:
        current_domain.process(
            AppendTrackingStatus(order_id=order_reference["order_id"], updated_by="ops@riviera.test", **kwargs),
            asynchronous=False,
        )
    except ValidationError as exc:
        checkout["error"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.parse("the amount due is {amount:d}"))
def _(checkout, amount):
    assert checkout["payment"]["amount"] == float(amount)


@then(parsers.parse('an order is placed with status "{status}"'))
def _(checkout, status):
    assert checkout["orders"][-1]["status"] == status
    assert checkout["orders"][-1]["tracking_number"].startswith("RIV-")


@then(parsers.parse('{remaining:d} units of "{name}" remain'))
def _(products, remaining, name):
    assert find_variant(products[name], "Red", "M") == remaining


@then(parsers.parse('the cart of "{user_id}" is empty'))
def _(user_id):
    from storefront.cart.items import get_cart

    assert get_cart(user_id) == []


@then("the same order is returned")
def _(checkout):
    first, second = checkout["orders"]
    assert second["order_id"] == first["order_id"]
    assert second["replayed"] is True


@then("the payment is rejected")
def _(checkout):
    assert checkout["error"] is not None
    assert checkout["error"].messages == {"payment": ["Payment verification failed"]}


@then(parsers.parse('the payment is marked "{status}"'))
def _(checkout, status):
    from storefront.payment.queries import find_by_gateway_order_id

    assert find_by_gateway_order_id(checkout["payment"]["gateway_order_id"]).status == status


@then("the status change is rejected")
def _(checkout):
    assert isinstance(checkout["error"], ValidationError)


@then(parsers.parse('the order status is "{status}"'))
def _(order_reference, status):
    assert get_by_order_id(order_reference["order_id"], "user-001")["status"] == status


@then(parsers.parse('the tracking history reads "{statuses}"'))
def _(order_reference, statuses):
    events = get_by_order_id(order_reference["order_id"], "user-001")["tracking_events"]
    assert [event["status"] for event in events] == [status.strip() for status in statuses.split(",")]


@then(parsers.parse('they see the status "{status}"'))
def _(public_view, status):
    assert public_view["status"] == status


@then("they do not see payment or street address details")
def _(public_view):
    assert "payment" not in public_view
    assert "address_line1" not in public_view["shipping_address"]
