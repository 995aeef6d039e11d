"""Shared BDD fixtures and step definitions for the order workflow."""

import json

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then

from orderflow.order.creation import CreateOrder
from orderflow.order.order import Order
from orderflow.shared.errors import (
    ApprovalRequired,
    IllegalTransition,
    OptimisticConflict,
    PaymentRequired,
    ReasonRequired,
    UnknownStatus,
)

_ERROR_CLASSES = {
    "ApprovalRequired": ApprovalRequired,
    "IllegalTransition": IllegalTransition,
    "OptimisticConflict": OptimisticConflict,
    "PaymentRequired": PaymentRequired,
    "ReasonRequired": ReasonRequired,
    "UnknownStatus": UnknownStatus,
}


def create_order(customer_type="RETAIL", quantity=1, unit_price=25.0):
    items = [
        {
            "product_id": "prod-001",
            "product_name": "Widget",
            "sku": "WID-1",
            "quantity": quantity,
            "unit_price": unit_price,
        }
    ]
    return current_domain.process(
        CreateOrder(customer_id="cust-001", customer_type=customer_type, items=json.dumps(items)),
        asynchronous=False,
    )


def load_order(order_id):
    return current_domain.repository_for(Order).get(order_id)


@pytest.fixture()
def place_order():
    return create_order


@pytest.fixture()
def error():
    """Container for the error raised by the last When step."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("the default workflow is seeded")
def _(seeded):
    pass


@given(
    parsers.cfparse("a {customer_type} order for {quantity:d} units at {unit_price:f}"),
    target_fixture="order_id",
)
def _(customer_type, quantity, unit_price):
    return create_order(customer_type, quantity, unit_price)


@given("the order has been paid in full")
def _(order_id, ledger):
    order = load_order(order_id)
    ledger.record_payment(order_id, order.pricing.final_amount, currency=order.currency)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order_id, status):
    assert load_order(order_id).status == status


@then(parsers.cfparse("the order history has {count:d} entries"))
def _(order_id, count):
    entries = load_order(order_id).history()
    assert len(entries) == count
    assert [entry.sequence for entry in entries] == list(range(1, count + 1))


@then(parsers.cfparse("the order final amount is {amount:f}"))
def _(order_id, amount):
    assert load_order(order_id).pricing.final_amount == pytest.approx(amount)


@then(parsers.cfparse("the action fails with {error_type}"))
def _(error, error_type):
    assert error["exc"] is not None, "Expected an error but none was raised"
    assert isinstance(error["exc"], _ERROR_CLASSES[error_type])


@then("the action succeeds")
def _(error):
    assert error["exc"] is None, f"Unexpected error: {error['exc']!r}"
