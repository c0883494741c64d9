"""Shared BDD fixtures and step definitions for pack station scenarios."""

import pytest
from fulfillment.fulfillment.starting import StartFulfillment, get_fulfillment
from fulfillment.order.label import ShippingLabel
from fulfillment.order.order import Order
from protean import current_domain
from pytest_bdd import given, parsers, then

ORDER_ID = "BDD-1"


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a paid order with {game_qty:d} copies of "Hollow Depths" and {shirt_qty:d} "Logo Tee"'),
    target_fixture="order_id",
)
def paid_order(catalog, place_paid_order, game_qty, shirt_qty):
    return place_paid_order(order_id=ORDER_ID, game_qty=game_qty, shirt_qty=shirt_qty)


@given(parsers.cfparse('fulfillment has been started by "{user_name}"'))
def started(order_id, user_name):
    current_domain.process(StartFulfillment(order_id=order_id, user_name=user_name), asynchronous=False)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == status


@then(parsers.cfparse("{count:d} scans are recorded"))
def scans_recorded(order_id, count):
    assert len(get_fulfillment(order_id).scans) == count


@then(parsers.cfparse("{count:d} shipping labels are recorded"))
def labels_recorded(order_id, count):
    labels = current_domain.repository_for(ShippingLabel)._dao.query.filter(order_id=order_id).all().items
    assert len(labels) == count
