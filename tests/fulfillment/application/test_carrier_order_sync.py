"""Paid orders are pushed to the carrier platform, best effort."""

from datetime import UTC, datetime

from fulfillment.carrier import get_carrier
from fulfillment.catalog import get_catalog
from fulfillment.order.carrier_sync import CarrierOrderSync, carrier_order_payload, sync_order_to_carrier
from fulfillment.order.events import OrderPaid
from fulfillment.order.order import Order, OrderStatus
from protean import current_domain


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestPayload:
    def test_order_fields(self, catalog, place_paid_order):
        payload = carrier_order_payload(_order(place_paid_order()), get_catalog())

        assert payload["orderNumber"] == "1001"
        assert payload["orderStatus"] == "awaiting_shipment"
        assert payload["customerEmail"] == "riley@example.com"
        assert payload["amountPaid"] == 85.96
        assert payload["shippingAmount"] == 5.99
        assert payload["advancedOptions"]["customField1"] == "1001"

    def test_ship_to_is_parsed_from_the_address(self, catalog, place_paid_order):
        ship_to = carrier_order_payload(_order(place_paid_order()), get_catalog())["shipTo"]

        assert ship_to["name"] == "Riley Park"
        assert ship_to["street1"] == "12 Elm St"
        assert ship_to["city"] == "Springfield"
        assert ship_to["state"] == "IL"
        assert ship_to["postalCode"] == "62701"
        assert ship_to["residential"] is True

    def test_bill_to_falls_back_to_ship_to(self, catalog, place_paid_order):
        payload = carrier_order_payload(_order(place_paid_order()), get_catalog())
        assert payload["billTo"]["street1"] == payload["shipTo"]["street1"]
        assert "residential" not in payload["billTo"]

    def test_items_use_catalog_names_and_skus(self, catalog, place_paid_order):
        items = {item["name"]: item for item in carrier_order_payload(_order(place_paid_order()), get_catalog())["items"]}

        assert items["Hollow Depths"]["sku"] == "GAME-HD-01"
        assert items["Hollow Depths"]["quantity"] == 2
        assert items["Hollow Depths"]["unitPrice"] == 29.99
        assert items["Hollow Depths"]["options"] == []
        assert items["Logo Tee"]["options"] == [{"name": "Size", "value": "L"}]

    def test_unknown_products_get_placeholders(self, place_paid_order):
        items = carrier_order_payload(_order(place_paid_order()), get_catalog())["items"]
        assert {item["name"] for item in items} == {"Product"}
        assert all(item["sku"].startswith("item-") for item in items)

    def test_unpaid_order_awaits_payment(self, catalog, place_paid_order):
        payload = carrier_order_payload(_order(place_paid_order(paid=False)), get_catalog())
        assert payload["orderStatus"] == "awaiting_payment"


class TestSyncOnPayment:
    def test_payment_pushes_the_order(self, catalog, place_paid_order):
        place_paid_order()
        assert [order["orderNumber"] for order in get_carrier().created_orders] == ["1001"]

    def test_placing_an_order_does_not_push_it(self, place_paid_order):
        place_paid_order(paid=False)
        assert get_carrier().created_orders == []

    def test_carrier_failure_does_not_undo_payment(self, catalog, place_paid_order):
        get_carrier().configure(should_succeed=False)
        order_id = place_paid_order()

        assert _order(order_id).status == OrderStatus.PAID.value
        assert get_carrier().created_orders == []

    def test_sync_reports_failure(self, catalog, place_paid_order):
        order = _order(place_paid_order())
        get_carrier().configure(should_succeed=False)
        assert sync_order_to_carrier(order) is False

    def test_handler_pushes_the_paid_order(self, catalog, place_paid_order):
        order_id = place_paid_order(paid=False)

        CarrierOrderSync().on_order_paid(OrderPaid(order_id=order_id, paid_at=datetime.now(UTC)))
        assert [order["orderNumber"] for order in get_carrier().created_orders] == [order_id]
