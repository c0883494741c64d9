"""ShipStation adapter against a mocked HTTP transport."""

import base64
import json

import httpx
import pytest
from fulfillment.carrier.port import CarrierError
from fulfillment.carrier.shipstation import ShipStationCarrier

BASE_URL = "https://ssapi.shipstation.com"


def _carrier(handler):
    return ShipStationCarrier(
        api_key="key",
        api_secret="secret",
        base_url=BASE_URL,
        transport=httpx.MockTransport(handler),
    )


class TestGetRates:
    def test_posts_parcel_with_basic_auth(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["payload"] = json.loads(request.content)
            return httpx.Response(200, json=[{"serviceCode": "usps_priority_mail", "shipmentCost": 9.85}])

        quotes = _carrier(handler).get_rates("10001", "62701", "IL", weight_lbs=2.5)

        assert quotes == [{"serviceCode": "usps_priority_mail", "shipmentCost": 9.85}]
        assert seen["method"] == "POST"
        assert seen["path"] == "/shipments/getrates"
        assert seen["auth"] == "Basic " + base64.b64encode(b"key:secret").decode()
        assert seen["payload"]["fromPostalCode"] == "10001"
        assert seen["payload"]["toPostalCode"] == "62701"
        assert seen["payload"]["weight"] == {"value": 2.5, "units": "pounds"}
        assert "dimensions" not in seen["payload"]

    def test_dimensions_are_forwarded(self):
        seen = {}

        def handler(request):
            seen["payload"] = json.loads(request.content)
            return httpx.Response(200, json=[])

        dims = {"length": 12, "width": 9, "height": 3, "units": "inches"}
        _carrier(handler).get_rates("10001", "62701", "IL", dimensions=dims)
        assert seen["payload"]["dimensions"] == dims

    def test_rates_wrapped_in_object(self):
        carrier = _carrier(lambda request: httpx.Response(200, json={"rates": [{"serviceCode": "ups_ground"}]}))
        assert carrier.get_rates("10001", "62701", "IL") == [{"serviceCode": "ups_ground"}]

    def test_rate_limited(self):
        carrier = _carrier(lambda request: httpx.Response(429, headers={"X-Rate-Limit-Reset": "30"}))
        with pytest.raises(CarrierError) as exc:
            carrier.get_rates("10001", "62701", "IL")
        assert exc.value.status_code == 429
        assert "30" in str(exc.value)

    def test_server_error(self):
        carrier = _carrier(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(CarrierError) as exc:
            carrier.get_rates("10001", "62701", "IL")
        assert exc.value.status_code == 500

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(CarrierError) as exc:
            _carrier(handler).get_rates("10001", "62701", "IL")
        assert exc.value.status_code is None

    def test_non_json_body(self):
        carrier = _carrier(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(CarrierError):
            carrier.get_rates("10001", "62701", "IL")


class TestFetchShipments:
    URL = f"{BASE_URL}/shipments?batchId=12345"

    def test_shipments_key(self):
        carrier = _carrier(lambda request: httpx.Response(200, json={"shipments": [{"orderNumber": "ORD-1"}]}))
        assert carrier.fetch_shipments(self.URL) == [{"orderNumber": "ORD-1"}]

    def test_bare_list(self):
        carrier = _carrier(lambda request: httpx.Response(200, json=[{"orderNumber": "ORD-1"}]))
        assert carrier.fetch_shipments(self.URL) == [{"orderNumber": "ORD-1"}]

    def test_single_shipment(self):
        carrier = _carrier(lambda request: httpx.Response(200, json={"orderNumber": "ORD-1"}))
        assert carrier.fetch_shipments(self.URL) == [{"orderNumber": "ORD-1"}]

    def test_empty_shipments(self):
        carrier = _carrier(lambda request: httpx.Response(200, json={"shipments": None}))
        assert carrier.fetch_shipments(self.URL) == []

    def test_uses_full_resource_url(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            return httpx.Response(200, json={"shipments": []})

        _carrier(handler).fetch_shipments(self.URL)
        assert seen["url"] == self.URL

    def test_foreign_host_is_refused(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=[])

        with pytest.raises(CarrierError):
            _carrier(handler).fetch_shipments("https://attacker.example.com/shipments")
        assert calls == []


class TestCreateOrder:
    def test_posts_order(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["payload"] = json.loads(request.content)
            return httpx.Response(200, json={"orderId": 98765, "orderNumber": "ORD-1"})

        result = _carrier(handler).create_order({"orderNumber": "ORD-1", "orderStatus": "awaiting_shipment"})

        assert result == {"orderId": 98765, "orderNumber": "ORD-1"}
        assert seen["method"] == "POST"
        assert seen["path"] == "/orders/createorder"
        assert seen["payload"]["orderNumber"] == "ORD-1"

    def test_rejected_order(self):
        carrier = _carrier(lambda request: httpx.Response(400, text="Invalid shipTo"))
        with pytest.raises(CarrierError) as exc:
            carrier.create_order({"orderNumber": "ORD-1"})
        assert exc.value.status_code == 400


class TestWebhookSubscriptions:
    def test_list_unwraps_webhooks(self):
        carrier = _carrier(
            lambda request: httpx.Response(200, json={"webhooks": [{"WebHookID": 7, "Url": "https://x/hook"}]})
        )
        assert carrier.list_webhooks() == [{"WebHookID": 7, "Url": "https://x/hook"}]

    def test_list_accepts_bare_list(self):
        carrier = _carrier(lambda request: httpx.Response(200, json=[{"WebHookID": 7}]))
        assert carrier.list_webhooks() == [{"WebHookID": 7}]

    def test_register(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["payload"] = json.loads(request.content)
            return httpx.Response(201, json={"id": 11})

        result = _carrier(handler).register_webhook("https://shop.example.com/webhooks/shipstation", "SHIP_NOTIFY", "Shipping")

        assert result == {"id": 11}
        assert seen["path"] == "/webhooks/subscribe"
        assert seen["payload"] == {
            "target_url": "https://shop.example.com/webhooks/shipstation",
            "event": "SHIP_NOTIFY",
            "store_id": None,
            "friendly_name": "Shipping",
        }

    def test_delete_with_empty_reply(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            return httpx.Response(200)

        assert _carrier(handler).delete_webhook("11") is None
        assert seen == {"method": "DELETE", "path": "/webhooks/11"}
