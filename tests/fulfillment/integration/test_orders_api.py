"""Integration tests for the order endpoints."""


class TestPlaceOrderAPI:
    def test_place_returns_201(self, client, order_payload):
        response = client.post("/orders", json=order_payload())
        assert response.status_code == 201
        assert response.json() == {"orderId": "2001"}

    def test_get_order_is_camel_case(self, client, order_payload):
        client.post("/orders", json=order_payload())
        data = client.get("/orders/2001").json()

        assert data["status"] == "pending"
        assert data["customerName"] == "Riley Park"
        assert data["totalCents"] == 2 * 2999 + 1999 + 599
        assert {item["itemKind"] for item in data["items"]} == {"game", "merch"}
        assert [entry["status"] for entry in data["statusHistory"]] == ["pending"]

    def test_unknown_order_returns_404(self, client):
        assert client.get("/orders/missing").status_code == 404

    def test_invalid_item_kind_returns_422(self, client, order_payload):
        payload = order_payload()
        payload["items"][0]["itemKind"] = "console"
        assert client.post("/orders", json=payload).status_code == 422

    def test_empty_order_returns_400(self, client, order_payload):
        assert client.post("/orders", json=order_payload(items=[])).status_code == 400


class TestOrderLifecycleAPI:
    def test_payment(self, client, order_payload):
        client.post("/orders", json=order_payload())
        response = client.post("/orders/2001/payment")
        assert response.json() == {"status": "paid"}
        assert client.get("/orders/2001").json()["status"] == "paid"

    def test_cancel_records_reason(self, client, order_payload):
        client.post("/orders", json=order_payload())
        client.post("/orders/2001/cancel", json={"reason": "Fraud check"})

        history = client.get("/orders/2001").json()["statusHistory"]
        assert history[-1]["notes"] == "Cancelled: Fraud check"

    def test_invalid_transition_returns_400(self, client, order_payload):
        client.post("/orders", json=order_payload())
        assert client.post("/orders/2001/deliver").status_code == 400

    def test_labels_empty_before_shipping(self, client, order_payload):
        client.post("/orders", json=order_payload())
        assert client.get("/orders/2001/labels").json() == []


class TestOrderShippingRatesAPI:
    def test_quotes_from_stored_address(self, client, catalog, order_payload):
        client.post("/orders", json=order_payload())
        data = client.get("/orders/2001/shipping-rates").json()

        assert data["source"] == "provider"
        assert data["weightLbs"] > 0
        assert [rate["priceCents"] for rate in data["rates"]] == [645, 985, 1120]
