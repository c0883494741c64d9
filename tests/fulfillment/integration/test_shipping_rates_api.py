"""Integration tests for checkout shipping quotes."""

import pytest
from fulfillment.api.dependencies import get_settings
from fulfillment.carrier import get_carrier
from fulfillment.settings import ShippingSettings

ADDRESS = {"street": "12 Elm St", "city": "Springfield", "state": "IL", "postalCode": "62701"}


@pytest.fixture()
def unconfigured(app):
    app.dependency_overrides[get_settings] = lambda: ShippingSettings()


class TestProviderRates:
    def test_cart_is_weighed_from_catalog(self, client, catalog):
        response = client.post(
            "/shipping/rates",
            json={
                "toAddress": ADDRESS,
                "cartItems": [
                    {"itemKind": "game", "productId": "game-hollow-depths", "quantity": 1},
                    {"itemKind": "merch", "productId": "merch-logo-tee", "size": "L", "quantity": 1},
                ],
            },
        )
        data = response.json()

        assert response.status_code == 200
        assert data["source"] == "provider"
        assert [rate["priceCents"] for rate in data["rates"]] == [645, 985, 1120]
        assert "UPS" not in {rate["carrier"] for rate in data["rates"]}
        assert get_carrier().rate_requests[0]["to_postal_code"] == "62701"
        assert get_carrier().rate_requests[0]["weight_lbs"] == data["weightLbs"]

    def test_carrier_failure_falls_back(self, client):
        get_carrier().configure(should_succeed=False)
        data = client.post("/shipping/rates", json={"toAddress": ADDRESS, "weight": 1}).json()

        assert data["source"] == "calculated"
        assert [rate["priceCents"] for rate in data["rates"]] == [599, 899, 999, 1599]


class TestCalculatedRates:
    def test_default_parcel_weight(self, client, unconfigured):
        data = client.post("/shipping/rates", json={"toAddress": ADDRESS}).json()

        assert data["source"] == "calculated"
        assert data["weightLbs"] == 2.0
        assert data["rates"][0]["priceCents"] == 599 + 75
        assert data["rates"][0]["estimatedDays"] == 5

    def test_provider_not_called_when_unconfigured(self, client, unconfigured):
        client.post("/shipping/rates", json={"toAddress": ADDRESS, "weight": 3})
        assert get_carrier().rate_requests == []


class TestRateValidation:
    def test_missing_postal_code_returns_400(self, client):
        response = client.post("/shipping/rates", json={"toAddress": {"state": "IL"}})
        assert response.status_code == 400

    def test_missing_state_returns_400(self, client):
        response = client.post("/shipping/rates", json={"toAddress": {"postalCode": "62701"}})
        assert response.status_code == 400

    def test_rates_are_public(self, app, client):
        app.dependency_overrides[get_settings] = lambda: ShippingSettings(admin_user_ids=frozenset({"admin-1"}))
        assert client.post("/shipping/rates", json={"toAddress": ADDRESS}).status_code == 200
