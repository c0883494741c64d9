"""API test client wired with every fulfillment router."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from fulfillment.api.dependencies import get_settings
from fulfillment.api.routes import (
    carrier_admin_router,
    fulfillment_router,
    labels_router,
    orders_router,
    packaging_router,
    shipping_router,
    webhook_router,
)
from fulfillment.settings import ShippingSettings
from protean.integrations.fastapi import register_exception_handlers

WEBHOOK_SECRET = "whsec-test"


@pytest.fixture()
def settings():
    return ShippingSettings(
        webhook_secret=WEBHOOK_SECRET,
        carrier_api_key="key",
        carrier_api_secret="secret",
    )


@pytest.fixture()
def app(settings):
    app = FastAPI()
    for router in (
        orders_router,
        labels_router,
        fulfillment_router,
        packaging_router,
        shipping_router,
        webhook_router,
        carrier_admin_router,
    ):
        app.include_router(router)
    register_exception_handlers(app)
    app.dependency_overrides[get_settings] = lambda: settings
    return app


@pytest.fixture()
def client(app):
    return TestClient(app)


def _order_payload(order_id="2001", **overrides):
    payload = {
        "orderId": order_id,
        "customerName": "Riley Park",
        "customerEmail": "riley@example.com",
        "shippingAddress": "12 Elm St, Springfield, IL 62701, US",
        "items": [
            {"itemKind": "game", "productId": "game-hollow-depths", "quantity": 2, "unitPriceCents": 2999},
            {"itemKind": "merch", "productId": "merch-logo-tee", "merchSize": "L", "quantity": 1, "unitPriceCents": 1999},
        ],
        "shippingCents": 599,
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def order_payload():
    return _order_payload


@pytest.fixture()
def paid_order(client, catalog):
    """Places and pays an order over the API; returns its id."""
    response = client.post("/orders", json=_order_payload())
    assert response.status_code == 201
    order_id = response.json()["orderId"]
    assert client.post(f"/orders/{order_id}/payment").status_code == 200
    return order_id
