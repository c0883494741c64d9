import json

import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def fulfillment_bed():
    from fulfillment.domain import fulfillment

    bed = DomainFixture(fulfillment)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(fulfillment_bed):
    with fulfillment_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def _reset_adapters():
    """Every test starts with fresh fake carrier, catalog and channels."""
    from fulfillment.carrier import reset_carrier
    from fulfillment.catalog import reset_catalog
    from fulfillment.channel import reset_channels

    reset_carrier()
    reset_catalog()
    reset_channels()
    yield
    reset_carrier()
    reset_catalog()
    reset_channels()


# ---------------------------------------------------------------------------
# Shared catalog and order helpers
# ---------------------------------------------------------------------------
GAME_ID = "game-hollow-depths"
SHIRT_ID = "merch-logo-tee"


@pytest.fixture()
def catalog():
    """Catalog with one game and one shirt, installed as the active catalog."""
    from fulfillment.catalog import set_catalog
    from fulfillment.catalog.in_memory import InMemoryCatalog
    from fulfillment.catalog.port import ProductRecord

    cat = InMemoryCatalog(
        [
            ProductRecord(
                kind="game",
                product_id=GAME_ID,
                title="Hollow Depths",
                sku="GAME-HD-01",
                barcode="012345678905",
                weight=24,
            ),
            ProductRecord(
                kind="merch",
                product_id=SHIRT_ID,
                title="Logo Tee",
                sku="TEE-LOGO",
                barcode="TEE-LOGO-BC",
                weight="6 oz",
            ),
        ]
    )
    set_catalog(cat)
    return cat


def order_items(game_qty=2, shirt_qty=1):
    items = []
    if game_qty:
        items.append({"item_kind": "game", "product_id": GAME_ID, "quantity": game_qty, "unit_price_cents": 2999})
    if shirt_qty:
        items.append(
            {
                "item_kind": "merch",
                "product_id": SHIRT_ID,
                "merch_size": "L",
                "quantity": shirt_qty,
                "unit_price_cents": 1999,
            }
        )
    return items


@pytest.fixture()
def place_paid_order():
    """Factory placing an order through the handlers and recording its payment."""
    from protean import current_domain

    from fulfillment.order.lifecycle import RecordOrderPayment
    from fulfillment.order.placement import PlaceOrder

    def _place(order_id="1001", game_qty=2, shirt_qty=1, paid=True):
        current_domain.process(
            PlaceOrder(
                order_id=order_id,
                customer_name="Riley Park",
                customer_email="riley@example.com",
                shipping_address="12 Elm St, Springfield, IL 62701, US",
                items=json.dumps(order_items(game_qty, shirt_qty)),
                shipping_cents=599,
            ),
            asynchronous=False,
        )
        if paid:
            current_domain.process(RecordOrderPayment(order_id=order_id), asynchronous=False)
        return order_id

    return _place
