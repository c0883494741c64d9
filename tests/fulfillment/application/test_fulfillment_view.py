"""Pack station view assembled from an order and its fulfillment."""

import json

import pytest
from fulfillment.fulfillment.checklist import build_fulfillment_view
from fulfillment.fulfillment.packing import OpenPackage
from fulfillment.fulfillment.scanning import RecordScan
from fulfillment.fulfillment.starting import StartFulfillment, find_fulfillment
from fulfillment.order.order import Order
from fulfillment.packaging.packaging_type import PackagingType
from fulfillment.packaging.registration import RegisterPackagingType
from protean import current_domain


def _view(order_id, catalog, packaging=None):
    order = current_domain.repository_for(Order).get(order_id)
    ff = find_fulfillment(order_id)
    packaging_types = {str(p.id): p for p in (packaging or [])}
    return build_fulfillment_view(order, ff, catalog, packaging_types)


@pytest.fixture()
def started_order(catalog, place_paid_order):
    order_id = place_paid_order()
    current_domain.process(StartFulfillment(order_id=order_id, user_name="Sam"), asynchronous=False)
    return order_id


class TestBeforeFulfillment:
    def test_checklist_without_fulfillment(self, catalog, place_paid_order):
        view = _view(place_paid_order(), catalog)

        assert view["fulfillment"] is None
        assert sorted(row["name"] for row in view["checklist"]) == ["Hollow Depths", "Logo Tee"]
        assert view["progress"] == {"total": 3, "scanned": 0, "percentage": 0, "is_complete": False}
        assert view["packages"] == []


class TestProgress:
    def test_partial_progress(self, started_order, catalog):
        current_domain.process(RecordScan(order_id=started_order, code="012345678905"), asynchronous=False)
        view = _view(started_order, catalog)

        rows = {row["name"]: row for row in view["checklist"]}
        game = rows["Hollow Depths"]
        assert game["scanned_quantity"] == 1
        assert game["ordered_quantity"] == 2
        assert game["is_complete"] is False
        assert game["sku"] == "GAME-HD-01"
        assert rows["Logo Tee"]["size"] == "L"
        assert view["progress"]["scanned"] == 1
        assert view["progress"]["percentage"] == 33

    def test_complete_progress(self, started_order, catalog):
        current_domain.process(RecordScan(order_id=started_order, code="012345678905", quantity=2), asynchronous=False)
        current_domain.process(RecordScan(order_id=started_order, code="TEE-LOGO"), asynchronous=False)

        progress = _view(started_order, catalog)["progress"]
        assert progress["percentage"] == 100
        assert progress["is_complete"] is True

    def test_unmatched_scans_listed_but_not_counted(self, started_order, catalog):
        current_domain.process(RecordScan(order_id=started_order, code="NOT-ON-ORDER"), asynchronous=False)
        view = _view(started_order, catalog)

        assert view["progress"]["scanned"] == 0
        assert [s["matched"] for s in view["fulfillment"]["scans"]] == [False]
        assert view["fulfillment"]["fulfilled_by_name"] == "Sam"


class TestBoxes:
    def test_boxes_and_unassigned(self, started_order, catalog):
        packaging_id = current_domain.process(RegisterPackagingType(sku="BOX-M", name="Medium box"), asynchronous=False)
        packaging = current_domain.repository_for(PackagingType).get(packaging_id)
        game = current_domain.process(RecordScan(order_id=started_order, code="012345678905"), asynchronous=False)
        current_domain.process(RecordScan(order_id=started_order, code="TEE-LOGO"), asynchronous=False)
        current_domain.process(
            OpenPackage(order_id=started_order, packaging_type_id=packaging_id, scan_ids=json.dumps([game.scan_id])),
            asynchronous=False,
        )

        view = _view(started_order, catalog, [packaging])

        assert len(view["packages"]) == 1
        box = view["packages"][0]
        assert box["box_number"] == 1
        assert box["packaging_type"]["sku"] == "BOX-M"
        assert [item["name"] for item in box["items"]] == ["Hollow Depths"]
        assert [row["name"] for row in view["unassigned_scans"]] == ["Logo Tee"]
