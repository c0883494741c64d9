"""Application tests for StartFulfillment via domain.process()."""

import pytest
from fulfillment.fulfillment.fulfillment import Fulfillment, FulfillmentStatus
from fulfillment.fulfillment.starting import StartFulfillment, find_fulfillment
from fulfillment.order.order import Order, OrderStatus
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


class TestStartFulfillment:
    def test_start_creates_fulfillment_with_checklist(self, place_paid_order):
        order_id = place_paid_order()
        ff_id = current_domain.process(
            StartFulfillment(order_id=order_id, user_id="u-7", user_name="Sam"),
            asynchronous=False,
        )

        ff = current_domain.repository_for(Fulfillment).get(ff_id)
        assert str(ff.order_id) == order_id
        assert ff.status == FulfillmentStatus.IN_PROGRESS.value
        assert ff.fulfilled_by_name == "Sam"
        assert sorted(line.ordered_quantity for line in ff.lines) == [1, 2]

    def test_start_moves_order_to_processing(self, place_paid_order):
        order_id = place_paid_order()
        current_domain.process(StartFulfillment(order_id=order_id, user_name="Sam"), asynchronous=False)

        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.PROCESSING.value
        notes = [entry.notes for entry in order.status_history]
        assert "Fulfillment started by Sam" in notes

    def test_start_is_idempotent(self, place_paid_order):
        order_id = place_paid_order()
        first = current_domain.process(StartFulfillment(order_id=order_id), asynchronous=False)
        second = current_domain.process(StartFulfillment(order_id=order_id), asynchronous=False)

        assert first == second
        assert len(current_domain.repository_for(Fulfillment)._dao.query.filter(order_id=order_id).all().items) == 1
        order = current_domain.repository_for(Order).get(order_id)
        statuses = [entry.status for entry in order.status_history]
        assert statuses.count("processing") == 1

    def test_unpaid_order_cannot_be_fulfilled(self, place_paid_order):
        order_id = place_paid_order(paid=False)
        with pytest.raises(ValidationError) as exc:
            current_domain.process(StartFulfillment(order_id=order_id), asynchronous=False)
        assert "only paid orders" in str(exc.value)
        assert find_fulfillment(order_id) is None

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(StartFulfillment(order_id="missing"), asynchronous=False)

    def test_order_reverted_after_direct_shipment_can_be_packed(self, catalog, place_paid_order):
        from fulfillment.order.label import ShippingLabel
        from fulfillment.order.shipment import RecordCarrierShipment
        from fulfillment.order.voiding import VoidShippingLabel

        order_id = place_paid_order()
        current_domain.process(
            RecordCarrierShipment(
                order_number=order_id,
                tracking_number="TRK-1",
                carrier_code="stamps_com",
                service_code="usps_priority_mail",
            ),
            asynchronous=False,
        )
        label = current_domain.repository_for(ShippingLabel)._dao.query.filter(order_id=order_id).all().first
        current_domain.process(VoidShippingLabel(label_id=str(label.id)), asynchronous=False)

        ff_id = current_domain.process(StartFulfillment(order_id=order_id), asynchronous=False)

        assert str(find_fulfillment(order_id).id) == ff_id
        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.PROCESSING.value
