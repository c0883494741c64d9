"""Carrier shipment recording — command and handler.

Applies one shipment reported by the carrier platform to its order: the
order moves to shipped with tracking details and an audit entry, and a
ShippingLabel is recorded, all in the same unit of work. Replays of the same
shipment are recognized and leave no trace.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, String
from protean.utils.globals import current_domain

from fulfillment.catalog import get_catalog
from fulfillment.domain import fulfillment
from fulfillment.order.label import ShippingLabel, label_idempotency_key
from fulfillment.order.notifications import ShipmentNotice
from fulfillment.order.order import Order, OrderStatus
from fulfillment.shipping.delivery import carrier_display_name, estimate_delivery

logger = structlog.get_logger(__name__)

APPLIED = "applied"
DUPLICATE = "duplicate"
SKIPPED = "skipped"


@dataclass(frozen=True)
class ShipmentOutcome:
    status: str
    order_id: str | None = None
    reason: str | None = None
    notice: ShipmentNotice | None = None


@fulfillment.command(part_of="Order")
class RecordCarrierShipment:
    order_number = String(max_length=255)
    tracking_number = String(max_length=255)
    carrier_code = String(max_length=100)
    service_code = String(max_length=100)
    shipped_at = DateTime()
    cost_cents = Float(default=0)
    weight_value = Float()
    weight_units = String(max_length=20)
    length = Float()
    width = Float()
    height = Float()
    dimension_units = String(max_length=20)


def _notice_items(order: Order) -> list[dict]:
    catalog = get_catalog()
    items = []
    for item in order.items or []:
        product = catalog.get_product(item.item_kind, str(item.product_id))
        items.append(
            {
                "name": product.title if product else "Product",
                "quantity": item.quantity,
                "size": item.merch_size,
            }
        )
    return items


@fulfillment.command_handler(part_of=Order)
class CarrierShipmentHandler:
    @handle(RecordCarrierShipment)
    def record_shipment(self, command) -> ShipmentOutcome:
        if not command.order_number:
            logger.warning("Shipment without order number", tracking_number=command.tracking_number)
            return ShipmentOutcome(status=SKIPPED, reason="missing order number")
        if not command.tracking_number:
            logger.warning("Shipment without tracking number", order_id=command.order_number)
            return ShipmentOutcome(status=SKIPPED, order_id=command.order_number, reason="missing tracking number")

        order_repo = current_domain.repository_for(Order)
        try:
            order = order_repo.get(command.order_number)
        except ObjectNotFoundError:
            logger.warning("Shipment for unknown order", order_id=command.order_number)
            return ShipmentOutcome(status=SKIPPED, order_id=command.order_number, reason="unknown order")

        order_id = str(order.id)
        if order.tracking_number == command.tracking_number:
            logger.info("Order already carries this tracking number", order_id=order_id)
            return ShipmentOutcome(status=DUPLICATE, order_id=order_id)

        label_repo = current_domain.repository_for(ShippingLabel)
        key = label_idempotency_key(order_id, command.tracking_number)
        if label_repo._dao.query.filter(idempotency_key=key).all().items:
            logger.info("Shipping label already recorded", order_id=order_id, idempotency_key=key)
            return ShipmentOutcome(status=DUPLICATE, order_id=order_id)

        if not order.can_transition_to(OrderStatus.SHIPPED):
            logger.warning("Order cannot be marked shipped", order_id=order_id, status=order.status)
            return ShipmentOutcome(status=SKIPPED, order_id=order_id, reason=f"order is {order.status}")

        shipped_at = command.shipped_at or datetime.now(UTC)
        carrier_name = carrier_display_name(command.carrier_code)
        estimated = estimate_delivery(command.service_code, shipped_at)
        order.record_shipment(
            carrier_code=command.carrier_code,
            service_code=command.service_code,
            tracking_number=command.tracking_number,
            shipped_at=shipped_at,
            estimated_delivery_date=estimated,
            notes=f"Shipped via {carrier_name} {command.service_code}. Tracking: {command.tracking_number}",
        )
        label = ShippingLabel.record(
            order_id=order_id,
            carrier=command.carrier_code,
            service_code=command.service_code,
            tracking_number=command.tracking_number,
            cost_cents=round(command.cost_cents or 0),
            weight={"value": command.weight_value, "units": command.weight_units},
            dimensions={
                "length": command.length,
                "width": command.width,
                "height": command.height,
                "units": command.dimension_units,
            },
        )
        order_repo.add(order)
        label_repo.add(label)

        logger.info(
            "Order updated with tracking",
            order_id=order_id,
            tracking_number=command.tracking_number,
            estimated_delivery_date=str(estimated),
        )
        return ShipmentOutcome(
            status=APPLIED,
            order_id=order_id,
            notice=ShipmentNotice(
                order_id=order_id,
                customer_name=order.customer_name,
                customer_email=order.customer_email,
                carrier=carrier_name,
                tracking_number=command.tracking_number,
                estimated_delivery_date=estimated,
                items=_notice_items(order),
            ),
        )
