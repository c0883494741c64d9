"""Order and shipping label events.

Past tense, versioned. Shipment events carry the carrier details that the
notification side needs so it never has to reload the order.
"""

from protean.fields import Date, DateTime, Identifier, Integer, String, Text

from fulfillment.domain import fulfillment


@fulfillment.event(part_of="Order")
class OrderPlaced:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_email = String(required=True)
    items = Text(required=True)  # JSON list of item dicts
    total_cents = Integer(required=True)
    placed_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderPaid:
    __version__ = 1

    order_id = Identifier(required=True)
    paid_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderProcessingStarted:
    """Warehouse staff began packing the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    started_by = String()
    started_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderPacked:
    __version__ = 1

    order_id = Identifier(required=True)
    packaging_type_id = Identifier()
    packed_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderShipped:
    """The carrier reported the order as shipped."""

    __version__ = 1

    order_id = Identifier(required=True)
    carrier = String(required=True)
    service_code = String()
    tracking_number = String(required=True)
    shipped_at = DateTime(required=True)
    estimated_delivery_date = Date()


@fulfillment.event(part_of="Order")
class OrderShipmentVoided:
    __version__ = 1

    order_id = Identifier(required=True)
    tracking_number = String(required=True)
    voided_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)


@fulfillment.event(part_of="ShippingLabel")
class ShippingLabelRecorded:
    __version__ = 1

    label_id = Identifier(required=True)
    order_id = Identifier(required=True)
    carrier = String(required=True)
    tracking_number = String(required=True)
    cost_cents = Integer()
    recorded_at = DateTime(required=True)


@fulfillment.event(part_of="ShippingLabel")
class ShippingLabelVoided:
    __version__ = 1

    label_id = Identifier(required=True)
    order_id = Identifier(required=True)
    tracking_number = String(required=True)
    voided_at = DateTime(required=True)
