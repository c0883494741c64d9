"""Order aggregate (CQRS).

Orders are placed and paid elsewhere; this context owns what happens after
payment: packing, shipping and the audit trail of every status change. The
order's identifier doubles as the carrier-side order number.

State Machine:
    PENDING → PAID → PROCESSING → PACKED → SHIPPED → DELIVERED
    {PAID, PROCESSING} → SHIPPED (labelled at the carrier without a completed pack)
    SHIPPED → PROCESSING (active label voided)
    SHIPPED → SHIPPED (carrier reports a new tracking number)
    {PENDING, PAID} → CANCELLED
"""

import json
from datetime import UTC, date, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, HasMany, Identifier, Integer, String, Text

from fulfillment.catalog.port import ItemKind
from fulfillment.domain import fulfillment
from fulfillment.order.events import (
    OrderCancelled,
    OrderDelivered,
    OrderPacked,
    OrderPaid,
    OrderPlaced,
    OrderProcessingStarted,
    OrderShipmentVoided,
    OrderShipped,
)


class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    PACKED = "packed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.PACKED, OrderStatus.SHIPPED},
    OrderStatus.PACKED: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.SHIPPED, OrderStatus.PROCESSING, OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # terminal
    OrderStatus.CANCELLED: set(),  # terminal
}


@fulfillment.entity(part_of="Order")
class OrderItem:
    """A purchased line: one game or one merch product, never both."""

    item_kind = String(required=True, choices=ItemKind)
    product_id = Identifier(required=True)
    merch_size = String(max_length=20)
    quantity = Integer(required=True, min_value=1)
    unit_price_cents = Integer(required=True, min_value=0)


@fulfillment.entity(part_of="Order")
class OrderStatusHistory:
    status = String(required=True, choices=OrderStatus)
    notes = Text()
    created_at = DateTime(required=True)


@fulfillment.aggregate
class Order:
    customer_name = String(required=True, max_length=200)
    customer_email = String(required=True, max_length=254)
    customer_phone = String(max_length=50)
    shipping_address = Text(required=True)
    billing_address = Text()
    subtotal_cents = Integer(default=0, min_value=0)
    shipping_cents = Integer(default=0, min_value=0)
    tax_cents = Integer(default=0, min_value=0)
    total_cents = Integer(default=0, min_value=0)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    shipping_carrier = String(max_length=100)
    shipping_method = String(max_length=100)
    tracking_number = String(max_length=255)
    shipped_at = DateTime()
    estimated_delivery_date = Date()
    packaging_type_id = Identifier()
    items = HasMany(OrderItem)
    status_history = HasMany(OrderStatusHistory)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def merch_size_only_on_merch_items(self):
        for item in self.items or []:
            if item.merch_size and item.item_kind != ItemKind.MERCH.value:
                raise ValidationError({"items": ["Only merch items can carry a size"]})

    @classmethod
    def place(
        cls,
        customer_name: str,
        customer_email: str,
        shipping_address: str,
        items_data: list[dict],
        customer_phone: str | None = None,
        billing_address: str | None = None,
        shipping_cents: int = 0,
        tax_cents: int = 0,
        order_id: str | None = None,
    ):
        """Create a pending order from its purchased lines."""
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        subtotal = sum(int(i["quantity"]) * int(i["unit_price_cents"]) for i in items_data)
        attributes = {
            "customer_name": customer_name,
            "customer_email": customer_email,
            "customer_phone": customer_phone,
            "shipping_address": shipping_address,
            "billing_address": billing_address,
            "subtotal_cents": subtotal,
            "shipping_cents": shipping_cents,
            "tax_cents": tax_cents,
            "total_cents": subtotal + shipping_cents + tax_cents,
            "status": OrderStatus.PENDING.value,
            "created_at": now,
            "updated_at": now,
        }
        if order_id:
            attributes["id"] = order_id

        order = cls(**attributes)
        for item_data in items_data:
            order.add_items(OrderItem(**item_data))
        order._append_history(OrderStatus.PENDING, "Order placed", now)
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_email=customer_email,
                items=json.dumps(items_data),
                total_cents=order.total_cents,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def can_transition_to(self, target_status: OrderStatus) -> bool:
        return target_status in _VALID_TRANSITIONS.get(OrderStatus(self.status), set())

    def _append_history(self, status: OrderStatus, notes: str, at: datetime) -> None:
        self.add_status_history(OrderStatusHistory(status=status.value, notes=notes, created_at=at))

    def _transition(self, target_status: OrderStatus, notes: str) -> datetime:
        self._assert_can_transition(target_status)
        now = datetime.now(UTC)
        self.status = target_status.value
        self.updated_at = now
        self._append_history(target_status, notes, now)
        return now

    def item(self, order_item_id: str):
        return next((i for i in (self.items or []) if str(i.id) == str(order_item_id)), None)

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def record_payment(self) -> None:
        now = self._transition(OrderStatus.PAID, "Payment received")
        self.raise_(OrderPaid(order_id=str(self.id), paid_at=now))

    def start_processing(self, started_by: str | None = None) -> None:
        notes = f"Fulfillment started by {started_by}" if started_by else "Fulfillment started"
        now = self._transition(OrderStatus.PROCESSING, notes)
        self.raise_(OrderProcessingStarted(order_id=str(self.id), started_by=started_by, started_at=now))

    def choose_packaging(self, packaging_type_id: str | None) -> None:
        self.packaging_type_id = packaging_type_id
        self.updated_at = datetime.now(UTC)

    def mark_packed(self, completed_by: str | None = None) -> None:
        notes = "Order packed and ready for shipping"
        if completed_by:
            notes = f"{notes} (packed by {completed_by})"
        now = self._transition(OrderStatus.PACKED, notes)
        self.raise_(
            OrderPacked(
                order_id=str(self.id),
                packaging_type_id=self.packaging_type_id,
                packed_at=now,
            )
        )

    def record_shipment(
        self,
        carrier_code: str,
        service_code: str | None,
        tracking_number: str,
        shipped_at: datetime,
        estimated_delivery_date: date | None,
        notes: str,
    ) -> None:
        """Apply a carrier shipment: tracking fields, audit entry and event."""
        self._transition(OrderStatus.SHIPPED, notes)
        self.shipping_carrier = carrier_code
        self.shipping_method = service_code
        self.tracking_number = tracking_number
        self.shipped_at = shipped_at
        self.estimated_delivery_date = estimated_delivery_date
        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                carrier=carrier_code,
                service_code=service_code,
                tracking_number=tracking_number,
                shipped_at=shipped_at,
                estimated_delivery_date=estimated_delivery_date,
            )
        )

    def void_shipment(self) -> None:
        """Clear tracking after the active label was voided."""
        tracking_number = self.tracking_number
        now = self._transition(
            OrderStatus.PROCESSING,
            f"Shipping label voided. Tracking was: {tracking_number}",
        )
        self.tracking_number = None
        self.shipping_carrier = None
        self.shipping_method = None
        self.shipped_at = None
        self.estimated_delivery_date = None
        self.raise_(
            OrderShipmentVoided(
                order_id=str(self.id),
                tracking_number=tracking_number,
                voided_at=now,
            )
        )

    def mark_delivered(self) -> None:
        now = self._transition(OrderStatus.DELIVERED, "Delivered")
        self.raise_(OrderDelivered(order_id=str(self.id), delivered_at=now))

    def cancel(self, reason: str | None = None) -> None:
        now = self._transition(OrderStatus.CANCELLED, f"Cancelled: {reason}" if reason else "Cancelled")
        self.raise_(OrderCancelled(order_id=str(self.id), reason=reason, cancelled_at=now))
