"""ShippingLabel aggregate — historical record of a label bought at the carrier.

Labels are never edited after they are recorded, only voided. The
``idempotency_key`` (order id and tracking number) is unique at the storage
layer, so a replayed shipment cannot produce a second label even when two
webhook deliveries race past the read-side duplicate check.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from fulfillment.domain import fulfillment
from fulfillment.order.events import ShippingLabelRecorded, ShippingLabelVoided


def label_idempotency_key(order_id: str, tracking_number: str) -> str:
    return f"{order_id}:{tracking_number}"


@fulfillment.aggregate
class ShippingLabel:
    order_id = Identifier(required=True)
    carrier = String(required=True, max_length=100)
    service_code = String(max_length=100)
    tracking_number = String(required=True, max_length=255)
    label_url = String(max_length=1000)
    cost_cents = Integer(default=0)
    weight = Float()
    weight_units = String(max_length=20)
    length = Float()
    width = Float()
    height = Float()
    dimension_units = String(max_length=20)
    idempotency_key = String(required=True, max_length=400, unique=True)
    is_void = Boolean(default=False)
    voided_at = DateTime()
    created_at = DateTime()

    @classmethod
    def record(
        cls,
        order_id: str,
        carrier: str,
        tracking_number: str,
        service_code: str | None = None,
        label_url: str | None = None,
        cost_cents: int = 0,
        weight: dict | None = None,
        dimensions: dict | None = None,
    ):
        now = datetime.now(UTC)
        weight = weight or {}
        dimensions = dimensions or {}
        label = cls(
            order_id=order_id,
            carrier=carrier,
            service_code=service_code,
            tracking_number=tracking_number,
            label_url=label_url or "",
            cost_cents=cost_cents,
            weight=weight.get("value"),
            weight_units=weight.get("units"),
            length=dimensions.get("length"),
            width=dimensions.get("width"),
            height=dimensions.get("height"),
            dimension_units=dimensions.get("units"),
            idempotency_key=label_idempotency_key(order_id, tracking_number),
            created_at=now,
        )
        label.raise_(
            ShippingLabelRecorded(
                label_id=str(label.id),
                order_id=order_id,
                carrier=carrier,
                tracking_number=tracking_number,
                cost_cents=cost_cents,
                recorded_at=now,
            )
        )
        return label

    def void(self) -> None:
        if self.is_void:
            raise ValidationError({"label": ["Shipping label is already void"]})

        now = datetime.now(UTC)
        self.is_void = True
        self.voided_at = now
        self.raise_(
            ShippingLabelVoided(
                label_id=str(self.id),
                order_id=str(self.order_id),
                tracking_number=self.tracking_number,
                voided_at=now,
            )
        )
