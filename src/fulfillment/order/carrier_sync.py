"""Paid orders are pushed to the carrier platform so labels can be bought there.

The carrier-side ``orderNumber`` is our order id; shipment notifications
carry it back and ``RecordCarrierShipment`` uses it to find the order. The
push is best effort: a failure is logged and never undoes the payment.
"""

from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from fulfillment.carrier import get_carrier
from fulfillment.carrier.port import CarrierError
from fulfillment.catalog import get_catalog
from fulfillment.catalog.port import CatalogPort
from fulfillment.domain import fulfillment
from fulfillment.order.events import OrderPaid
from fulfillment.order.order import Order, OrderStatus
from fulfillment.shipping.address import Address, parse_address

logger = structlog.get_logger(__name__)

ORDER_SOURCE = "packline"


def _cents(value: int | None) -> float:
    return (value or 0) / 100


def _party(order: Order, address: Address) -> dict:
    return {
        "name": order.customer_name,
        "street1": address.street1,
        "street2": address.street2,
        "city": address.city,
        "state": address.state,
        "postalCode": address.postal_code,
        "country": address.country,
        "phone": order.customer_phone or "",
    }


def carrier_order_payload(order: Order, catalog: CatalogPort) -> dict:
    """Shape an order the way the carrier platform's create-order call expects it."""
    ship_to = parse_address(order.shipping_address)
    bill_to = parse_address(order.billing_address) if order.billing_address else ship_to

    items = []
    for item in order.items or []:
        product = catalog.get_product(item.item_kind, str(item.product_id))
        items.append(
            {
                "lineItemKey": str(item.id),
                "sku": (product.sku if product else None) or f"item-{item.id}",
                "name": product.title if product else "Product",
                "quantity": item.quantity,
                "unitPrice": _cents(item.unit_price_cents),
                "options": [{"name": "Size", "value": item.merch_size}] if item.merch_size else [],
            }
        )

    return {
        "orderNumber": str(order.id),
        "orderDate": (order.created_at or datetime.now(UTC)).isoformat(),
        "orderStatus": "awaiting_shipment" if order.status == OrderStatus.PAID.value else "awaiting_payment",
        "customerEmail": order.customer_email,
        "customerUsername": order.customer_name,
        "billTo": _party(order, bill_to),
        "shipTo": {**_party(order, ship_to), "residential": True},
        "items": items,
        "amountPaid": _cents(order.total_cents),
        "taxAmount": _cents(order.tax_cents),
        "shippingAmount": _cents(order.shipping_cents),
        "advancedOptions": {"source": ORDER_SOURCE, "customField1": str(order.id)},
    }


def sync_order_to_carrier(order: Order) -> bool:
    """Push one order to the carrier. Returns False, after logging, when the carrier refuses."""
    try:
        get_carrier().create_order(carrier_order_payload(order, get_catalog()))
    except CarrierError as exc:
        logger.error("Failed to sync order to carrier", order_id=str(order.id), error=str(exc))
        return False
    logger.info("Order synced to carrier", order_id=str(order.id))
    return True


@fulfillment.event_handler(part_of=Order)
class CarrierOrderSync:
    """Hands every paid order to the carrier platform."""

    @handle(OrderPaid)
    def on_order_paid(self, event: OrderPaid) -> None:
        order = current_domain.repository_for(Order).get(event.order_id)
        sync_order_to_carrier(order)
