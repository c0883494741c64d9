"""Label voiding — command and handler.

Voiding the label an order currently ships under puts the order back into
processing so a replacement label can be bought. Voiding an older, already
superseded label only marks the label.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.label import ShippingLabel
from fulfillment.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="ShippingLabel")
class VoidShippingLabel:
    label_id = Identifier(required=True)


@fulfillment.command_handler(part_of=ShippingLabel)
class VoidShippingLabelHandler:
    @handle(VoidShippingLabel)
    def void_label(self, command) -> bool:
        """Returns True when the order was reverted to processing."""
        label_repo = current_domain.repository_for(ShippingLabel)
        label = label_repo.get(command.label_id)
        label.void()
        label_repo.add(label)

        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(label.order_id)
        is_active_label = (
            order.tracking_number == label.tracking_number and OrderStatus(order.status) == OrderStatus.SHIPPED
        )
        if not is_active_label:
            logger.info("Voided a superseded label", label_id=str(label.id), order_id=str(order.id))
            return False

        order.void_shipment()
        order_repo.add(order)
        logger.info(
            "Active label voided, order back in processing",
            label_id=str(label.id),
            order_id=str(order.id),
            tracking_number=label.tracking_number,
        )
        return True
