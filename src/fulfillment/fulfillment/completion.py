"""Fulfillment updates and completion — command and handler.

Completion is always an explicit staff action; a fully scanned checklist does
not close the fulfillment on its own.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.fulfillment.fulfillment import Fulfillment, FulfillmentStatus
from fulfillment.fulfillment.starting import get_fulfillment
from fulfillment.order.order import Order, OrderStatus
from fulfillment.packaging.packaging_type import PackagingType

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Fulfillment")
class UpdateFulfillment:
    order_id = Identifier(required=True)
    packaging_type_id = Identifier()
    status = String(choices=FulfillmentStatus)
    notes = Text()
    user_name = String(max_length=200)


@fulfillment.command_handler(part_of=Fulfillment)
class UpdateFulfillmentHandler:
    @handle(UpdateFulfillment)
    def update_fulfillment(self, command):
        ff = get_fulfillment(command.order_id)
        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)

        if command.packaging_type_id:
            current_domain.repository_for(PackagingType).get(command.packaging_type_id)
            ff.choose_packaging(str(command.packaging_type_id))
            order.choose_packaging(str(command.packaging_type_id))

        if command.notes is not None:
            ff.update_notes(command.notes)

        if command.status == FulfillmentStatus.COMPLETED.value:
            ff.complete()
            if OrderStatus(order.status) == OrderStatus.PROCESSING:
                order.mark_packed(command.user_name)
            else:
                logger.warning(
                    "Fulfillment completed but order not in processing",
                    order_id=str(order.id),
                    status=order.status,
                )
            logger.info(
                "Fulfillment completed",
                order_id=str(order.id),
                fully_scanned=ff.is_fully_scanned(),
                packages=len(ff.packages or []),
            )
        elif command.status == FulfillmentStatus.IN_PROGRESS.value and ff.is_completed:
            raise ValidationError({"status": ["A completed fulfillment cannot be reopened"]})

        current_domain.repository_for(Fulfillment).add(ff)
        order_repo.add(order)
