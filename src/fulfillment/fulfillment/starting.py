"""Fulfillment start — command, handler and lookups shared by pack station handlers."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.fulfillment.fulfillment import Fulfillment
from fulfillment.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Fulfillment")
class StartFulfillment:
    order_id = Identifier(required=True)
    user_id = String(max_length=100)
    user_name = String(max_length=200)


def find_fulfillment(order_id: str) -> Fulfillment | None:
    repo = current_domain.repository_for(Fulfillment)
    return repo._dao.query.filter(order_id=str(order_id)).all().first


def get_fulfillment(order_id: str) -> Fulfillment:
    ff = find_fulfillment(order_id)
    if ff is None:
        raise ObjectNotFoundError(f"No fulfillment started for order {order_id}")
    return ff


def begin_fulfillment(order: Order, user_id: str | None = None, user_name: str | None = None) -> Fulfillment:
    """Create the fulfillment and move the order into processing.

    A processing order without a fulfillment (shipped straight from paid, then
    its label voided) is packed from where it stands. The caller persists both
    aggregates.
    """
    status = OrderStatus(order.status)
    if status not in (OrderStatus.PAID, OrderStatus.PROCESSING):
        raise ValidationError({"status": [f"Order is {order.status}; only paid orders can be fulfilled"]})

    ff = Fulfillment.start(
        order_id=str(order.id),
        lines=[{"order_item_id": str(item.id), "ordered_quantity": item.quantity} for item in order.items or []],
        user_id=user_id,
        user_name=user_name,
    )
    if status == OrderStatus.PAID:
        order.start_processing(user_name)
    logger.info("Fulfillment started", order_id=str(order.id), fulfillment_id=str(ff.id), user=user_name)
    return ff


@fulfillment.command_handler(part_of=Fulfillment)
class StartFulfillmentHandler:
    @handle(StartFulfillment)
    def start_fulfillment(self, command):
        existing = find_fulfillment(command.order_id)
        if existing is not None:
            return str(existing.id)

        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)
        ff = begin_fulfillment(order, command.user_id, command.user_name)

        current_domain.repository_for(Fulfillment).add(ff)
        order_repo.add(order)
        return str(ff.id)
