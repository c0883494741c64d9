"""Order lifecycle signals coming from outside the warehouse.

Payment capture, delivery confirmation and cancellation are decided by other
systems; these commands record their outcome on the order.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order


@fulfillment.command(part_of="Order")
class RecordOrderPayment:
    order_id = Identifier(required=True)


@fulfillment.command(part_of="Order")
class RecordOrderDelivery:
    order_id = Identifier(required=True)


@fulfillment.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@fulfillment.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(RecordOrderPayment)
    def record_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_payment()
        repo.add(order)

    @handle(RecordOrderDelivery)
    def record_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_delivered()
        repo.add(order)

    @handle(CancelOrder)
    def cancel(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(command.reason)
        repo.add(order)
