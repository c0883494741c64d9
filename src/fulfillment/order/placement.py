"""Order placement — command and handler.

Checkout lives outside this context; it hands finished orders over through
``PlaceOrder`` so the warehouse sees them.
"""

import json

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order


@fulfillment.command(part_of="Order")
class PlaceOrder:
    order_id = Identifier()  # carrier-facing order number; generated when absent
    customer_name = String(required=True, max_length=200)
    customer_email = String(required=True, max_length=254)
    customer_phone = String(max_length=50)
    shipping_address = Text(required=True)
    billing_address = Text()
    items = Text(required=True)  # JSON list of item dicts
    shipping_cents = Integer(default=0)
    tax_cents = Integer(default=0)


@fulfillment.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        order = Order.place(
            customer_name=command.customer_name,
            customer_email=command.customer_email,
            customer_phone=command.customer_phone,
            shipping_address=command.shipping_address,
            billing_address=command.billing_address,
            items_data=items_data,
            shipping_cents=command.shipping_cents or 0,
            tax_cents=command.tax_cents or 0,
            order_id=command.order_id,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
