"""Post-shipment notifications: customer email and team chat alert.

These run after the shipment has been committed. The two sends are
independent; a failure in either is logged and never reaches the caller.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date

import structlog

from fulfillment.channel import CHAT, EMAIL, get_channel

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ShipmentNotice:
    order_id: str
    customer_name: str
    customer_email: str
    carrier: str
    tracking_number: str
    estimated_delivery_date: date | None = None
    items: list[dict] = field(default_factory=list)


class ShippedEmailTemplate:
    @staticmethod
    def render(notice: ShipmentNotice) -> dict:
        estimated = notice.estimated_delivery_date.strftime("%A, %B %d") if notice.estimated_delivery_date else "soon"
        lines = []
        for item in notice.items:
            size = f" ({item['size']})" if item.get("size") else ""
            lines.append(f"  {item['quantity']} x {item['name']}{size}")
        items_block = "\n".join(lines)

        return {
            "subject": "Your order shipped! Track it here",
            "body": (
                f"Hi {notice.customer_name},\n\n"
                f"Great news! Your order #{notice.order_id} has shipped.\n\n"
                f"Carrier: {notice.carrier}\n"
                f"Tracking Number: {notice.tracking_number}\n"
                f"Estimated Delivery: {estimated}\n\n"
                + (f"Items:\n{items_block}\n\n" if items_block else "")
                + "You can track your package using the tracking number above."
            ),
        }


def chat_message(notice: ShipmentNotice) -> str:
    return (
        f":package: Order {notice.order_id} shipped to {notice.customer_name} "
        f"via {notice.carrier} (tracking {notice.tracking_number})"
    )


def _send_email(notice: ShipmentNotice) -> None:
    rendered = ShippedEmailTemplate.render(notice)
    try:
        result = get_channel(EMAIL).send(
            to=notice.customer_email,
            subject=rendered["subject"],
            body=rendered["body"],
            reference=notice.order_id,
        )
    except Exception as exc:
        logger.error("Shipping email failed", order_id=notice.order_id, error=str(exc))
        return

    if result.get("status") != "sent":
        logger.error("Shipping email not delivered", order_id=notice.order_id, error=result.get("error"))


def _send_chat(notice: ShipmentNotice, channel: str) -> None:
    try:
        result = get_channel(CHAT).send(channel=channel, message=chat_message(notice))
    except Exception as exc:
        logger.error("Shipping chat alert failed", order_id=notice.order_id, error=str(exc))
        return

    if result.get("status") != "sent":
        logger.error("Shipping chat alert not delivered", order_id=notice.order_id, error=result.get("error"))


async def dispatch_shipment_notifications(notice: ShipmentNotice, chat_channel: str) -> None:
    """Send the customer email and the team alert concurrently."""
    await asyncio.gather(
        asyncio.to_thread(_send_email, notice),
        asyncio.to_thread(_send_chat, notice, chat_channel),
    )
    logger.info("Shipment notifications dispatched", order_id=notice.order_id)


async def dispatch_all(notices: list[ShipmentNotice], chat_channel: str) -> None:
    for notice in notices:
        await dispatch_shipment_notifications(notice, chat_channel)
