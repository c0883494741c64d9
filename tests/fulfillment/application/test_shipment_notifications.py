"""Post-shipment customer email and team chat alerts."""

import asyncio
from datetime import date

import pytest
from fulfillment.channel import CHAT, EMAIL, get_channel
from fulfillment.order.notifications import (
    ShipmentNotice,
    ShippedEmailTemplate,
    chat_message,
    dispatch_all,
    dispatch_shipment_notifications,
)


@pytest.fixture()
def notice():
    return ShipmentNotice(
        order_id="ORD-1",
        customer_name="Riley Park",
        customer_email="riley@example.com",
        carrier="USPS",
        tracking_number="9400111899223197428490",
        estimated_delivery_date=date(2024, 3, 4),
        items=[
            {"name": "Hollow Depths", "quantity": 2, "size": None},
            {"name": "Logo Tee", "quantity": 1, "size": "L"},
        ],
    )


class TestEmailTemplate:
    def test_subject(self, notice):
        assert ShippedEmailTemplate.render(notice)["subject"] == "Your order shipped! Track it here"

    def test_body(self, notice):
        body = ShippedEmailTemplate.render(notice)["body"]
        assert "Hi Riley Park," in body
        assert "Your order #ORD-1 has shipped." in body
        assert "Carrier: USPS" in body
        assert "Tracking Number: 9400111899223197428490" in body
        assert "Estimated Delivery: Monday, March 04" in body
        assert "2 x Hollow Depths" in body
        assert "1 x Logo Tee (L)" in body

    def test_body_without_estimate(self, notice):
        bare = ShipmentNotice(
            order_id="ORD-2",
            customer_name="Sam",
            customer_email="sam@example.com",
            carrier="UPS",
            tracking_number="1Z999",
        )
        body = ShippedEmailTemplate.render(bare)["body"]
        assert "Estimated Delivery: soon" in body
        assert "Items:" not in body


class TestDispatch:
    def test_email_and_chat_are_sent(self, notice):
        asyncio.run(dispatch_shipment_notifications(notice, "#shipping"))

        emails = get_channel(EMAIL).sent_emails
        assert len(emails) == 1
        assert emails[0]["to"] == "riley@example.com"
        assert emails[0]["reference"] == "ORD-1"

        messages = get_channel(CHAT).sent_messages
        assert len(messages) == 1
        assert messages[0]["channel"] == "#shipping"
        assert messages[0]["message"] == chat_message(notice)
        assert "ORD-1" in messages[0]["message"]

    def test_email_failure_does_not_stop_chat(self, notice):
        get_channel(EMAIL).configure(raise_on_send=RuntimeError("smtp down"))
        asyncio.run(dispatch_shipment_notifications(notice, "#shipping"))

        assert get_channel(EMAIL).sent_emails == []
        assert len(get_channel(CHAT).sent_messages) == 1

    def test_chat_failure_does_not_stop_email(self, notice):
        get_channel(CHAT).configure(should_succeed=False)
        asyncio.run(dispatch_shipment_notifications(notice, "#shipping"))

        assert len(get_channel(EMAIL).sent_emails) == 1
        assert get_channel(CHAT).sent_messages == []

    def test_dispatch_all(self, notice):
        asyncio.run(dispatch_all([notice, notice], "#ops"))
        assert len(get_channel(EMAIL).sent_emails) == 2
        assert {m["channel"] for m in get_channel(CHAT).sent_messages} == {"#ops"}
