"""Carrier webhook synchronizer.

The carrier platform notifies us with a small envelope
(``{"resource_url": ..., "resource_type": ...}``) signed with a shared
secret. For shipment notifications the full shipment records are fetched
from ``resource_url`` and each one is applied to its order through
``RecordCarrierShipment``.

Authentication happens before the body is parsed or anything is looked up.
Without a configured secret every delivery is accepted and a warning is
logged.
"""

import hashlib
import hmac
import json
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from fulfillment.carrier.port import CarrierError, CarrierPort
from fulfillment.order.notifications import ShipmentNotice
from fulfillment.order.shipment import DUPLICATE, SKIPPED, RecordCarrierShipment, ShipmentOutcome
from fulfillment.utils.logging import bind_order_context

logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "X-ShipStation-Signature"

SHIP_NOTIFY = "SHIP_NOTIFY"
ITEM_SHIP_NOTIFY = "ITEM_SHIP_NOTIFY"
ORDER_NOTIFY = "ORDER_NOTIFY"
_SHIPMENT_EVENTS = {SHIP_NOTIFY, ITEM_SHIP_NOTIFY}

_DATE_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


class WebhookSignatureError(Exception):
    """The webhook signature is missing or does not match the body."""


class ShipmentSyncError(Exception):
    """A shipment in the batch could not be applied.

    Shipments before and after the failing one are still committed;
    ``receipt`` carries their outcomes so their notices are not lost when the
    carrier redelivers and they come back as duplicates. ``error`` is the
    first failure.
    """

    def __init__(self, receipt: "WebhookReceipt", error: Exception) -> None:
        super().__init__(str(error))
        self.receipt = receipt
        self.error = error


def sign(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes, signature: str | None, secret: str) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(signature.strip().lower(), sign(body, secret))


@dataclass
class WebhookReceipt:
    processed: bool
    resource_type: str | None = None
    received: bool = True
    outcomes: list[ShipmentOutcome] = field(default_factory=list)

    @property
    def notices(self) -> list[ShipmentNotice]:
        return [outcome.notice for outcome in self.outcomes if outcome.notice is not None]


def parse_ship_date(value) -> datetime | None:
    """Ship dates arrive as ``YYYY-MM-DD`` or a timestamp; only the date counts."""
    if not value:
        return None
    match = _DATE_PREFIX.match(str(value))
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    return datetime(year, month, day, tzinfo=UTC)


class CarrierWebhookSynchronizer:
    def __init__(self, carrier: CarrierPort | None, webhook_secret: str | None = None) -> None:
        self.carrier = carrier
        self.webhook_secret = webhook_secret

    def authenticate(self, raw_body: bytes, signature: str | None) -> None:
        if not self.webhook_secret:
            logger.warning("Webhook secret not configured, skipping signature verification")
            return
        if not verify_signature(raw_body, signature, self.webhook_secret):
            logger.error("Invalid carrier webhook signature")
            raise WebhookSignatureError("Invalid signature")

    def handle(self, raw_body: bytes, signature: str | None) -> WebhookReceipt:
        self.authenticate(raw_body, signature)

        try:
            payload = json.loads(raw_body)
        except ValueError:
            logger.warning("Carrier webhook body is not JSON")
            return WebhookReceipt(processed=False)
        if not isinstance(payload, dict):
            logger.warning("Carrier webhook body is not an object")
            return WebhookReceipt(processed=False)

        resource_type = payload.get("resource_type")
        resource_url = payload.get("resource_url")
        logger.info(
            "Carrier webhook received",
            resource_type=resource_type,
            resource_url=(resource_url or "")[:50],
        )

        if resource_type in _SHIPMENT_EVENTS:
            return self._sync_shipments(resource_type, resource_url)

        if resource_type == ORDER_NOTIFY:
            logger.info("Order notification received, no action needed")
        else:
            logger.info("Unknown carrier webhook type", resource_type=resource_type)
        return WebhookReceipt(processed=True, resource_type=resource_type)

    def _sync_shipments(self, resource_type: str, resource_url: str | None) -> WebhookReceipt:
        if not resource_url:
            logger.warning("Shipment notification without resource_url")
            return WebhookReceipt(processed=False, resource_type=resource_type)
        if self.carrier is None:
            logger.error("Carrier API credentials not configured, cannot fetch shipments")
            return WebhookReceipt(processed=False, resource_type=resource_type)

        try:
            shipments = self.carrier.fetch_shipments(resource_url)
        except CarrierError as exc:
            logger.error("Failed to fetch shipment data", error=str(exc))
            return WebhookReceipt(processed=False, resource_type=resource_type)

        if not shipments:
            logger.error("No shipment data found", resource_url=resource_url[:50])
            return WebhookReceipt(processed=False, resource_type=resource_type)

        outcomes = []
        failure = None
        for shipment in shipments:
            try:
                outcomes.append(self.apply_shipment(shipment))
            except Exception as exc:
                logger.error(
                    "Failed to apply shipment",
                    order_id=shipment.get("orderNumber"),
                    error=str(exc),
                )
                failure = failure or exc

        if failure is not None:
            receipt = WebhookReceipt(processed=False, resource_type=resource_type, outcomes=outcomes)
            raise ShipmentSyncError(receipt, failure) from failure

        logger.info("Processed shipments", count=len(outcomes))
        return WebhookReceipt(processed=True, resource_type=resource_type, outcomes=outcomes)

    def apply_shipment(self, shipment: dict) -> ShipmentOutcome:
        order_number = shipment.get("orderNumber")
        if order_number:
            bind_order_context(str(order_number))
        if shipment.get("voided"):
            logger.info("Ignoring voided shipment", tracking_number=shipment.get("trackingNumber"))
            return ShipmentOutcome(status=SKIPPED, order_id=order_number, reason="voided")

        weight = shipment.get("weight") or {}
        dimensions = shipment.get("dimensions") or {}
        command = RecordCarrierShipment(
            order_number=str(order_number) if order_number else None,
            tracking_number=shipment.get("trackingNumber"),
            carrier_code=shipment.get("carrierCode"),
            service_code=shipment.get("serviceCode"),
            shipped_at=parse_ship_date(shipment.get("shipDate")),
            cost_cents=round(float(shipment.get("shipmentCost") or 0) * 100),
            weight_value=weight.get("value"),
            weight_units=weight.get("units"),
            length=dimensions.get("length"),
            width=dimensions.get("width"),
            height=dimensions.get("height"),
            dimension_units=dimensions.get("units"),
        )
        try:
            return current_domain.process(command, asynchronous=False)
        except ValidationError as exc:
            # A concurrent delivery stored the same label first
            if "idempotency_key" in (exc.messages or {}):
                logger.info("Shipment applied by a concurrent delivery", order_id=order_number)
                return ShipmentOutcome(status=DUPLICATE, order_id=order_number)
            raise
