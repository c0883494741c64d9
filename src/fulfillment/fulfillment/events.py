"""Fulfillment domain events — immutable facts about packing progress.

All events are past tense and versioned. Scan events carry the running
scanned quantity so downstream consumers do not need to replay scans.
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from fulfillment.domain import fulfillment


@fulfillment.event(part_of="Fulfillment")
class FulfillmentStarted:
    """Packing began for a paid order."""

    __version__ = 1

    fulfillment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    started_by = String()
    line_count = Integer(required=True)
    started_at = DateTime(required=True)


@fulfillment.event(part_of="Fulfillment")
class ItemScanned:
    """A scanned code matched an order item."""

    __version__ = 1

    fulfillment_id = Identifier(required=True)
    scan_id = Identifier(required=True)
    order_item_id = Identifier(required=True)
    quantity = Integer(required=True)
    scanned_quantity = Integer(required=True)
    ordered_quantity = Integer(required=True)
    scanned_at = DateTime(required=True)


@fulfillment.event(part_of="Fulfillment")
class UnrecognizedCodeScanned:
    __version__ = 1

    fulfillment_id = Identifier(required=True)
    scan_id = Identifier(required=True)
    code = String(required=True)
    scanned_at = DateTime(required=True)


@fulfillment.event(part_of="Fulfillment")
class PackageOpened:
    __version__ = 1

    fulfillment_id = Identifier(required=True)
    package_id = Identifier(required=True)
    box_number = Integer(required=True)
    packaging_type_id = Identifier()
    opened_at = DateTime(required=True)


@fulfillment.event(part_of="Fulfillment")
class ScansPackaged:
    """Matched scans were placed into a box."""

    __version__ = 1

    fulfillment_id = Identifier(required=True)
    package_id = Identifier(required=True)
    scan_ids = Text(required=True)  # JSON list of scan ids
    packaged_at = DateTime(required=True)


@fulfillment.event(part_of="Fulfillment")
class ScanUnpackaged:
    __version__ = 1

    fulfillment_id = Identifier(required=True)
    scan_id = Identifier(required=True)
    package_id = Identifier(required=True)
    unpackaged_at = DateTime(required=True)


@fulfillment.event(part_of="Fulfillment")
class FulfillmentCompleted:
    __version__ = 1

    fulfillment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    package_count = Integer(required=True)
    fully_scanned = Boolean(default=False)
    completed_at = DateTime(required=True)
