"""Fulfillment aggregate (CQRS) — the pack station record for one order.

A fulfillment is started once per order. It snapshots the order's lines into
a checklist, accumulates barcode scans against that checklist and groups
matched scans into numbered boxes. Scans are append-only; only their box
assignment changes.

State Machine:
    (none) → IN_PROGRESS → COMPLETED

Invariants:
    Matched quantity per order item never exceeds the ordered quantity.
    Only matched scans are ever placed in a box, and only in a box that exists.
"""

import json
from collections import defaultdict
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, Text

from fulfillment.domain import fulfillment
from fulfillment.fulfillment.events import (
    FulfillmentCompleted,
    FulfillmentStarted,
    ItemScanned,
    PackageOpened,
    ScansPackaged,
    ScanUnpackaged,
    UnrecognizedCodeScanned,
)


class FulfillmentStatus(Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@fulfillment.entity(part_of="Fulfillment")
class ChecklistLine:
    """Ordered quantity of one order item, as of fulfillment start."""

    order_item_id = Identifier(required=True)
    ordered_quantity = Integer(required=True, min_value=1)


@fulfillment.entity(part_of="Fulfillment")
class FulfillmentScan:
    """One read at the scanner. Unmatched scans are kept for the audit trail."""

    code = String(required=True, max_length=255)
    order_item_id = Identifier()
    quantity = Integer(default=0, min_value=0)
    matched = Boolean(default=False)
    error_message = String(max_length=500)
    scanned_at = DateTime(required=True)
    package_id = Identifier()


@fulfillment.entity(part_of="Fulfillment")
class Package:
    box_number = Integer(required=True, min_value=1)
    packaging_type_id = Identifier()
    created_at = DateTime()


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@fulfillment.aggregate
class Fulfillment:
    order_id = Identifier(required=True, unique=True)
    status = String(choices=FulfillmentStatus, default=FulfillmentStatus.IN_PROGRESS.value)
    started_at = DateTime()
    completed_at = DateTime()
    fulfilled_by_id = String(max_length=100)
    fulfilled_by_name = String(max_length=200)
    notes = Text()
    packaging_type_id = Identifier()
    lines = HasMany(ChecklistLine)
    scans = HasMany(FulfillmentScan)
    packages = HasMany(Package)

    @invariant.post
    def matched_quantity_cannot_exceed_ordered(self):
        ordered = {str(line.order_item_id): line.ordered_quantity for line in self.lines or []}
        for order_item_id, scanned in self._scanned_by_item().items():
            if scanned > ordered.get(order_item_id, 0):
                raise ValidationError({"scans": [f"Scanned {scanned} of item {order_item_id}, more than ordered"]})

    @invariant.post
    def packaged_scans_must_be_matched(self):
        package_ids = {str(p.id) for p in self.packages or []}
        for scan in self.scans or []:
            if scan.package_id is None:
                continue
            if not scan.matched:
                raise ValidationError({"scans": ["Only matched scans can be placed in a box"]})
            if str(scan.package_id) not in package_ids:
                raise ValidationError({"scans": [f"Box {scan.package_id} does not exist"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def start(
        cls,
        order_id: str,
        lines: list[dict],
        user_id: str | None = None,
        user_name: str | None = None,
    ):
        """Start packing an order. ``lines`` holds order_item_id and ordered_quantity."""
        now = datetime.now(UTC)
        ff = cls(
            order_id=order_id,
            status=FulfillmentStatus.IN_PROGRESS.value,
            started_at=now,
            fulfilled_by_id=user_id,
            fulfilled_by_name=user_name,
        )
        for line in lines:
            ff.add_lines(ChecklistLine(**line))
        ff.raise_(
            FulfillmentStarted(
                fulfillment_id=str(ff.id),
                order_id=order_id,
                started_by=user_name or "",
                line_count=len(lines),
                started_at=now,
            )
        )
        return ff

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_completed(self) -> bool:
        return FulfillmentStatus(self.status) == FulfillmentStatus.COMPLETED

    def _scanned_by_item(self) -> dict[str, int]:
        totals: dict[str, int] = defaultdict(int)
        for scan in self.scans or []:
            if scan.matched and scan.order_item_id is not None:
                totals[str(scan.order_item_id)] += scan.quantity
        return totals

    def line_for(self, order_item_id: str):
        return next((ln for ln in (self.lines or []) if str(ln.order_item_id) == str(order_item_id)), None)

    def scanned_quantity(self, order_item_id: str) -> int:
        return self._scanned_by_item().get(str(order_item_id), 0)

    def remaining_quantity(self, order_item_id: str) -> int:
        line = self.line_for(order_item_id)
        if line is None:
            return 0
        return line.ordered_quantity - self.scanned_quantity(order_item_id)

    def is_fully_scanned(self) -> bool:
        return all(self.remaining_quantity(line.order_item_id) <= 0 for line in self.lines or [])

    def scan(self, scan_id: str):
        return next((s for s in (self.scans or []) if str(s.id) == str(scan_id)), None)

    def package(self, package_id: str):
        return next((p for p in (self.packages or []) if str(p.id) == str(package_id)), None)

    def unassigned_scans(self) -> list:
        return [s for s in (self.scans or []) if s.matched and s.package_id is None]

    def scans_in(self, package_id: str) -> list:
        return [s for s in (self.scans or []) if s.matched and str(s.package_id) == str(package_id)]

    def _assert_in_progress(self) -> None:
        if self.is_completed:
            raise ValidationError({"status": ["Fulfillment is already completed"]})

    # -------------------------------------------------------------------
    # Scanning
    # -------------------------------------------------------------------
    def record_scan(self, code: str, order_item_id: str, quantity: int = 1):
        """Record a matched scan. Over-scans are rejected, never truncated."""
        self._assert_in_progress()
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        line = self.line_for(order_item_id)
        if line is None:
            raise ValidationError({"order_item_id": ["Item is not part of this order"]})

        already = self.scanned_quantity(order_item_id)
        if already >= line.ordered_quantity:
            raise ValidationError({"quantity": [f"Already scanned all {line.ordered_quantity} of this item"]})
        if already + quantity > line.ordered_quantity:
            remaining = line.ordered_quantity - already
            raise ValidationError({"quantity": [f"Only {remaining} more of this item can be scanned"]})

        now = datetime.now(UTC)
        scan = FulfillmentScan(
            code=code,
            order_item_id=order_item_id,
            quantity=quantity,
            matched=True,
            scanned_at=now,
        )
        self.add_scans(scan)
        self.raise_(
            ItemScanned(
                fulfillment_id=str(self.id),
                scan_id=str(scan.id),
                order_item_id=str(order_item_id),
                quantity=quantity,
                scanned_quantity=already + quantity,
                ordered_quantity=line.ordered_quantity,
                scanned_at=now,
            )
        )
        return scan

    def record_unmatched_scan(self, code: str, error_message: str):
        self._assert_in_progress()
        now = datetime.now(UTC)
        scan = FulfillmentScan(
            code=code,
            quantity=0,
            matched=False,
            error_message=error_message,
            scanned_at=now,
        )
        self.add_scans(scan)
        self.raise_(
            UnrecognizedCodeScanned(
                fulfillment_id=str(self.id),
                scan_id=str(scan.id),
                code=code,
                scanned_at=now,
            )
        )
        return scan

    # -------------------------------------------------------------------
    # Boxes
    # -------------------------------------------------------------------
    def open_package(self, packaging_type_id: str | None = None):
        """Open the next sequentially numbered box."""
        self._assert_in_progress()
        now = datetime.now(UTC)
        package = Package(
            box_number=len(self.packages or []) + 1,
            packaging_type_id=packaging_type_id,
            created_at=now,
        )
        self.add_packages(package)
        self.raise_(
            PackageOpened(
                fulfillment_id=str(self.id),
                package_id=str(package.id),
                box_number=package.box_number,
                packaging_type_id=packaging_type_id,
                opened_at=now,
            )
        )
        return package

    def assign_scans(self, package_id: str, scan_ids: list[str]) -> list:
        """Place scans in a box. Either every scan is placed or none is."""
        self._assert_in_progress()
        package = self.package(package_id)
        if package is None:
            raise ValidationError({"package_id": ["Box not found in this fulfillment"]})
        if len(set(map(str, scan_ids))) != len(scan_ids):
            raise ValidationError({"scan_ids": ["Scan ids must be unique"]})

        scans = []
        for scan_id in scan_ids:
            scan = self.scan(scan_id)
            if scan is None:
                raise ValidationError({"scan_ids": [f"Scan {scan_id} not found in this fulfillment"]})
            if not scan.matched:
                raise ValidationError({"scan_ids": [f"Scan {scan_id} did not match an item"]})
            if scan.package_id is not None:
                raise ValidationError({"scan_ids": [f"Scan {scan_id} is already in a box"]})
            scans.append(scan)

        if not scans:
            return []

        for scan in scans:
            scan.package_id = package.id

        self.raise_(
            ScansPackaged(
                fulfillment_id=str(self.id),
                package_id=str(package.id),
                scan_ids=json.dumps([str(s.id) for s in scans]),
                packaged_at=datetime.now(UTC),
            )
        )
        return scans

    def box_unassigned_scans(self, packaging_type_id: str):
        """Close out everything scanned since the last box into a new box."""
        package = self.open_package(packaging_type_id)
        scans = self.unassigned_scans()
        self.assign_scans(str(package.id), [str(s.id) for s in scans])
        self.packaging_type_id = packaging_type_id
        return package, scans

    def detach_scan(self, scan_id: str) -> None:
        self._assert_in_progress()
        scan = self.scan(scan_id)
        if scan is None:
            raise ValidationError({"scan_id": ["Scan not found in this fulfillment"]})
        if scan.package_id is None:
            raise ValidationError({"scan_id": ["Scan is not in a box"]})

        package_id = scan.package_id
        scan.package_id = None
        self.raise_(
            ScanUnpackaged(
                fulfillment_id=str(self.id),
                scan_id=str(scan.id),
                package_id=str(package_id),
                unpackaged_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # Updates and completion
    # -------------------------------------------------------------------
    def choose_packaging(self, packaging_type_id: str | None) -> None:
        self.packaging_type_id = packaging_type_id

    def update_notes(self, notes: str | None) -> None:
        self.notes = notes

    def complete(self) -> None:
        """Close the fulfillment. Completion is an explicit decision by staff."""
        self._assert_in_progress()
        now = datetime.now(UTC)
        self.status = FulfillmentStatus.COMPLETED.value
        self.completed_at = now
        self.raise_(
            FulfillmentCompleted(
                fulfillment_id=str(self.id),
                order_id=str(self.order_id),
                package_count=len(self.packages or []),
                fully_scanned=self.is_fully_scanned(),
                completed_at=now,
            )
        )
