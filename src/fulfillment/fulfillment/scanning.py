"""Barcode scanning at the pack station — command and handler.

A scanned code is trimmed and upper-cased, then tried in order against:

1. the barcode or SKU of each product on the order (a matched scan),
2. the SKU or generated UPC of an active packaging type (closes a box),
3. nothing, in which case the read is kept as an unmatched scan.
"""

from dataclasses import asdict, dataclass, field

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, Integer, String
from protean.utils.globals import current_domain

from fulfillment.catalog import get_catalog
from fulfillment.catalog.port import CatalogPort
from fulfillment.domain import fulfillment
from fulfillment.fulfillment.fulfillment import Fulfillment
from fulfillment.fulfillment.starting import begin_fulfillment, find_fulfillment
from fulfillment.order.order import Order
from fulfillment.packaging.packaging_type import PackagingType, normalize_code
from fulfillment.packaging.registration import active_packaging_types
from fulfillment.utils.logging import bind_order_context

logger = structlog.get_logger(__name__)

UNRECOGNIZED_CODE = "Barcode not found in this order"

OUTCOME_MATCHED = "matched"
OUTCOME_PACKAGE = "package"
OUTCOME_UNMATCHED = "unmatched"


@dataclass(frozen=True)
class ScanResult:
    outcome: str
    matched: bool
    message: str
    scan_id: str | None = None
    order_item_id: str | None = None
    item_name: str | None = None
    scanned_quantity: int = 0
    ordered_quantity: int = 0
    is_complete: bool = False
    order_complete: bool = False
    package_id: str | None = None
    box_number: int | None = None
    packaging_sku: str | None = None
    items_boxed: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@fulfillment.command(part_of="Fulfillment")
class RecordScan:
    order_id = Identifier(required=True)
    code = String(required=True, max_length=255)
    quantity = Integer(default=1, min_value=1)
    start_if_missing = Boolean(default=False)
    user_id = String(max_length=100)
    user_name = String(max_length=200)


def product_name(catalog: CatalogPort, item) -> str:
    product = catalog.get_product(item.item_kind, str(item.product_id))
    return product.title if product else "Unknown item"


def match_order_item(order: Order, ff: Fulfillment, code: str, catalog: CatalogPort):
    """Find the order item a code belongs to.

    When the same product appears on several lines (merch in two sizes), the
    first line that still needs units wins.
    """
    candidates = []
    for item in order.items or []:
        product = catalog.get_product(item.item_kind, str(item.product_id))
        if product is None:
            continue
        if code in (normalize_code(product.barcode), normalize_code(product.sku)):
            candidates.append(item)

    for item in candidates:
        if ff.remaining_quantity(item.id) > 0:
            return item
    return candidates[0] if candidates else None


def match_packaging(code: str) -> PackagingType | None:
    return next((p for p in active_packaging_types() if p.matches(code)), None)


@fulfillment.command_handler(part_of=Fulfillment)
class ScanHandler:
    @handle(RecordScan)
    def record_scan(self, command) -> ScanResult:
        code = normalize_code(command.code)
        if not code:
            raise ValidationError({"code": ["Scanned code is empty"]})
        bind_order_context(command.order_id)

        order_repo = current_domain.repository_for(Order)
        ff_repo = current_domain.repository_for(Fulfillment)
        order = order_repo.get(command.order_id)

        ff = find_fulfillment(command.order_id)
        started_here = False
        if ff is None:
            if not command.start_if_missing:
                raise ValidationError({"order_id": ["Fulfillment has not been started for this order"]})
            ff = begin_fulfillment(order, command.user_id, command.user_name)
            started_here = True

        catalog = get_catalog()
        item = match_order_item(order, ff, code, catalog)
        if item is not None:
            result = self._matched(ff, item, code, command.quantity or 1, catalog)
        else:
            packaging = match_packaging(code)
            if packaging is not None:
                result = self._boxed(ff, order, packaging, catalog)
            else:
                scan = ff.record_unmatched_scan(code, UNRECOGNIZED_CODE)
                logger.info("Unrecognized code scanned", code=code)
                result = ScanResult(
                    outcome=OUTCOME_UNMATCHED,
                    matched=False,
                    message="Barcode not recognized for this order",
                    scan_id=str(scan.id),
                )

        ff_repo.add(ff)
        if started_here:
            order_repo.add(order)
        return result

    def _matched(self, ff: Fulfillment, item, code: str, quantity: int, catalog: CatalogPort) -> ScanResult:
        scan = ff.record_scan(code, str(item.id), quantity)
        scanned = ff.scanned_quantity(item.id)
        ordered = ff.line_for(item.id).ordered_quantity
        name = product_name(catalog, item)
        is_complete = scanned >= ordered
        logger.info("Item scanned", order_item_id=str(item.id), scanned=scanned, ordered=ordered)
        return ScanResult(
            outcome=OUTCOME_MATCHED,
            matched=True,
            message=f"{name} complete!" if is_complete else f"Scanned {scanned}/{ordered}",
            scan_id=str(scan.id),
            order_item_id=str(item.id),
            item_name=name,
            scanned_quantity=scanned,
            ordered_quantity=ordered,
            is_complete=is_complete,
            order_complete=ff.is_fully_scanned(),
        )

    def _boxed(self, ff: Fulfillment, order: Order, packaging: PackagingType, catalog: CatalogPort) -> ScanResult:
        package, scans = ff.box_unassigned_scans(str(packaging.id))
        items_boxed = []
        for scan in scans:
            item = order.item(scan.order_item_id)
            items_boxed.append(
                {
                    "scan_id": str(scan.id),
                    "name": product_name(catalog, item) if item else "Unknown item",
                    "quantity": scan.quantity,
                }
            )
        plural = "" if len(scans) == 1 else "s"
        logger.info("Box closed", box_number=package.box_number, sku=packaging.sku, scans=len(scans))
        return ScanResult(
            outcome=OUTCOME_PACKAGE,
            matched=True,
            message=f"Box {package.box_number}: {packaging.sku} ({len(scans)} item{plural})",
            package_id=str(package.id),
            box_number=package.box_number,
            packaging_sku=packaging.sku,
            items_boxed=items_boxed,
            order_complete=ff.is_fully_scanned(),
        )
