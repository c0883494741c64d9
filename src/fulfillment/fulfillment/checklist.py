"""Pack station view of an order: checklist, boxes and progress."""

from fulfillment.catalog.port import CatalogPort
from fulfillment.fulfillment.fulfillment import Fulfillment
from fulfillment.order.order import Order


def _packaging_summary(packaging) -> dict | None:
    if packaging is None:
        return None
    return {
        "id": str(packaging.id),
        "sku": packaging.sku,
        "name": packaging.name,
        "upc": packaging.upc,
    }


def build_fulfillment_view(
    order: Order,
    fulfillment: Fulfillment | None,
    catalog: CatalogPort,
    packaging_types: dict,
) -> dict:
    """Assemble everything the pack station screen shows for an order.

    ``packaging_types`` maps packaging type id to PackagingType.
    """
    names = {}
    checklist = []
    for item in order.items or []:
        product = catalog.get_product(item.item_kind, str(item.product_id))
        name = product.title if product else "Unknown"
        names[str(item.id)] = name

        ordered = item.quantity
        scanned = 0
        if fulfillment is not None:
            line = fulfillment.line_for(item.id)
            ordered = line.ordered_quantity if line else item.quantity
            scanned = fulfillment.scanned_quantity(item.id)

        checklist.append(
            {
                "id": str(item.id),
                "item_kind": item.item_kind,
                "name": name,
                "sku": product.sku if product else None,
                "barcode": product.barcode if product else None,
                "image_url": product.image_url if product else None,
                "size": item.merch_size,
                "ordered_quantity": ordered,
                "scanned_quantity": scanned,
                "is_complete": scanned >= ordered,
            }
        )

    def scan_row(scan) -> dict:
        return {
            "scan_id": str(scan.id),
            "name": names.get(str(scan.order_item_id), "Unknown"),
            "quantity": scan.quantity,
        }

    packages = []
    unassigned = []
    recent_scans = []
    if fulfillment is not None:
        for package in sorted(fulfillment.packages or [], key=lambda p: p.box_number):
            packaging = packaging_types.get(str(package.packaging_type_id)) if package.packaging_type_id else None
            packages.append(
                {
                    "id": str(package.id),
                    "box_number": package.box_number,
                    "packaging_type": _packaging_summary(packaging),
                    "items": [scan_row(s) for s in fulfillment.scans_in(package.id)],
                }
            )
        unassigned = [scan_row(s) for s in fulfillment.unassigned_scans()]
        recent_scans = [
            {
                "scan_id": str(s.id),
                "code": s.code,
                "matched": s.matched,
                "quantity": s.quantity,
                "order_item_id": str(s.order_item_id) if s.order_item_id else None,
                "package_id": str(s.package_id) if s.package_id else None,
                "error_message": s.error_message,
                "scanned_at": s.scanned_at,
            }
            for s in sorted(fulfillment.scans or [], key=lambda s: s.scanned_at, reverse=True)
        ]

    total = sum(row["ordered_quantity"] for row in checklist)
    scanned_total = sum(min(row["scanned_quantity"], row["ordered_quantity"]) for row in checklist)
    packaging_type_id = order.packaging_type_id or (fulfillment.packaging_type_id if fulfillment else None)

    return {
        "order": {
            "id": str(order.id),
            "customer_name": order.customer_name,
            "customer_email": order.customer_email,
            "status": order.status,
            "shipping_address": order.shipping_address,
            "created_at": order.created_at,
        },
        "fulfillment": None
        if fulfillment is None
        else {
            "id": str(fulfillment.id),
            "status": fulfillment.status,
            "started_at": fulfillment.started_at,
            "completed_at": fulfillment.completed_at,
            "fulfilled_by_name": fulfillment.fulfilled_by_name,
            "notes": fulfillment.notes,
            "scans": recent_scans,
        },
        "packaging_type": _packaging_summary(packaging_types.get(str(packaging_type_id)))
        if packaging_type_id
        else None,
        "checklist": checklist,
        "packages": packages,
        "unassigned_scans": unassigned,
        "progress": {
            "total": total,
            "scanned": scanned_total,
            "percentage": round(scanned_total * 100 / total) if total else 0,
            "is_complete": all(row["is_complete"] for row in checklist),
        },
    }
