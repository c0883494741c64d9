"""Box management at the pack station — commands and handler.

Boxes are numbered in the order they are opened. Matched scans are moved
into a box explicitly here, or implicitly by scanning a packaging barcode
(see ``fulfillment.fulfillment.scanning``).
"""

import json

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.fulfillment.fulfillment import Fulfillment
from fulfillment.fulfillment.starting import get_fulfillment
from fulfillment.packaging.packaging_type import PackagingType


@fulfillment.command(part_of="Fulfillment")
class OpenPackage:
    order_id = Identifier(required=True)
    packaging_type_id = Identifier()
    scan_ids = Text()  # JSON list of scan ids to put in the new box


@fulfillment.command(part_of="Fulfillment")
class AssignScansToPackage:
    order_id = Identifier(required=True)
    package_id = Identifier(required=True)
    scan_ids = Text(required=True)  # JSON list of scan ids


@fulfillment.command(part_of="Fulfillment")
class DetachScan:
    order_id = Identifier(required=True)
    scan_id = Identifier(required=True)


def _scan_ids(raw) -> list[str]:
    if not raw:
        return []
    ids = json.loads(raw) if isinstance(raw, str) else raw
    return [str(scan_id) for scan_id in ids]


@fulfillment.command_handler(part_of=Fulfillment)
class PackingHandler:
    @handle(OpenPackage)
    def open_package(self, command):
        if command.packaging_type_id:
            # Raises ObjectNotFoundError for unknown packaging
            current_domain.repository_for(PackagingType).get(command.packaging_type_id)

        ff = get_fulfillment(command.order_id)
        package = ff.open_package(command.packaging_type_id)
        scan_ids = _scan_ids(command.scan_ids)
        if scan_ids:
            ff.assign_scans(str(package.id), scan_ids)
        current_domain.repository_for(Fulfillment).add(ff)
        return str(package.id)

    @handle(AssignScansToPackage)
    def assign_scans(self, command):
        ff = get_fulfillment(command.order_id)
        ff.assign_scans(str(command.package_id), _scan_ids(command.scan_ids))
        current_domain.repository_for(Fulfillment).add(ff)

    @handle(DetachScan)
    def detach_scan(self, command):
        ff = get_fulfillment(command.order_id)
        ff.detach_scan(str(command.scan_id))
        current_domain.repository_for(Fulfillment).add(ff)
