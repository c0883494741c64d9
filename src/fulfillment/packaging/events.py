from protean.fields import DateTime, Identifier, String

from fulfillment.domain import fulfillment


@fulfillment.event(part_of="PackagingType")
class PackagingTypeRegistered:
    __version__ = 1

    packaging_type_id = Identifier(required=True)
    sku = String(required=True)
    name = String(required=True)
    registered_at = DateTime(required=True)


@fulfillment.event(part_of="PackagingType")
class PackagingTypeDeactivated:
    __version__ = 1

    packaging_type_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)
