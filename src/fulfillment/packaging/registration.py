"""Packaging type registration — commands and handler."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.packaging.packaging_type import PackagingType

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="PackagingType")
class RegisterPackagingType:
    sku = String(required=True, max_length=100)
    name = String(required=True, max_length=200)
    length = Float()
    width = Float()
    height = Float()
    weight_oz = Float()
    cost_cents = Integer(default=0)


@fulfillment.command(part_of="PackagingType")
class DeactivatePackagingType:
    packaging_type_id = Identifier(required=True)


def active_packaging_types() -> list[PackagingType]:
    repo = current_domain.repository_for(PackagingType)
    return repo._dao.query.filter(is_active=True).all().items


@fulfillment.command_handler(part_of=PackagingType)
class PackagingTypeHandler:
    @handle(RegisterPackagingType)
    def register(self, command):
        repo = current_domain.repository_for(PackagingType)
        if repo._dao.query.filter(sku=command.sku.strip()).all().items:
            raise ValidationError({"sku": [f"Packaging type {command.sku} already exists"]})

        packaging = PackagingType.register(
            sku=command.sku,
            name=command.name,
            length=command.length,
            width=command.width,
            height=command.height,
            weight_oz=command.weight_oz,
            cost_cents=command.cost_cents or 0,
        )
        repo.add(packaging)
        logger.info("Packaging type registered", sku=packaging.sku, upc=packaging.upc)
        return str(packaging.id)

    @handle(DeactivatePackagingType)
    def deactivate(self, command):
        repo = current_domain.repository_for(PackagingType)
        packaging = repo.get(command.packaging_type_id)
        packaging.deactivate()
        repo.add(packaging)
