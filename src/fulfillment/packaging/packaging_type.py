"""PackagingType aggregate — boxes and mailers stocked at the pack station."""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String

from fulfillment.domain import fulfillment
from fulfillment.packaging.barcode import upc_from_sku
from fulfillment.packaging.events import PackagingTypeDeactivated, PackagingTypeRegistered


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


@fulfillment.aggregate
class PackagingType:
    sku = String(required=True, max_length=100, unique=True)
    name = String(required=True, max_length=200)
    length = Float(min_value=0)
    width = Float(min_value=0)
    height = Float(min_value=0)
    weight_oz = Float(min_value=0)
    cost_cents = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    created_at = DateTime()

    @classmethod
    def register(
        cls,
        sku: str,
        name: str,
        length: float | None = None,
        width: float | None = None,
        height: float | None = None,
        weight_oz: float | None = None,
        cost_cents: int = 0,
    ):
        now = datetime.now(UTC)
        packaging = cls(
            sku=sku.strip(),
            name=name,
            length=length,
            width=width,
            height=height,
            weight_oz=weight_oz,
            cost_cents=cost_cents,
            is_active=True,
            created_at=now,
        )
        packaging.raise_(
            PackagingTypeRegistered(
                packaging_type_id=str(packaging.id),
                sku=packaging.sku,
                name=name,
                registered_at=now,
            )
        )
        return packaging

    @property
    def upc(self) -> str:
        return upc_from_sku(self.sku)

    def matches(self, code: str) -> bool:
        """True when a scanned code is this packaging's SKU or generated UPC."""
        normalized = normalize_code(code)
        return bool(normalized) and normalized in (normalize_code(self.sku), self.upc)

    def deactivate(self) -> None:
        if not self.is_active:
            raise ValidationError({"is_active": ["Packaging type is already inactive"]})
        self.is_active = False
        self.raise_(
            PackagingTypeDeactivated(
                packaging_type_id=str(self.id),
                deactivated_at=datetime.now(UTC),
            )
        )
