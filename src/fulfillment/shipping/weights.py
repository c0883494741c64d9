"""Shippable weight resolution for carts and orders.

Turns line items into a single parcel weight that carriers will rate. Games
carry an explicit weight in ounces; merch weight is free text entered by
staff ("8 oz", "0.5 lbs") and must be parsed.
"""

import math
import re
from dataclasses import dataclass

from fulfillment.catalog.port import CatalogPort, ItemKind

GAME_DEFAULT_WEIGHT_OZ = 32.0
APPAREL_DEFAULT_WEIGHT_OZ = 8.0
OUNCES_PER_POUND = 16
MINIMUM_WEIGHT_LBS = 1.0

_WEIGHT_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?|\.\d+)\s*([a-z]*)\.?\s*$")
_POUND_UNITS = {"lb", "lbs", "pound", "pounds"}
_OUNCE_UNITS = {"", "oz", "ozs", "ounce", "ounces"}


@dataclass(frozen=True)
class PackageDimensions:
    length: float
    width: float
    height: float
    units: str = "inches"


DEFAULT_PACKAGE_DIMENSIONS = PackageDimensions(length=12, width=9, height=3)


@dataclass(frozen=True)
class WeighableItem:
    kind: str
    product_id: str
    quantity: int
    size: str | None = None


@dataclass(frozen=True)
class ShipmentWeight:
    total_ounces: float
    weight_lbs: float
    dimensions: PackageDimensions = DEFAULT_PACKAGE_DIMENSIONS


def parse_weight_oz(value, default: float = APPAREL_DEFAULT_WEIGHT_OZ) -> float:
    """Parse a free-text weight into ounces.

    A trailing pound unit multiplies by 16, an ounce unit (or no unit at all)
    is taken as ounces. Anything that isn't a number, or carries a unit we
    don't recognize, falls back to ``default``.
    """
    if value is None:
        return default
    if isinstance(value, int | float):
        return float(value) if value > 0 else default

    match = _WEIGHT_PATTERN.match(str(value).strip().lower())
    if not match:
        return default

    amount = float(match.group(1))
    unit = match.group(2)
    if amount <= 0:
        return default
    if unit in _POUND_UNITS:
        return amount * OUNCES_PER_POUND
    if unit in _OUNCE_UNITS:
        return amount
    return default


def item_weight_oz(kind: str, product) -> float:
    """Weight of a single unit, falling back to the category default."""
    if kind == ItemKind.GAME.value:
        weight = product.weight if product is not None else None
        if isinstance(weight, int | float) and weight > 0:
            return float(weight)
        if isinstance(weight, str):
            return parse_weight_oz(weight, default=GAME_DEFAULT_WEIGHT_OZ)
        return GAME_DEFAULT_WEIGHT_OZ

    return parse_weight_oz(product.weight if product is not None else None)


def ounces_to_billable_pounds(total_ounces: float) -> float:
    """Convert to pounds, clamp to the carrier minimum and round to 0.1 lb."""
    pounds = max(total_ounces / OUNCES_PER_POUND, MINIMUM_WEIGHT_LBS)
    # Round half up; round() would bank 2.25 down to 2.2
    return math.floor(pounds * 10 + 0.5) / 10


def resolve_shipment_weight(items: list[WeighableItem], catalog: CatalogPort) -> ShipmentWeight:
    """Aggregate the shippable weight of a set of line items."""
    total = 0.0
    for item in items:
        product = catalog.get_product(item.kind, item.product_id)
        total += item_weight_oz(item.kind, product) * item.quantity

    return ShipmentWeight(
        total_ounces=total,
        weight_lbs=ounces_to_billable_pounds(total),
    )
