"""Catalog port — read-only view of the product catalog.

Product storage lives outside this context. Fulfillment only needs the
identifying fields printed on the packing checklist and the shipping weight.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class ItemKind(Enum):
    GAME = "game"
    MERCH = "merch"


@dataclass(frozen=True)
class ProductRecord:
    """Catalog fields fulfillment cares about for one product."""

    kind: str
    product_id: str
    title: str
    sku: str | None = None
    barcode: str | None = None
    image_url: str | None = None
    # Games carry ounces as a number; merch stores free text such as "8 oz".
    weight: float | str | None = None


class CatalogPort(ABC):
    """Abstract interface for catalog lookups."""

    @abstractmethod
    def get_product(self, kind: str, product_id: str) -> ProductRecord | None:
        """Return the product, or None when the catalog does not know it."""
        ...
