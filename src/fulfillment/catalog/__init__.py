"""Catalog adapter registry.

Defaults to the in-memory catalog; the storefront's catalog service is wired
in with set_catalog() at application startup.
"""

from fulfillment.catalog.in_memory import InMemoryCatalog
from fulfillment.catalog.port import CatalogPort

_current_catalog: CatalogPort | None = None


def get_catalog() -> CatalogPort:
    """Return the active catalog adapter."""
    global _current_catalog
    if _current_catalog is None:
        _current_catalog = InMemoryCatalog()
    return _current_catalog


def set_catalog(catalog: CatalogPort) -> None:
    """Override the active catalog adapter."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to the default in-memory catalog."""
    global _current_catalog
    _current_catalog = None
