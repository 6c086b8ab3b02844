"""Read-only reference data: instruments and market-event templates."""

from catalog.loader import Catalog, CatalogError, load_catalog

__all__ = ["Catalog", "CatalogError", "load_catalog"]
