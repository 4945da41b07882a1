# src/vogue_commerce/catalog/__init__.py
"""Catalog querying, promo resolution and remote product loading."""

from .loader import HttpProductSource, ProductLoader, ProductSource, map_record, map_records
from .promo import PromoCodeResolver, normalize_code
from .query import derive_view, sort_products

__all__ = [
    "HttpProductSource",
    "ProductLoader",
    "ProductSource",
    "PromoCodeResolver",
    "derive_view",
    "map_record",
    "map_records",
    "normalize_code",
    "sort_products",
]
