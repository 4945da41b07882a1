# src/vogue_commerce/models/__init__.py
"""Domain models."""

from .cart import CartLineItem, CartRecord, CartState, variant_key
from .catalog import CatalogQuery, CatalogViewState, FilterOptions, SortOption
from .product import Product, ProductCategory, ProductColor, ProductRecord, Size
from .user import User, UserMeasurements, UserRecord, UserStats

__all__ = [
    "CartLineItem",
    "CartRecord",
    "CartState",
    "CatalogQuery",
    "CatalogViewState",
    "FilterOptions",
    "Product",
    "ProductCategory",
    "ProductColor",
    "ProductRecord",
    "Size",
    "SortOption",
    "User",
    "UserMeasurements",
    "UserRecord",
    "UserStats",
    "variant_key",
]
