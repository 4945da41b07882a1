# src/vogue_commerce/stores/__init__.py
"""Stateful stores: cart, catalog and user."""

from .cart import CartEngine
from .catalog import CatalogStore
from .user import UserStore

__all__ = ["CartEngine", "CatalogStore", "UserStore"]
