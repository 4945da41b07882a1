# src/vogue_commerce/__init__.py
"""
Virtual Vogue Commerce Core

Client-side commerce state: cart engine, catalog query engine, promo
resolution, retrying product loader and write-through persistence.
"""

__version__ = "1.0.0"

from .bootstrap import CommerceCore, create_commerce_core  # noqa: E402

__all__ = ["CommerceCore", "__version__", "create_commerce_core"]
