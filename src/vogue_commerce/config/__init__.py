# src/vogue_commerce/config/__init__.py
"""Configuration package."""

from .settings import Settings, get_settings, get_testing_settings, reload_settings

__all__ = ["Settings", "get_settings", "get_testing_settings", "reload_settings"]
