# src/vogue_commerce/storage/__init__.py
"""Persistence adapters and the offline command queue."""

from .adapter import FileStorage, InMemoryStorage, PersistenceAdapter
from .offline_queue import DrainResult, OfflineAction, OfflineQueue

__all__ = [
    "DrainResult",
    "FileStorage",
    "InMemoryStorage",
    "OfflineAction",
    "OfflineQueue",
    "PersistenceAdapter",
]
