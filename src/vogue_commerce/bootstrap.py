# src/vogue_commerce/bootstrap.py
"""
Composition Root

Builds the commerce core from settings: one persistence adapter shared by
every store, the promo resolver, the retrying product loader and the
stores themselves. Nothing here is global; callers own the returned
objects and may build as many independent cores as they like.
"""

from dataclasses import dataclass
from typing import Optional

from .catalog.loader import HttpProductSource, ProductLoader, ProductSource
from .catalog.promo import PromoCodeResolver
from .config.settings import Settings, StorageBackend, get_settings
from .core.exceptions import ConfigurationException
from .core.logger import get_logger, setup_logging_from_settings
from .core.retry import RetryConfig
from .storage.adapter import FileStorage, InMemoryStorage, PersistenceAdapter
from .storage.offline_queue import OfflineQueue
from .stores.cart import CartEngine
from .stores.catalog import CatalogStore
from .stores.user import UserStore


@dataclass
class CommerceCore:
    """Wired set of stores sharing one storage adapter."""

    settings: Settings
    storage: PersistenceAdapter
    cart: CartEngine
    catalog: CatalogStore
    user: UserStore
    offline_queue: OfflineQueue


def build_storage(settings: Settings) -> PersistenceAdapter:
    """Create the adapter selected by ``settings.storage.backend``."""
    backend = settings.storage.backend
    if backend == StorageBackend.MEMORY:
        return InMemoryStorage()
    if backend == StorageBackend.FILE:
        return FileStorage(settings.storage.directory)
    raise ConfigurationException(f"Unsupported storage backend: {backend}", setting="storage.backend")


def create_commerce_core(
        settings: Optional[Settings] = None,
        source: Optional[ProductSource] = None,
        storage: Optional[PersistenceAdapter] = None,
        configure_logging: bool = True
) -> CommerceCore:
    """
    Wire the commerce core.

    Args:
        settings: Configuration (cached process settings if None)
        source: Product source (HTTP source from settings if None)
        storage: Persistence adapter (built from settings if None)
        configure_logging: Apply ``settings.logging`` to the package logger

    Returns:
        CommerceCore with stores restored from storage
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging_from_settings(settings.logging)

    storage = storage if storage is not None else build_storage(settings)
    keys = settings.storage

    loader = ProductLoader(
        source if source is not None else HttpProductSource.from_settings(settings),
        retry_config=RetryConfig.from_loader_settings(settings.loader)
    )

    core = CommerceCore(
        settings=settings,
        storage=storage,
        cart=CartEngine(storage, PromoCodeResolver.from_settings(settings.promo), key=keys.cart_key),
        catalog=CatalogStore(loader, storage, catalog_key=keys.catalog_key, products_key=keys.products_key),
        user=UserStore(storage, key=keys.user_key),
        offline_queue=OfflineQueue(storage, key=keys.offline_queue_key),
    )

    get_logger("bootstrap").info(
        "Commerce core ready",
        environment=settings.environment.value,
        storage_backend=keys.backend.value,
        cached_products=len(core.catalog.products),
        cart_lines=len(core.cart.state.items)
    )
    return core
