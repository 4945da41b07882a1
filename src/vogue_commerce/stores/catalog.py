# src/vogue_commerce/stores/catalog.py
"""
Catalog Store

Holds the loaded product catalog and the shopper's current query
(search text, filters, sort), and keeps the derived product view in step
with both. The view is recomputed in full on every change.

Loading goes through the ProductLoader retry loop. A successful load
replaces the catalog wholesale; a failed load keeps the last-known-good
products and exposes a readable error; a cancelled load changes nothing.

Persistence:
- Query state (searchQuery, filters, sortBy) under the catalog key
- The last successfully loaded products under the products key, so a
  restart shows the previous catalog before the first reload completes
"""

import threading
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from ..catalog.loader import ProductLoader
from ..catalog.query import derive_view
from ..core.exceptions import CommerceException, OperationCancelledException, PersistenceException
from ..core.logger import get_logger
from ..core.retry import CancellationToken
from ..models.catalog import CatalogQuery, CatalogViewState, FilterOptions, SortOption
from ..models.product import Product, ProductCategory
from ..storage.adapter import InMemoryStorage, PersistenceAdapter

DEFAULT_CATALOG_KEY = "virtual-vogue-catalog"
DEFAULT_PRODUCTS_KEY = "virtual-vogue-products"
DEFAULT_LOAD_ERROR = "Error loading products"

_PRODUCTS_ADAPTER = TypeAdapter(List[Product])


class CatalogStore:
    """
    Product catalog plus its query-derived view.

    Example:
        >>> store = CatalogStore(loader=ProductLoader(source), storage=storage)
        >>> await store.load_products()
        >>> store.set_filters(has_ar=True)
        >>> [p.id for p in store.filtered_products]
    """

    def __init__(
            self,
            loader: Optional[ProductLoader] = None,
            storage: Optional[PersistenceAdapter] = None,
            catalog_key: str = DEFAULT_CATALOG_KEY,
            products_key: str = DEFAULT_PRODUCTS_KEY
    ):
        self.loader = loader
        self.storage = storage if storage is not None else InMemoryStorage()
        self.catalog_key = catalog_key
        self.products_key = products_key
        self.logger = get_logger("catalog")

        self.is_loading = False
        self.error: Optional[str] = None
        self.last_persist_error: Optional[PersistenceException] = None

        self._lock = threading.RLock()
        self._query = self._restore_query()
        self._products: Tuple[Product, ...] = tuple(self._restore_products())
        self._view = self._derive()

    # Read side

    @property
    def products(self) -> Tuple[Product, ...]:
        return self._products

    @property
    def view(self) -> CatalogViewState:
        return self._view

    @property
    def filtered_products(self) -> Tuple[Product, ...]:
        return self._view.filtered_products

    @property
    def search_query(self) -> str:
        return self._query.search_query

    @property
    def filters(self) -> FilterOptions:
        return self._query.filters

    @property
    def sort_by(self) -> SortOption:
        return self._query.sort_by

    @property
    def featured_products(self) -> List[Product]:
        return [product for product in self._products if product.is_featured]

    @property
    def categories(self) -> List[str]:
        return [category.value for category in ProductCategory]

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        for product in self._products:
            if product.id == product_id:
                return product
        return None

    # Query mutations

    def set_search_query(self, query: str) -> None:
        with self._lock:
            self._update_query(search_query=query or "")

    def set_filters(self, changes: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> None:
        """
        Merge filter changes into the active filters.

        Accepts a mapping, keyword arguments, or both; a ``None`` value
        switches that filter off.
        """
        merged = dict(changes or {})
        merged.update(kwargs)
        with self._lock:
            self._update_query(filters=self._query.filters.merge(merged))

    def clear_filters(self) -> None:
        """Reset filters and the search query; sort order is kept."""
        with self._lock:
            self._update_query(filters=FilterOptions(), search_query="")

    def set_sort_by(self, sort_by) -> None:
        with self._lock:
            self._update_query(sort_by=SortOption.parse(sort_by))

    def set_products(self, products: Iterable[Product]) -> None:
        """Replace the catalog wholesale and cache it."""
        with self._lock:
            self._products = tuple(products)
            self._view = self._derive()
            self._write(self.products_key, _PRODUCTS_ADAPTER.dump_json(list(self._products)).decode("utf-8"))

    # Loading

    async def load_products(self, cancel_token: Optional[CancellationToken] = None) -> bool:
        """
        Load the catalog through the retrying loader.

        Returns:
            True if the catalog was replaced; False if the load failed
            or was cancelled
        """
        if self.loader is None:
            raise RuntimeError("CatalogStore has no product loader")

        self.is_loading = True
        self.error = None
        try:
            products = await self.loader.load(cancel_token)
        except OperationCancelledException:
            self.is_loading = False
            self.logger.info("Product load cancelled")
            return False
        except Exception as e:
            self.is_loading = False
            self.error = str(e) or DEFAULT_LOAD_ERROR
            details = e.to_dict() if isinstance(e, CommerceException) else {"error_type": type(e).__name__}
            self.logger.warning("Product load failed", error=self.error, **details)
            return False

        self.set_products(products)
        self.is_loading = False
        self.logger.info("Products loaded", product_count=len(products))
        return True

    # Internals

    def _update_query(self, **changes: Any) -> None:
        self._query = self._query.model_copy(update=changes)
        self._view = self._derive()
        self._write(self.catalog_key, self._query.to_json_string())
        self.logger.debug(
            "Catalog query changed",
            search_query=self._query.search_query,
            sort_by=self._query.sort_by.value,
            result_count=len(self._view.filtered_products)
        )

    def _derive(self) -> CatalogViewState:
        query = self._query
        return CatalogViewState(
            search_query=query.search_query,
            filters=query.filters,
            sort_by=query.sort_by,
            filtered_products=tuple(derive_view(self._products, query.filters, query.search_query, query.sort_by)),
        )

    def _write(self, key: str, value: str) -> None:
        try:
            self.storage.set_item(key, value)
        except PersistenceException as e:
            self.last_persist_error = e
            self.logger.error("Catalog persistence failed", key=key, **e.to_dict())
        else:
            self.last_persist_error = None

    def _read(self, key: str) -> Optional[str]:
        try:
            return self.storage.get_item(key)
        except PersistenceException as e:
            self.last_persist_error = e
            self.logger.error("Catalog restore failed", key=key, **e.to_dict())
            return None

    def _restore_query(self) -> CatalogQuery:
        raw = self._read(self.catalog_key)
        if not raw:
            return CatalogQuery()
        try:
            return CatalogQuery.from_json_string(raw)
        except ValidationError as e:
            self.logger.warning("Discarding malformed catalog query", key=self.catalog_key, error_count=e.error_count())
            return CatalogQuery()

    def _restore_products(self) -> List[Product]:
        raw = self._read(self.products_key)
        if not raw:
            return []
        try:
            return _PRODUCTS_ADAPTER.validate_json(raw)
        except ValidationError as e:
            self.logger.warning("Discarding malformed product cache", key=self.products_key, error_count=e.error_count())
            return []
