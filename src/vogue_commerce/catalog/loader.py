# src/vogue_commerce/catalog/loader.py
"""
Remote Product Loader

This module fetches raw product records from the remote catalog, maps
them into immutable Products and orchestrates retries:
- ProductSource: the boundary contract (any object with ``fetch_records``)
- HttpProductSource: httpx client for a PostgREST-style products table
- map_records: the defaulting transform from wire rows to Products
- ProductLoader: first attempt plus retries with exponential backoff

Transport failures, and any other error a source raises, surface as
ProductLoadException and are retried; malformed records surface as
ProductDataException and are not.

Key Design Patterns:
- Adapter Pattern: Remote rows adapted to the Product model
- Strategy Pattern: Retry policy injected through RetryConfig
"""

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import httpx
from pydantic import ValidationError

from ..core.exceptions import CommerceException, ProductDataException, ProductLoadException
from ..core.logger import LoggingContext, PerformanceTimer, get_logger
from ..core.retry import (
    CancellationToken,
    RetryConfig,
    Waiter,
    execute_async_with_retry
)
from ..models.product import Product, ProductRecord

LOAD_OPERATION = "load_products"


@runtime_checkable
class ProductSource(Protocol):
    """Anything that can return the raw product rows."""

    async def fetch_records(self) -> List[Dict[str, Any]]:
        ...


class HttpProductSource:
    """
    Product source backed by a PostgREST-compatible HTTP endpoint.

    Issues ``GET {base_url}{products_path}?select=*`` with the anonymous
    API key sent both as ``apikey`` and as a bearer token.
    """

    def __init__(
            self,
            base_url: str,
            products_path: str = "/rest/v1/products",
            headers: Optional[Dict[str, str]] = None,
            timeout: float = 15.0,
            transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.products_path = products_path
        self.headers = dict(headers or {})
        self.timeout = timeout
        self._transport = transport
        self.logger = get_logger("product_source")

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "HttpProductSource":
        client_config = settings.get_loader_client_config()
        return cls(
            base_url=client_config["base_url"],
            products_path=settings.loader.products_path,
            headers=client_config["headers"],
            timeout=client_config["timeout"],
            transport=transport,
        )

    @property
    def products_url(self) -> str:
        return f"{self.base_url}{self.products_path}"

    async def fetch_records(self) -> List[Dict[str, Any]]:
        """
        Fetch every product row.

        Raises:
            ProductLoadException: On transport errors or non-2xx responses
            ProductDataException: When the body is not a JSON array
        """
        async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=self.timeout,
                transport=self._transport
        ) as client:
            try:
                response = await client.get(self.products_path, params={"select": "*"})
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise ProductLoadException(
                    f"Product API returned HTTP {e.response.status_code}",
                    url=self.products_url,
                    status_code=e.response.status_code,
                    original_exception=e
                ) from e
            except httpx.HTTPError as e:
                raise ProductLoadException(
                    f"Product API unreachable: {e}",
                    url=self.products_url,
                    original_exception=e
                ) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ProductDataException(
                "Product API returned a body that is not JSON",
                original_exception=e
            ) from e

        if not isinstance(payload, list):
            raise ProductDataException(
                f"Expected a JSON array of products, got {type(payload).__name__}"
            )

        self.logger.debug("Fetched product records", count=len(payload), url=self.products_url)
        return payload


def map_record(raw: Any) -> Product:
    """Map one wire row into a Product, raising ProductDataException if malformed."""
    record_id = raw.get("id") if isinstance(raw, dict) else None
    if not isinstance(raw, dict):
        raise ProductDataException(f"Product record must be an object, got {type(raw).__name__}")
    try:
        return ProductRecord.model_validate(raw).to_product()
    except ValidationError as e:
        raise ProductDataException(
            f"Malformed product record {record_id!r}: {e.error_count()} validation error(s)",
            record_id=record_id,
            original_exception=e
        ) from e


def map_records(records: List[Any]) -> List[Product]:
    """Map every row; a single bad row fails the whole batch."""
    return [map_record(raw) for raw in records]


class ProductLoader:
    """
    Loads the full catalog with retries.

    Example:
        >>> loader = ProductLoader(HttpProductSource.from_settings(settings))
        >>> products = await loader.load()
    """

    def __init__(
            self,
            source: ProductSource,
            retry_config: Optional[RetryConfig] = None,
            wait: Optional[Waiter] = None
    ):
        """
        Args:
            source: Where raw records come from
            retry_config: Retry policy (defaults to 3 retries, 1s/2s/4s)
            wait: Backoff waiter override; returns True when cancelled
        """
        self.source = source
        self.retry_config = retry_config or RetryConfig()
        self._wait = wait
        self.logger = get_logger("product_loader")

    async def load(self, cancel_token: Optional[CancellationToken] = None) -> List[Product]:
        """
        Fetch and map the catalog.

        Raises:
            ProductLoadException: When every attempt failed to reach the source
            ProductDataException: When the source returned malformed records
            OperationCancelledException: When ``cancel_token`` fired
        """

        async def attempt() -> List[Product]:
            try:
                records = await self.source.fetch_records()
            except CommerceException:
                raise
            except Exception as e:
                # Unknown source failures count as transient
                raise ProductLoadException(
                    str(e) or f"Product source failed with {type(e).__name__}",
                    original_exception=e
                ) from e
            return map_records(records)

        # One correlation id ties every retry log line of this load together
        with LoggingContext(), PerformanceTimer(LOAD_OPERATION, self.logger) as timer:
            products = await execute_async_with_retry(
                attempt,
                config=self.retry_config,
                operation_name=LOAD_OPERATION,
                cancel_token=cancel_token,
                wait=self._wait
            )
            timer.add_metric("product_count", len(products))
        return products
