# src/vogue_commerce/catalog/query.py
"""
Catalog Query Engine

Pure functions that turn (products, filters, search query, sort option)
into the ordered list of products a screen should display. The whole
pipeline re-runs on every query change; nothing is cached between runs.

Pipeline:
1. Free-text search over name, description, brand and tags
2. Filter predicates (category, price bounds, sizes, brands, AR, new)
3. Sort by the selected option, ties broken by product id
"""

from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..models.catalog import FilterOptions, SortOption
from ..models.product import Product

Predicate = Callable[[Product], bool]


def matches_search(product: Product, query: str) -> bool:
    """Case-insensitive substring match; ``query`` must already be lower-cased."""
    if query in product.name.lower():
        return True
    if query in product.description.lower():
        return True
    if query in product.brand.lower():
        return True
    return any(query in tag.lower() for tag in product.tags)


def build_predicates(filters: FilterOptions) -> List[Predicate]:
    """One predicate per active filter; inactive filters contribute nothing."""
    predicates: List[Predicate] = []

    if filters.category:
        category = filters.category
        predicates.append(lambda p: p.category == category)

    if filters.min_price is not None:
        min_price = filters.min_price
        predicates.append(lambda p: p.price >= min_price)

    if filters.max_price is not None:
        max_price = filters.max_price
        predicates.append(lambda p: p.price <= max_price)

    if filters.sizes:
        sizes = set(filters.sizes)
        predicates.append(lambda p: not sizes.isdisjoint(p.sizes))

    if filters.brands:
        brands = set(filters.brands)
        predicates.append(lambda p: p.brand in brands)

    if filters.has_ar is not None:
        has_ar = filters.has_ar
        predicates.append(lambda p: p.has_ar == has_ar)

    if filters.is_new is not None:
        is_new = filters.is_new
        predicates.append(lambda p: p.is_new == is_new)

    return predicates


def _newest_key(product: Product) -> Tuple[float, str]:
    return -product.created_at.timestamp(), product.id


def _price_asc_key(product: Product) -> Tuple[Decimal, str]:
    return product.price, product.id


def _price_desc_key(product: Product) -> Tuple[Decimal, str]:
    return -product.price, product.id


def _rating_key(product: Product) -> Tuple[float, str]:
    return -product.rating, product.id


def _popular_key(product: Product) -> Tuple[int, str]:
    return -product.review_count, product.id


SORT_KEYS: Dict[SortOption, Callable[[Product], tuple]] = {
    SortOption.NEWEST: _newest_key,
    SortOption.PRICE_ASC: _price_asc_key,
    SortOption.PRICE_DESC: _price_desc_key,
    SortOption.RATING: _rating_key,
    SortOption.POPULAR: _popular_key,
}


def sort_products(products: Iterable[Product], sort_by) -> List[Product]:
    """Return a new list ordered by ``sort_by``; unknown options sort as popular."""
    key = SORT_KEYS[SortOption.parse(sort_by)]
    return sorted(products, key=key)


def derive_view(
        products: Iterable[Product],
        filters: Optional[FilterOptions] = None,
        search_query: str = "",
        sort_by=SortOption.POPULAR,
) -> List[Product]:
    """
    Compute the filtered, searched and sorted product list.

    Args:
        products: Full catalog
        filters: Active filters (None means no filters)
        search_query: Free text; blank queries match everything
        sort_by: SortOption or its string value

    Returns:
        New list; the input is never modified
    """
    query = (search_query or "").strip().lower()
    predicates = build_predicates(filters or FilterOptions())

    selected = [
        product for product in products
        if (not query or matches_search(product, query))
        and all(predicate(product) for predicate in predicates)
    ]
    return sort_products(selected, sort_by)
