# src/vogue_commerce/models/catalog.py
"""
Catalog Query Models

Filter options, sort options and the catalog view snapshot. Every filter
is optional: an absent filter means "no constraint", never "match nothing".
"""

from decimal import Decimal
from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple

from pydantic import Field, field_validator

from .base import FrozenRecord, RecordModel, to_decimal
from .product import Product, Size


class SortOption(str, Enum):
    """Catalog orderings."""

    POPULAR = "popular"
    NEWEST = "newest"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    RATING = "rating"

    @classmethod
    def parse(cls, value: Any) -> "SortOption":
        """Unrecognized values fall back to POPULAR."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.POPULAR


class FilterOptions(FrozenRecord):
    """Active catalog filters; ``None`` means the filter is off."""

    category: Optional[str] = None
    min_price: Optional[Decimal] = Field(default=None, alias="minPrice")
    max_price: Optional[Decimal] = Field(default=None, alias="maxPrice")
    sizes: Optional[List[Size]] = None
    brands: Optional[List[str]] = None
    has_ar: Optional[bool] = Field(default=None, alias="hasAR")
    is_new: Optional[bool] = Field(default=None, alias="isNew")

    @field_validator("min_price", "max_price", mode="before")
    @classmethod
    def validate_price_bound(cls, v):
        return to_decimal(v)

    @field_validator("sizes", mode="before")
    @classmethod
    def validate_sizes(cls, v):
        """Accept sizes in any case, as the cart does; unknown sizes fail validation."""
        if v is None or isinstance(v, str):
            return v
        return [Size.parse(size) or size for size in v]

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def merge(self, changes: Mapping[str, Any]) -> "FilterOptions":
        """
        Return new options with ``changes`` applied on top of these.

        Keys may be field names or their camelCase aliases; a ``None``
        value switches that filter off.
        """
        data = self.model_dump(by_alias=False)
        for key, value in changes.items():
            data[_FIELD_BY_ALIAS.get(key, key)] = value
        return FilterOptions.model_validate(data)

    @property
    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())


_FIELD_BY_ALIAS = {
    field.alias: name
    for name, field in FilterOptions.model_fields.items()
    if field.alias
}


class CatalogQuery(RecordModel):
    """Persisted query inputs of the catalog view."""

    search_query: str = Field(default="", alias="searchQuery")
    filters: FilterOptions = Field(default_factory=FilterOptions)
    sort_by: SortOption = Field(default=SortOption.POPULAR, alias="sortBy")

    @field_validator("sort_by", mode="before")
    @classmethod
    def validate_sort_by(cls, v):
        return SortOption.parse(v)


class CatalogViewState(FrozenRecord):
    """Query inputs plus the product list derived from them."""

    search_query: str = ""
    filters: FilterOptions = Field(default_factory=FilterOptions)
    sort_by: SortOption = SortOption.POPULAR
    filtered_products: Tuple[Product, ...] = ()
