# src/vogue_commerce/models/product.py
"""
Product Domain Models for Virtual Vogue

This module defines the catalog models: the immutable Product entity held
by the catalog and embedded in cart lines, its size/color value types, and
the raw snake-case record returned by the remote product API together with
the defaulting transform that turns one into the other.

Key Domain Concepts:
- Product: Immutable catalog entity, replaced wholesale on reload
- Size / ProductColor: Variant dimensions used as cart keys
- ProductRecord: Wire shape of the remote products table
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    Field,
    computed_field,
    field_validator,
    model_validator
)

from .base import FrozenRecord, RecordModel, parse_datetime, round_half_up, to_decimal


class ProductCategory(str, Enum):
    """Catalog categories shown in the category chips."""

    DRESSES = "vestidos"
    TOPS = "tops"
    TROUSERS = "pantalones"
    SKIRTS = "faldas"
    COATS = "abrigos"
    ACCESSORIES = "accesorios"
    FOOTWEAR = "calzado"


class Size(str, Enum):
    """Apparel sizes."""

    XS = "XS"
    S = "S"
    M = "M"
    L = "L"
    XL = "XL"
    XXL = "XXL"

    @classmethod
    def parse(cls, value: Any) -> Optional["Size"]:
        """Case-insensitive lookup; None for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


class ProductColor(FrozenRecord):
    """A named color option of a product."""

    name: str = Field(
        min_length=1,
        max_length=50,
        description="Color name",
        examples=["Black", "Navy Blue"]
    )

    hex: str = Field(
        pattern=r'^#(?:[0-9A-Fa-f]{3}){1,2}$',
        description="Hex color code for display",
        examples=["#000000", "#0066CC"]
    )


class Product(FrozenRecord):
    """
    Catalog product.

    Products are immutable once loaded. A ``stock`` of ``None`` means
    unlimited availability; rows loaded from the remote catalog without a
    stock value get 0.
    """

    id: str = Field(min_length=1, description="Opaque unique identifier")

    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="")
    brand: str = Field(default="")
    category: str = Field(default="")

    price: Decimal = Field(ge=0, description="Current price")
    original_price: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Price before markdown (for showing discounts)"
    )
    discount: Optional[int] = Field(
        default=None,
        description="Markdown percentage derived from original_price"
    )

    sizes: List[Size] = Field(default_factory=list)
    colors: List[ProductColor] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    ar_overlay_url: Optional[str] = Field(default=None)

    has_ar: bool = Field(default=False)
    is_new: bool = Field(default=False)
    is_featured: bool = Field(default=False)

    rating: float = Field(default=0.0, ge=0)
    review_count: int = Field(default=0, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)

    created_at: datetime

    @field_validator("price", "original_price", mode="before")
    @classmethod
    def validate_amount(cls, v):
        """Convert to Decimal."""
        return to_decimal(v)

    @field_validator("created_at", mode="before")
    @classmethod
    def validate_created_at(cls, v):
        return parse_datetime(v)

    @field_validator("sizes")
    @classmethod
    def validate_sizes(cls, v: List[Size]) -> List[Size]:
        """Drop duplicate sizes while preserving order."""
        return list(dict.fromkeys(v))

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v) -> List[str]:
        """Strip tags and remove duplicates while preserving order."""
        if isinstance(v, str):
            v = v.split(",")
        tags = [str(tag).strip() for tag in v if str(tag).strip()]
        return list(dict.fromkeys(tags))

    @model_validator(mode="after")
    def validate_colors_unique(self) -> "Product":
        """Color names must be unique within a product."""
        names = [color.name for color in self.colors]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate color names for product {self.id}")
        return self

    @computed_field
    @property
    def is_on_sale(self) -> bool:
        """Check if product is marked down."""
        return self.original_price is not None and self.original_price > self.price

    def can_supply(self, quantity: int) -> bool:
        """Whether stock covers ``quantity`` units of a single variant."""
        return self.stock is None or quantity <= self.stock


class ProductRecord(RecordModel):
    """
    Raw product row as returned by the remote products endpoint.

    Only identity, name, price and creation time are required; everything
    else falls back to an empty/false/zero default in ``to_product``.
    """

    id: str
    name: str
    price: Decimal
    created_at: datetime

    brand: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    original_price: Optional[Decimal] = None

    images: Optional[List[str]] = None
    sizes: Optional[List[str]] = None
    colors: Optional[List[Dict[str, Any]]] = None
    tags: Optional[List[str]] = None

    ar_overlay_url: Optional[str] = None
    model_3d_url: Optional[str] = None

    has_ar: Optional[bool] = None
    is_new: Optional[bool] = None
    is_featured: Optional[bool] = None

    rating: Optional[float] = None
    review_count: Optional[int] = None
    stock: Optional[int] = None

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v):
        return v if isinstance(v, str) else str(v)

    @field_validator("price", "original_price", mode="before")
    @classmethod
    def validate_amount(cls, v):
        return to_decimal(v)

    @field_validator("created_at", mode="before")
    @classmethod
    def validate_created_at(cls, v):
        return parse_datetime(v)

    def compute_discount(self) -> Optional[int]:
        """Markdown percentage, rounded half up, when an original price exists."""
        if not self.original_price:
            return None
        ratio = (self.original_price - self.price) / self.original_price * 100
        return round_half_up(ratio)

    def known_sizes(self) -> List[Size]:
        """Sizes that map onto the apparel size scale; others are ignored."""
        parsed = (Size.parse(value) for value in (self.sizes or []))
        return [size for size in parsed if size is not None]

    def to_product(self) -> Product:
        """Map the wire record into the immutable catalog Product."""
        return Product(
            id=self.id,
            name=self.name,
            brand=self.brand or "",
            category=self.category or "",
            description=self.description or "",
            price=self.price,
            original_price=self.original_price or None,
            discount=self.compute_discount(),
            images=self.images or [],
            sizes=self.known_sizes(),
            colors=self.colors or [],
            tags=self.tags or [],
            ar_overlay_url=self.ar_overlay_url or self.model_3d_url or None,
            has_ar=bool(self.has_ar),
            is_new=bool(self.is_new),
            is_featured=bool(self.is_featured),
            rating=self.rating or 0.0,
            review_count=self.review_count or 0,
            stock=self.stock or 0,
            created_at=self.created_at,
        )
