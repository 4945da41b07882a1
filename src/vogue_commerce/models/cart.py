# src/vogue_commerce/models/cart.py
"""
Cart Domain Models

Line items, the immutable cart snapshot with its derived totals, and the
persisted cart record.

Totals are computed fields of the snapshot: they cannot be assigned, and
every cart mutation builds a new snapshot, so subtotal, discount and total
always agree with the items and promo percentage they were derived from.
"""

from decimal import Decimal
from typing import List, Optional, Tuple

from pydantic import Field, computed_field

from .base import FrozenRecord, ProductId, RecordModel
from .product import Product, Size

ZERO = Decimal("0")

VariantKey = Tuple[ProductId, str, str]


def variant_key(product_id: ProductId, size, color: str) -> VariantKey:
    """Composite key identifying one cart line: product, size and color."""
    size_value = size.value if isinstance(size, Size) else str(size)
    return product_id, size_value, color


class CartLineItem(FrozenRecord):
    """
    One cart row with a copy of the product as it was when added.

    Totals use the embedded snapshot price, not the live catalog.
    """

    product: Product
    size: Size
    color: str = Field(min_length=1)
    quantity: int = Field(ge=1)

    @property
    def key(self) -> VariantKey:
        return variant_key(self.product.id, self.size, self.color)

    @property
    def unit_price(self) -> Decimal:
        return self.product.price

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity

    def with_quantity(self, quantity: int) -> "CartLineItem":
        """Copy of this line with a new quantity (validated)."""
        return CartLineItem(
            product=self.product,
            size=self.size,
            color=self.color,
            quantity=quantity
        )


class CartState(FrozenRecord):
    """
    Immutable cart snapshot.

    Example:
        >>> state = CartState(items=(line,), promo_code="VOGUE20", promo_discount_percent=20)
        >>> state.total == state.subtotal - state.discount
        True
    """

    items: Tuple[CartLineItem, ...] = ()
    promo_code: Optional[str] = None
    promo_discount_percent: int = Field(default=0, ge=0, le=100)

    @computed_field
    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        return sum((item.line_total for item in self.items), ZERO)

    @computed_field
    @property
    def discount(self) -> Decimal:
        return self.subtotal * Decimal(self.promo_discount_percent) / Decimal(100)

    @computed_field
    @property
    def total(self) -> Decimal:
        return self.subtotal - self.discount

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, key: VariantKey) -> Optional[CartLineItem]:
        for item in self.items:
            if item.key == key:
                return item
        return None

    def index_of(self, key: VariantKey) -> int:
        for index, item in enumerate(self.items):
            if item.key == key:
                return index
        return -1


class CartRecord(RecordModel):
    """
    Persisted subset of the cart.

    Derived totals are never stored; they are recomputed on load.
    """

    items: List[CartLineItem] = Field(default_factory=list)
    promo_code: Optional[str] = Field(default=None, alias="promoCode")
    promo_discount: int = Field(default=0, ge=0, le=100, alias="promoDiscount")

    @classmethod
    def from_state(cls, state: CartState) -> "CartRecord":
        return cls(
            items=list(state.items),
            promo_code=state.promo_code,
            promo_discount=state.promo_discount_percent
        )

    def to_state(self) -> CartState:
        """Rebuild a snapshot, merging any rows that share a variant key."""
        merged: List[CartLineItem] = []
        positions = {}
        for item in self.items:
            if item.key in positions:
                index = positions[item.key]
                merged[index] = merged[index].with_quantity(merged[index].quantity + item.quantity)
            else:
                positions[item.key] = len(merged)
                merged.append(item)
        return CartState(
            items=tuple(merged),
            promo_code=self.promo_code,
            promo_discount_percent=self.promo_discount if self.promo_code else 0
        )
