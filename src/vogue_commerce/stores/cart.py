# src/vogue_commerce/stores/cart.py
"""
Shopping Cart Engine

This module maintains the shopper's cart: line items keyed by
(product id, size, color), stock limits on add, promo discounts, and
write-through persistence of the cart record.

Every mutation builds a new immutable CartState whose subtotal, discount
and total are computed from its own items, so derived totals can never
drift from the items they describe. Rejected mutations (insufficient
stock, unknown promo, non-positive quantity) return False and leave the
state untouched; they are business outcomes, not errors.

Key Design Patterns:
- Immutable Snapshot: Readers always see a consistent CartState
- Write-Through: Each successful mutation is persisted immediately
"""

import threading
from typing import Optional, Union

from pydantic import ValidationError

from ..catalog.promo import PromoCodeResolver, normalize_code
from ..core.exceptions import PersistenceException
from ..core.logger import get_logger
from ..models.cart import CartLineItem, CartRecord, CartState, variant_key
from ..models.product import Product, Size
from ..storage.adapter import InMemoryStorage, PersistenceAdapter

DEFAULT_CART_KEY = "virtual-vogue-cart"

SizeLike = Union[Size, str]


def _coerce_size(size: SizeLike) -> Optional[Size]:
    return size if isinstance(size, Size) else Size.parse(size)


class CartEngine:
    """
    Cart state holder with atomic, persisted mutations.

    Example:
        >>> cart = CartEngine(storage, PromoCodeResolver())
        >>> cart.add_item(product, Size.M, "Black")
        True
        >>> cart.apply_promo_code("vogue20")
        True
        >>> cart.state.total
        Decimal('159.992')
    """

    def __init__(
            self,
            storage: Optional[PersistenceAdapter] = None,
            resolver: Optional[PromoCodeResolver] = None,
            key: str = DEFAULT_CART_KEY
    ):
        """
        Create the engine and restore the persisted cart.

        Args:
            storage: Persistence adapter (in-memory if None)
            resolver: Promo table (default codes if None)
            key: Storage key of the cart record
        """
        self.storage = storage if storage is not None else InMemoryStorage()
        self.resolver = resolver or PromoCodeResolver()
        self.key = key
        self.logger = get_logger("cart")
        self.last_persist_error: Optional[PersistenceException] = None

        self._lock = threading.RLock()
        self._state = self._restore()

    @property
    def state(self) -> CartState:
        """Current immutable snapshot."""
        return self._state

    def get_item(self, product_id: str, size: SizeLike, color: str) -> Optional[CartLineItem]:
        parsed = _coerce_size(size)
        if parsed is None:
            return None
        return self._state.find(variant_key(product_id, parsed, color))

    def add_item(
            self,
            product: Product,
            size: SizeLike,
            color: str,
            quantity: int = 1
    ) -> bool:
        """
        Add ``quantity`` units of a variant.

        Returns:
            False, with no state change, if the quantity is not positive,
            the size is unknown, or stock cannot cover the new total for
            this exact variant; True otherwise
        """
        parsed = _coerce_size(size)
        if quantity <= 0 or parsed is None or not color:
            self.logger.info(
                "Add rejected: invalid line",
                product_id=product.id,
                size=str(size),
                color=color,
                quantity=quantity
            )
            return False

        with self._lock:
            state = self._state
            key = variant_key(product.id, parsed, color)
            index = state.index_of(key)
            held = state.items[index].quantity if index >= 0 else 0

            if not product.can_supply(held + quantity):
                self.logger.info(
                    "Add rejected: insufficient stock",
                    product_id=product.id,
                    size=parsed.value,
                    color=color,
                    requested=quantity,
                    held=held,
                    stock=product.stock
                )
                return False

            items = list(state.items)
            if index >= 0:
                items[index] = items[index].with_quantity(held + quantity)
            else:
                items.append(CartLineItem(product=product, size=parsed, color=color, quantity=quantity))

            self._commit(state.model_copy(update={"items": tuple(items)}))
            self.logger.debug(
                "Item added",
                product_id=product.id,
                size=parsed.value,
                color=color,
                quantity=held + quantity
            )
            return True

    def remove_item(self, product_id: str, size: SizeLike, color: str) -> None:
        """Remove a line; absent lines are ignored."""
        parsed = _coerce_size(size)
        if parsed is None:
            return
        with self._lock:
            state = self._state
            key = variant_key(product_id, parsed, color)
            if state.index_of(key) < 0:
                return
            items = tuple(item for item in state.items if item.key != key)
            self._commit(state.model_copy(update={"items": items}))
            self.logger.debug("Item removed", product_id=product_id, size=parsed.value, color=color)

    def update_quantity(self, product_id: str, size: SizeLike, color: str, quantity: int) -> None:
        """
        Set a line's quantity directly.

        A quantity of zero or less removes the line. Stock is not
        re-checked here: the caller is trusted to offer only valid values.
        """
        if quantity <= 0:
            self.remove_item(product_id, size, color)
            return

        parsed = _coerce_size(size)
        if parsed is None:
            return
        with self._lock:
            state = self._state
            index = state.index_of(variant_key(product_id, parsed, color))
            if index < 0:
                return
            items = list(state.items)
            items[index] = items[index].with_quantity(quantity)
            self._commit(state.model_copy(update={"items": tuple(items)}))
            self.logger.debug(
                "Quantity updated",
                product_id=product_id,
                size=parsed.value,
                color=color,
                quantity=quantity
            )

    def clear_cart(self) -> None:
        """Empty the cart and drop any promo code."""
        with self._lock:
            self._commit(CartState())
            self.logger.debug("Cart cleared")

    def apply_promo_code(self, code: str) -> bool:
        """
        Apply a promo code.

        Returns:
            True if the code is known; False (state untouched) otherwise
        """
        percent = self.resolver.resolve(code)
        if percent is None:
            self.logger.info("Promo code rejected", code=code)
            return False

        normalized = normalize_code(code)
        with self._lock:
            self._commit(self._state.model_copy(update={
                "promo_code": normalized,
                "promo_discount_percent": percent,
            }))
            self.logger.debug("Promo code applied", code=normalized, percent=percent)
            return True

    def remove_promo_code(self) -> None:
        with self._lock:
            self._commit(self._state.model_copy(update={
                "promo_code": None,
                "promo_discount_percent": 0,
            }))
            self.logger.debug("Promo code removed")

    def _commit(self, state: CartState) -> None:
        self._state = state
        self._persist()

    def _persist(self) -> None:
        try:
            self.storage.set_item(self.key, CartRecord.from_state(self._state).to_json_string())
        except PersistenceException as e:
            self.last_persist_error = e
            self.logger.error("Cart persistence failed", key=self.key, **e.to_dict())
        else:
            self.last_persist_error = None

    def _restore(self) -> CartState:
        try:
            raw = self.storage.get_item(self.key)
        except PersistenceException as e:
            self.last_persist_error = e
            self.logger.error("Cart restore failed", key=self.key, **e.to_dict())
            return CartState()

        if not raw:
            return CartState()

        try:
            state = CartRecord.from_json_string(raw).to_state()
        except ValidationError as e:
            self.logger.warning(
                "Discarding malformed cart record",
                key=self.key,
                error_count=e.error_count()
            )
            return CartState()

        self.logger.debug("Cart restored", line_count=len(state.items), item_count=state.item_count)
        return state
