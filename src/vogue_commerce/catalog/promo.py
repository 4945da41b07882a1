# src/vogue_commerce/catalog/promo.py
"""
Promo Code Resolution

Maps promo codes onto percentage discounts. Codes are matched after
trimming and upper-casing, so " vogue20 " and "VOGUE20" are the same code.
"""

from types import MappingProxyType
from typing import Mapping, Optional

from ..config.settings import DEFAULT_PROMO_CODES
from ..core.exceptions import ConfigurationException


def normalize_code(code: str) -> str:
    """Canonical form of a promo code."""
    return code.strip().upper()


class PromoCodeResolver:
    """
    Static, read-only promo table.

    Example:
        >>> resolver = PromoCodeResolver({"VOGUE20": 20})
        >>> resolver.resolve(" vogue20 ")
        20
        >>> resolver.resolve("NOPE") is None
        True
    """

    def __init__(self, codes: Optional[Mapping[str, int]] = None):
        table = {}
        for code, percent in (DEFAULT_PROMO_CODES if codes is None else codes).items():
            key = normalize_code(code)
            if not key:
                raise ConfigurationException("Promo codes cannot be blank", setting="promo.codes")
            if isinstance(percent, bool) or not isinstance(percent, int) or not 0 <= percent <= 100:
                raise ConfigurationException(
                    f"Promo {key} has invalid percentage {percent!r}",
                    setting="promo.codes"
                )
            table[key] = percent
        self._codes = MappingProxyType(table)

    @classmethod
    def from_settings(cls, promo_settings) -> "PromoCodeResolver":
        return cls(promo_settings.codes)

    @property
    def codes(self) -> Mapping[str, int]:
        return self._codes

    def resolve(self, code: Optional[str]) -> Optional[int]:
        """Percentage for ``code``, or None when the code is unknown."""
        if not code:
            return None
        return self._codes.get(normalize_code(code))

    def __contains__(self, code: str) -> bool:
        return self.resolve(code) is not None
