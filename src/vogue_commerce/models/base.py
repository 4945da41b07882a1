# src/vogue_commerce/models/base.py
"""
Base Models and Common Types

This module provides the foundation for the commerce core data models:
immutable pydantic bases, JSON round-tripping helpers, and the decimal
and timestamp coercions shared by products, carts and user records.

Key Design Patterns:
- Value Object Pattern: Frozen models replaced wholesale, never patched
- Factory Pattern: Model creation from dicts/JSON with validation
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict

M = TypeVar("M", bound="RecordModel")

CENT = Decimal("0.01")


class RecordModel(BaseModel):
    """
    Base class for serializable records.

    Provides the dict/JSON conversions used by the persistence layer.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    def to_dict(self, by_alias: bool = True) -> Dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return self.model_dump(mode="json", by_alias=by_alias)

    def to_json_string(self, by_alias: bool = True) -> str:
        """Convert to JSON string."""
        return self.model_dump_json(by_alias=by_alias)

    @classmethod
    def from_json_string(cls: Type[M], json_str: str) -> M:
        """Create instance from JSON string."""
        return cls.model_validate_json(json_str)

    @classmethod
    def from_dict(cls: Type[M], data: Dict[str, Any]) -> M:
        """Create instance from dictionary."""
        return cls.model_validate(data)


class FrozenRecord(RecordModel):
    """Immutable record; changes produce a new instance via ``model_copy``."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp from ISO strings, loose date strings or datetimes.

    Naive values are treated as UTC so that timestamps from different
    sources stay comparable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            # Try parsing common formats
            from dateutil.parser import parse
            parsed = parse(value)
    elif isinstance(value, datetime):
        parsed = value
    else:
        return value
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_decimal(value: Any) -> Any:
    """Convert numbers and numeric strings to Decimal without float noise."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            # Left for pydantic to reject with a proper validation error
            return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    return value


def round_money(amount: Decimal) -> Decimal:
    """Round a monetary amount to cents, half up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# Type aliases for common types
ProductId = str
