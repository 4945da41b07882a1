# src/vogue_commerce/models/user.py
"""
User Domain Models

This module defines the shopper-side user models: the signed-in user,
their body measurements, usage statistics, and the persisted user record
that bundles them with favorites and browsing history.

Key Domain Concepts:
- User: Identity of the signed-in shopper
- UserMeasurements: Optional body measurements for fitting
- UserStats: Counters shown on the profile screen
- UserRecord: Persisted aggregate written through on every change
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, computed_field, field_validator

from .base import FrozenRecord, ProductId, RecordModel, parse_datetime, to_decimal

HISTORY_LIMIT = 20


class User(FrozenRecord):
    """Signed-in shopper."""

    id: str = Field(min_length=1)

    email: str = Field(
        max_length=254,
        pattern=r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$',
        description="User's email address",
        examples=["ana@example.com"]
    )

    name: str = Field(default="", max_length=100)

    avatar: Optional[str] = Field(
        default=None,
        max_length=2048,
        description="URL to user's avatar image"
    )

    favorites: List[ProductId] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("created_at", mode="before")
    @classmethod
    def validate_created_at(cls, v):
        return parse_datetime(v)


class UserMeasurements(FrozenRecord):
    """
    Body measurements: lengths in centimetres, weight in kilograms.

    All fields are optional; the shopper fills in what they know.
    """

    height: Optional[float] = Field(default=None, gt=0, le=300)
    weight: Optional[float] = Field(default=None, gt=0, le=500)
    bust: Optional[float] = Field(default=None, gt=0)
    waist: Optional[float] = Field(default=None, gt=0)
    hips: Optional[float] = Field(default=None, gt=0)
    shoulder_width: Optional[float] = Field(default=None, gt=0, alias="shoulderWidth")
    arm_length: Optional[float] = Field(default=None, gt=0, alias="armLength")

    @computed_field
    @property
    def is_complete(self) -> bool:
        """Whether the core measurements (height, weight, bust, waist, hips) are set."""
        return all(
            value is not None
            for value in (self.height, self.weight, self.bust, self.waist, self.hips)
        )


class UserStats(FrozenRecord):
    """Profile counters."""

    total_orders: int = Field(default=0, ge=0, alias="totalOrders")
    total_spent: Decimal = Field(default=Decimal("0"), ge=0, alias="totalSpent")
    favorite_count: int = Field(default=0, ge=0, alias="favoriteCount")
    ar_tries_count: int = Field(default=0, ge=0, alias="arTriesCount")

    @field_validator("total_spent", mode="before")
    @classmethod
    def validate_total_spent(cls, v):
        return to_decimal(v)


class UserRecord(RecordModel):
    """
    Persisted user aggregate.

    ``favorites`` keeps insertion order; ``history`` is most recent first
    and never longer than ``HISTORY_LIMIT``.
    """

    user: Optional[User] = None
    measurements: Optional[UserMeasurements] = None
    favorites: List[ProductId] = Field(default_factory=list)
    history: List[ProductId] = Field(default_factory=list)
    stats: UserStats = Field(default_factory=UserStats)

    @field_validator("favorites")
    @classmethod
    def validate_favorites(cls, v: List[ProductId]) -> List[ProductId]:
        return list(dict.fromkeys(v))

    @field_validator("history")
    @classmethod
    def validate_history(cls, v: List[ProductId]) -> List[ProductId]:
        return list(dict.fromkeys(v))[:HISTORY_LIMIT]

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None
