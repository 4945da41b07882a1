# src/vogue_commerce/config/settings.py
"""
Environment-Aware Configuration Management with Pydantic v2

This module provides configuration for the commerce core that:
- Loads settings from multiple sources (defaults -> .env -> environment variables)
- Validates all configuration with Pydantic v2
- Masks sensitive values (the product API key) in safe dumps
- Adjusts retry and logging behaviour per environment

Key Design Patterns:
- Settings Pattern: Centralized configuration with validation
- Environment Pattern: Environment-specific overrides
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environments with specific behaviors."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class StorageBackend(str, Enum):
    """Available persistence adapters."""
    MEMORY = "memory"
    FILE = "file"


DEFAULT_PROMO_CODES: Dict[str, int] = {
    "WELCOME10": 10,
    "VIRTUAL10": 10,
    "VOGUE20": 20,
    "FIRSTBUY": 15,
    "ARMAGIC": 25,
}


class LoaderSettings(BaseModel):
    """Remote product source and retry policy."""
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    base_url: str = Field(
        default="http://localhost:54321",
        description="Base URL of the PostgREST-compatible product API"
    )

    api_key: Optional[SecretStr] = Field(
        default=None,
        description="Anonymous API key sent as apikey and bearer token"
    )

    products_path: str = Field(
        default="/rest/v1/products",
        description="Path of the products table endpoint"
    )

    timeout: float = Field(
        default=15.0,
        gt=0,
        le=120.0,
        description="HTTP timeout in seconds"
    )

    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries after the first failed attempt"
    )

    retry_base_delay: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Delay before the first retry in seconds"
    )

    backoff_multiplier: float = Field(
        default=2.0,
        ge=1.0,
        le=10.0,
        description="Multiplier applied to the delay for each further retry"
    )

    max_delay: float = Field(
        default=30.0,
        ge=0.0,
        description="Upper bound for a single backoff delay"
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate base URL format."""
        result = urlparse(v)
        if not all([result.scheme, result.netloc]):
            raise ValueError(f"Invalid base_url: {v}")
        return v.rstrip("/")

    @field_validator("products_path")
    @classmethod
    def validate_products_path(cls, v: str) -> str:
        return v if v.startswith("/") else f"/{v}"

    @property
    def products_url(self) -> str:
        return f"{self.base_url}{self.products_path}"


class StorageSettings(BaseModel):
    """Persistence adapter selection and record keys."""
    model_config = ConfigDict(extra="forbid")

    backend: StorageBackend = Field(default=StorageBackend.MEMORY)
    directory: Path = Field(
        default=Path(".vogue-storage"),
        description="Directory used by the file backend"
    )

    cart_key: str = Field(default="virtual-vogue-cart", min_length=1)
    user_key: str = Field(default="virtual-vogue-user", min_length=1)
    catalog_key: str = Field(default="virtual-vogue-catalog", min_length=1)
    products_key: str = Field(default="virtual-vogue-products", min_length=1)
    offline_queue_key: str = Field(default="virtual-vogue-offline-queue", min_length=1)


class PromoSettings(BaseModel):
    """Static promo code table."""
    model_config = ConfigDict(extra="forbid")

    codes: Dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_PROMO_CODES),
        description="Promo code to discount percentage"
    )

    @field_validator("codes")
    @classmethod
    def validate_codes(cls, v: Dict[str, int]) -> Dict[str, int]:
        """Normalize codes and bound percentages to [0, 100]."""
        normalized: Dict[str, int] = {}
        for code, percent in v.items():
            key = code.strip().upper()
            if not key:
                raise ValueError("Promo codes cannot be blank")
            if not 0 <= percent <= 100:
                raise ValueError(f"Promo {key} has invalid percentage {percent}")
            normalized[key] = percent
        return normalized


class LoggingSettings(BaseModel):
    """Centralized logging configuration."""
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    format_type: str = Field(
        default="json",
        description="Log format (json, console)"
    )

    console_enabled: bool = Field(default=True)
    file_enabled: bool = Field(default=False)
    file_path: Path = Field(default=Path("logs/commerce.log"))

    max_file_size_mb: int = Field(default=10, ge=1, le=1000)
    backup_count: int = Field(default=3, ge=1, le=30)

    correlation_id_enabled: bool = Field(default=True)

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v_upper

    @field_validator("format_type")
    @classmethod
    def validate_format_type(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = {"json", "console"}
        if v not in valid_formats:
            raise ValueError(f"Invalid format: {v}")
        return v


class Settings(BaseSettings):
    """
    Main settings with environment-aware loading.

    Configuration is loaded in priority order:
    1. Environment variables (highest priority)
    2. .env.local file
    3. .env file
    4. Default values (lowest priority)

    Nested sections use ``__`` as delimiter, e.g. ``LOADER__BASE_URL``.
    """

    model_config = SettingsConfigDict(
        env_file=[".env", ".env.local"],
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        validation_alias="ENVIRONMENT",
        description="Application environment"
    )

    debug: bool = Field(
        default=False,
        validation_alias="DEBUG",
        description="Enable debug mode"
    )

    app_name: str = Field(
        default="Virtual Vogue Commerce Core",
        validation_alias="APP_NAME"
    )

    loader: LoaderSettings = Field(default_factory=LoaderSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    promo: PromoSettings = Field(default_factory=PromoSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="after")
    def configure_environment_defaults(self) -> "Settings":
        """Apply environment-specific configuration adjustments."""

        if self.environment == Environment.PRODUCTION:
            if self.debug:
                raise ValueError("debug cannot be enabled in production")
            if self.logging.level == "DEBUG":
                self.logging.level = "INFO"

        elif self.environment == Environment.DEVELOPMENT:
            if self.debug:
                self.logging.level = "DEBUG"
                self.logging.format_type = "console"

        elif self.environment == Environment.TESTING:
            # Tests never wait on real backoff delays
            self.loader.retry_base_delay = 0.0
            self.loader.timeout = min(self.loader.timeout, 5.0)

        return self

    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING

    def get_loader_client_config(self) -> Dict[str, Any]:
        """Get HTTP client configuration for the product source."""
        headers = {"Accept": "application/json"}
        if self.loader.api_key is not None:
            key = self.loader.api_key.get_secret_value()
            headers["apikey"] = key
            headers["Authorization"] = f"Bearer {key}"
        return {
            "base_url": self.loader.base_url,
            "timeout": self.loader.timeout,
            "headers": headers,
        }

    def model_dump_safe(self) -> Dict[str, Any]:
        """Dump configuration excluding sensitive data."""
        data = self.model_dump(mode="json")
        if data["loader"].get("api_key"):
            data["loader"]["api_key"] = "*" * 8
        return data


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    The cache can be cleared using ``get_settings.cache_clear()`` or
    ``reload_settings()``.
    """
    return Settings()


def reload_settings() -> Settings:
    """Force reload settings by clearing cache."""
    get_settings.cache_clear()
    return get_settings()


def get_testing_settings(**overrides: Any) -> Settings:
    """Get settings tuned for tests: in-memory storage, no backoff waits."""
    values: Dict[str, Any] = {
        "environment": Environment.TESTING,
        "debug": False,
        "storage": StorageSettings(backend=StorageBackend.MEMORY),
        "logging": LoggingSettings(level="WARNING", console_enabled=False),
    }
    values.update(overrides)
    return Settings(**values)
