# src/vogue_commerce/core/exceptions/enums.py
"""
Exception Classification Enums

This module defines enums for categorizing and prioritizing exceptions
raised by the commerce core. They provide consistent classification for
error handling, logging and retry decisions.

Key Design Benefits:
- Type Safety: Enum values prevent typos and invalid categories
- Consistent Classification: Standardized error categorization
- Built-in business logic: retry and tagging decisions live on the enum
"""

from enum import Enum
from typing import Dict, Set


class ErrorSeverity(str, Enum):
    """
    Error severity levels for exception prioritization.

    Usage:
        >>> error = ProductLoadException("timeout", severity=ErrorSeverity.HIGH)
        >>> error.is_retryable()
        False
    """

    LOW = "low"
    """Recoverable noise: a corrupt cache entry, an ignored record."""

    MEDIUM = "medium"
    """Transient failures worth retrying: network hiccups, slow responses."""

    HIGH = "high"
    """Failures that surface to the shopper: catalog could not be loaded."""

    CRITICAL = "critical"
    """Broken configuration or storage that prevents the core from working."""

    def should_retry(self) -> bool:
        """Determine if this severity level supports automatic retry."""
        return self in [ErrorSeverity.LOW, ErrorSeverity.MEDIUM]


class ErrorCategory(str, Enum):
    """
    Error categories organizing exception types by functional area.

    Usage:
        >>> if error.category == ErrorCategory.NETWORK:
        ...     schedule_reload()
    """

    NETWORK = "network"
    """Product source unreachable, HTTP error status, timeouts."""

    DATA = "data"
    """Remote records or persisted payloads that fail validation."""

    STORAGE = "storage"
    """Persistence adapter read/write failures."""

    CONFIGURATION = "configuration"
    """Invalid settings, promo tables or adapter selection."""

    CANCELLED = "cancelled"
    """Operations aborted by their owner before completion."""

    def is_retryable(self) -> bool:
        """Only network failures are worth repeating verbatim."""
        return self == ErrorCategory.NETWORK

    def get_monitoring_tags(self) -> Set[str]:
        """Get monitoring tags for this category."""
        base_tags = {self.value, "commerce_error"}

        tag_mapping: Dict[ErrorCategory, Set[str]] = {
            ErrorCategory.NETWORK: {"network_issue", "catalog_load"},
            ErrorCategory.DATA: {"data_issue", "validation_error"},
            ErrorCategory.STORAGE: {"storage_issue", "persistence"},
            ErrorCategory.CONFIGURATION: {"config_issue", "setup_error"},
            ErrorCategory.CANCELLED: {"cancelled"},
        }

        return base_tags.union(tag_mapping.get(self, set()))
