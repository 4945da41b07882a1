# src/vogue_commerce/core/exceptions/base.py
"""
Base Exception Class for the Commerce Core

This module provides the foundation exception class that every commerce
core exception inherits from. It carries structured error context,
classification and recovery suggestions so failures can be logged once,
at the boundary, with everything needed to understand them.

Expected business outcomes (insufficient stock, unknown promo code) are
NOT exceptions; they are boolean returns. This hierarchy is reserved for
I/O and data failures.

Key Design Patterns:
- Template Method: Common exception structure with customizable details
- Builder Pattern: Fluent API for adding context and recovery suggestions
"""

import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set
from uuid import uuid4

from .enums import ErrorCategory, ErrorSeverity


@dataclass
class ErrorContext:
    """Structured context information attached to an exception."""

    data: Dict[str, Any] = field(default_factory=dict)
    tags: Set[str] = field(default_factory=set)

    def add(self, key: str, value: Any) -> 'ErrorContext':
        """Add context data."""
        self.data[key] = value
        return self

    def add_tag(self, tag: str) -> 'ErrorContext':
        """Add a tag for categorization."""
        self.tags.add(tag)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "data": self.data.copy(),
            "tags": sorted(self.tags),
        }


class CommerceException(Exception):
    """
    Base exception class for all commerce core exceptions.

    Attributes:
        message: Human-readable error description
        error_code: Unique error identifier for tracking
        correlation_id: UUID for correlating related errors
        category: Error category for classification
        severity: Error severity level
        error_context: Additional context information
        recovery_suggestions: List of potential recovery actions
        timestamp: When the error occurred
        original_exception: Original exception that caused this error

    Example:
        >>> try:
        ...     response = await client.get(url)
        ... except httpx.HTTPError as e:
        ...     raise ProductLoadException(
        ...         message="Product source unreachable",
        ...         original_exception=e
        ...     ).add_context("url", url)
    """

    default_category: ErrorCategory = ErrorCategory.DATA
    default_severity: ErrorSeverity = ErrorSeverity.MEDIUM

    def __init__(
            self,
            message: str,
            error_code: Optional[str] = None,
            correlation_id: Optional[str] = None,
            category: Optional[ErrorCategory] = None,
            severity: Optional[ErrorSeverity] = None,
            context: Optional[Dict[str, Any]] = None,
            recovery_suggestions: Optional[List[str]] = None,
            original_exception: Optional[BaseException] = None
    ):
        """
        Initialize the exception with classification and context.

        Args:
            message: Clear, actionable error description
            error_code: Unique identifier for this error type (auto-generated if None)
            correlation_id: UUID for tracking related errors (auto-generated if None)
            category: Error category (class default if None)
            severity: Severity level (class default if None)
            context: Additional debugging context
            recovery_suggestions: List of recovery actions
            original_exception: Original exception that caused this error
        """
        super().__init__(message)

        self.message = message
        self.timestamp = datetime.now(timezone.utc)
        self.error_code = error_code or self._generate_error_code()
        self.correlation_id = correlation_id or str(uuid4())
        self.category = category or self.default_category
        self.severity = severity or self.default_severity

        self.error_context = ErrorContext()
        if context:
            for key, value in context.items():
                self.error_context.add(key, value)

        for tag in self.category.get_monitoring_tags():
            self.error_context.add_tag(tag)

        self.recovery_suggestions = list(recovery_suggestions or [])

        self.original_exception = original_exception
        if original_exception is not None:
            self.error_context.add("original_type", type(original_exception).__name__)
            self.error_context.add("original_message", str(original_exception))

        self.stack_trace = traceback.format_exc()

    def _generate_error_code(self) -> str:
        """Generate an error code based on exception type and timestamp."""
        class_name = self.__class__.__name__.replace("Exception", "").upper()
        timestamp = self.timestamp.strftime("%Y%m%d_%H%M%S_%f")[:19]
        return f"{class_name}_{timestamp}"

    def add_context(self, key: str, value: Any) -> 'CommerceException':
        """Add contextual information; supports method chaining."""
        self.error_context.add(key, value)
        return self

    def add_recovery_suggestion(self, suggestion: str) -> 'CommerceException':
        """Add a recovery suggestion; duplicates are ignored."""
        if suggestion and suggestion not in self.recovery_suggestions:
            self.recovery_suggestions.append(suggestion)
        return self

    @property
    def context(self) -> Dict[str, Any]:
        """Plain context data."""
        return self.error_context.data

    def is_retryable(self) -> bool:
        """Retry only transient categories at retryable severities."""
        return self.category.is_retryable() and self.severity.should_retry()

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "correlation_id": self.correlation_id,
            "category": self.category.value,
            "severity": self.severity.value,
            "context": self.error_context.to_dict(),
            "recovery_suggestions": list(self.recovery_suggestions),
            "timestamp": self.timestamp.isoformat(),
            "original_exception": str(self.original_exception) if self.original_exception else None,
        }

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(message={self.message!r}, "
            f"category={self.category.value!r}, severity={self.severity.value!r})"
        )
