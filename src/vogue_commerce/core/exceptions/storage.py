# src/vogue_commerce/core/exceptions/storage.py
"""
Storage Exception Classes
"""

from typing import Optional

from .base import CommerceException
from .enums import ErrorCategory, ErrorSeverity


class PersistenceException(CommerceException):
    """Raised by persistence adapters when a read or write fails."""

    default_category = ErrorCategory.STORAGE
    default_severity = ErrorSeverity.HIGH

    def __init__(
            self,
            message: str,
            key: Optional[str] = None,
            operation: Optional[str] = None,
            **kwargs
    ):
        super().__init__(message=message, **kwargs)

        self.key = key
        self.operation = operation

        if key:
            self.add_context("key", key)
        if operation:
            self.add_context("operation", operation)

        self.add_recovery_suggestion("Check that the storage directory is writable")
