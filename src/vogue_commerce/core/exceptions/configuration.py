# src/vogue_commerce/core/exceptions/configuration.py
"""
Configuration and Cancellation Exception Classes
"""

from typing import Optional

from .base import CommerceException
from .enums import ErrorCategory, ErrorSeverity


class ConfigurationException(CommerceException):
    """Raised when settings or static tables are invalid."""

    default_category = ErrorCategory.CONFIGURATION
    default_severity = ErrorSeverity.CRITICAL

    def __init__(
            self,
            message: str,
            setting: Optional[str] = None,
            **kwargs
    ):
        super().__init__(message=message, **kwargs)

        self.setting = setting
        if setting:
            self.add_context("setting", setting)


class OperationCancelledException(CommerceException):
    """Raised inside a retry loop once its cancellation token fires."""

    default_category = ErrorCategory.CANCELLED
    default_severity = ErrorSeverity.LOW

    def __init__(
            self,
            message: str = "Operation cancelled",
            operation_name: Optional[str] = None,
            **kwargs
    ):
        super().__init__(message=message, **kwargs)

        self.operation_name = operation_name
        if operation_name:
            self.add_context("operation_name", operation_name)
