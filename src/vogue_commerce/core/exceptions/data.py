# src/vogue_commerce/core/exceptions/data.py
"""
Data Exception Classes
"""

from typing import Any, Optional

from .base import CommerceException
from .enums import ErrorCategory, ErrorSeverity


class ProductDataException(CommerceException):
    """
    Raised when a remote product record cannot be mapped into a Product.

    Repeating the request would return the same payload, so the loader
    does not retry these.
    """

    default_category = ErrorCategory.DATA
    default_severity = ErrorSeverity.HIGH

    def __init__(
            self,
            message: str,
            record_id: Optional[Any] = None,
            **kwargs
    ):
        super().__init__(message=message, **kwargs)

        self.record_id = record_id
        if record_id is not None:
            self.add_context("record_id", record_id)

        self.add_recovery_suggestion("Inspect the product record in the remote catalog")
