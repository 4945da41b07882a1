# src/vogue_commerce/core/exceptions/network.py
"""
Network Exception Classes
"""

from typing import Optional

from .base import CommerceException
from .enums import ErrorCategory, ErrorSeverity


class ProductLoadException(CommerceException):
    """
    Raised when the remote product source cannot be reached, answers
    with an error status, or fails in any other way while fetching.

    This is the only exception the product loader retries.
    """

    default_category = ErrorCategory.NETWORK
    default_severity = ErrorSeverity.MEDIUM

    def __init__(
            self,
            message: str,
            url: Optional[str] = None,
            status_code: Optional[int] = None,
            **kwargs
    ):
        super().__init__(message=message, **kwargs)

        self.url = url
        self.status_code = status_code

        if url:
            self.add_context("url", url)
        if status_code:
            self.add_context("status_code", status_code)

        self.add_recovery_suggestion("Check network connectivity")
        self.add_recovery_suggestion("Verify the product API base URL and key")
        if status_code and 500 <= status_code < 600:
            self.add_recovery_suggestion("Product API server error - try again later")
