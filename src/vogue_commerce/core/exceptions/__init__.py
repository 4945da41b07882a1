# src/vogue_commerce/core/exceptions/__init__.py
"""
Commerce Core Exception Package
"""

from .base import CommerceException, ErrorContext
from .configuration import ConfigurationException, OperationCancelledException
from .data import ProductDataException
from .enums import ErrorCategory, ErrorSeverity
from .network import ProductLoadException
from .storage import PersistenceException

__all__ = [
    "CommerceException",
    "ConfigurationException",
    "ErrorCategory",
    "ErrorContext",
    "ErrorSeverity",
    "OperationCancelledException",
    "PersistenceException",
    "ProductDataException",
    "ProductLoadException",
]
