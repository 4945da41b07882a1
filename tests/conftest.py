# tests/conftest.py
"""Shared fixtures for the commerce core test suite."""

from decimal import Decimal

import pytest

from factories import make_product
from vogue_commerce.core.logger import setup_logging
from vogue_commerce.core.retry import get_retry_manager
from vogue_commerce.models.product import Product
from vogue_commerce.storage.adapter import InMemoryStorage


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    setup_logging(log_level="WARNING", enable_console=False)
    yield


@pytest.fixture(autouse=True)
def reset_retry_stats():
    get_retry_manager().clear_stats()
    yield


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def product() -> Product:
    return make_product("dress-1", price=Decimal("199.99"), stock=5)
