# tests/integration/test_commerce_core_integration.py
"""
Integration tests for the wired commerce core.

These tests build complete cores through ``create_commerce_core`` and
exercise the stores together: loading the catalog, shopping, and
restoring everything from the shared storage after a restart.
"""

import json
import tempfile
from decimal import Decimal
from pathlib import Path

import httpx
import pytest

from factories import make_raw_record
from vogue_commerce import CommerceCore, create_commerce_core
from vogue_commerce.bootstrap import build_storage
from vogue_commerce.catalog.loader import HttpProductSource
from vogue_commerce.config.settings import StorageBackend, StorageSettings, get_testing_settings
from vogue_commerce.core.exceptions import ConfigurationException, ProductLoadException
from vogue_commerce.models.product import Size
from vogue_commerce.storage.adapter import FileStorage, InMemoryStorage


class StaticSource:
    """Product source returning fixed rows, optionally failing first."""

    def __init__(self, records, failures: int = 0):
        self.records = records
        self.failures = failures
        self.calls = 0

    async def fetch_records(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise ProductLoadException("Product API returned HTTP 502", status_code=502)
        return self.records


CATALOG_ROWS = [
    make_raw_record("dress-1", name="Silk Dress", category="vestidos", price=200, original_price=250,
                    stock=2, has_ar=True, is_featured=True, sizes=["S", "M"]),
    make_raw_record("jacket-1", name="Denim Jacket", category="chaquetas", price=120,
                    sizes=["M", "L"], review_count=40),
    make_raw_record("tee-1", name="Basic Tee", category="tops", price="19.90", sizes=["XS", "S"]),
]


@pytest.mark.integration
class TestCommerceCoreIntegration:
    """Test the stores working together over one storage adapter."""

    def setup_method(self):
        self.settings = get_testing_settings()
        self.storage = InMemoryStorage()

    def build(self, source=None) -> CommerceCore:
        return create_commerce_core(
            self.settings,
            source=source or StaticSource(CATALOG_ROWS),
            storage=self.storage,
            configure_logging=False
        )

    @pytest.mark.asyncio
    async def test_browse_and_shop(self):
        core = self.build()

        assert await core.catalog.load_products() is True
        core.catalog.set_filters(has_ar=True)
        dress = core.catalog.filtered_products[0]
        assert dress.id == "dress-1"
        assert dress.discount == 20

        assert core.cart.add_item(dress, Size.M, "Red", 2) is True
        assert core.cart.add_item(dress, Size.M, "Red", 1) is False
        assert core.cart.apply_promo_code(" vogue20 ") is True

        state = core.cart.state
        assert state.subtotal == Decimal("400")
        assert state.discount == Decimal("80.00")
        assert state.total == Decimal("320.00")

        core.user.add_to_history(dress.id)
        core.user.toggle_favorite(dress.id)

    @pytest.mark.asyncio
    async def test_restart_restores_every_store(self):
        core = self.build()
        await core.catalog.load_products()
        core.catalog.set_sort_by("price-asc")
        jacket = core.catalog.get_product_by_id("jacket-1")
        core.cart.add_item(jacket, Size.L, "Red", 1)
        core.cart.apply_promo_code("WELCOME10")
        core.user.toggle_favorite("jacket-1")
        core.offline_queue.enqueue("add_favorite", {"product_id": "jacket-1"})

        restarted = self.build(source=StaticSource([]))

        assert [p.id for p in restarted.catalog.filtered_products] == ["tee-1", "jacket-1", "dress-1"]
        assert restarted.cart.state.item_count == 1
        assert restarted.cart.state.promo_code == "WELCOME10"
        assert restarted.user.favorites == ["jacket-1"]
        assert len(restarted.offline_queue) == 1

    @pytest.mark.asyncio
    async def test_transient_failures_recover_without_waiting(self):
        source = StaticSource(CATALOG_ROWS, failures=2)
        core = self.build(source)

        assert await core.catalog.load_products() is True

        assert source.calls == 3
        assert len(core.catalog.products) == 3
        assert core.catalog.error is None

    @pytest.mark.asyncio
    async def test_persistent_failure_surfaces_error(self):
        source = StaticSource(CATALOG_ROWS, failures=100)
        core = self.build(source)

        assert await core.catalog.load_products() is False

        assert source.calls == self.settings.loader.max_retries + 1
        assert core.catalog.error == "Product API returned HTTP 502"
        assert core.catalog.products == ()

    @pytest.mark.asyncio
    async def test_offline_actions_replay_into_user_store(self):
        core = self.build()
        core.offline_queue.enqueue("toggle_favorite", {"product_id": "dress-1"})
        core.offline_queue.enqueue("unknown", {})

        async def processor(action):
            if action.action == "toggle_favorite":
                core.user.toggle_favorite(action.payload["product_id"])
                return True
            return False

        result = await core.offline_queue.drain(processor)

        assert (result.processed, result.failed) == (1, 1)
        assert core.user.is_favorite("dress-1") is True
        assert [a.action for a in core.offline_queue.pending()] == ["unknown"]

    @pytest.mark.asyncio
    async def test_http_source_from_settings(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=CATALOG_ROWS)

        settings = get_testing_settings(loader={"base_url": "https://db.example.com", "api_key": "anon"})
        source = HttpProductSource.from_settings(settings, transport=httpx.MockTransport(handler))
        core = create_commerce_core(settings, source=source, storage=self.storage, configure_logging=False)

        assert await core.catalog.load_products() is True
        assert {p.id for p in core.catalog.products} == {"dress-1", "jacket-1", "tee-1"}


@pytest.mark.integration
class TestStorageBackends:
    """Test storage selection and the file backend across restarts."""

    def setup_method(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.directory = Path(self.temp_dir.name) / "state"

    def teardown_method(self):
        self.temp_dir.cleanup()

    def test_build_storage_selects_backend(self):
        memory = build_storage(get_testing_settings())
        files = build_storage(get_testing_settings(
            storage=StorageSettings(backend=StorageBackend.FILE, directory=self.directory)
        ))

        assert isinstance(memory, InMemoryStorage)
        assert isinstance(files, FileStorage)
        assert files.directory == self.directory

    def test_unsupported_backend_raises(self):
        settings = get_testing_settings()
        settings.storage.backend = "redis"

        with pytest.raises(ConfigurationException):
            build_storage(settings)

    @pytest.mark.asyncio
    async def test_file_backed_core_survives_restart(self):
        settings = get_testing_settings(
            storage=StorageSettings(backend=StorageBackend.FILE, directory=self.directory)
        )
        core = create_commerce_core(settings, source=StaticSource(CATALOG_ROWS), configure_logging=False)
        await core.catalog.load_products()
        core.cart.add_item(core.catalog.get_product_by_id("tee-1"), Size.S, "Red", 3)

        cart_file = self.directory / f"{settings.storage.cart_key}.json"
        assert json.loads(cart_file.read_text())["items"][0]["quantity"] == 3

        restarted = create_commerce_core(settings, source=StaticSource([]), configure_logging=False)

        assert restarted.cart.state.item_count == 3
        assert restarted.cart.state.subtotal == Decimal("59.70")
        assert len(restarted.catalog.products) == 3
