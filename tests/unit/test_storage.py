# tests/unit/test_storage.py
"""Unit tests for persistence adapters and the offline queue."""

import json
import tempfile
from pathlib import Path

import pytest

from vogue_commerce.core.exceptions import ErrorCategory, PersistenceException
from vogue_commerce.storage.adapter import FileStorage, InMemoryStorage, PersistenceAdapter
from vogue_commerce.storage.offline_queue import DEFAULT_QUEUE_KEY, DrainResult, OfflineQueue


class TestInMemoryStorage:
    """Test the dictionary-backed adapter."""

    def setup_method(self):
        self.storage = InMemoryStorage()

    def test_set_get_remove(self):
        assert self.storage.get_item("a") is None
        self.storage.set_item("a", "1")
        assert self.storage.get_item("a") == "1"
        self.storage.remove_item("a")
        assert self.storage.get_item("a") is None

    def test_remove_missing_key_is_noop(self):
        self.storage.remove_item("missing")

    def test_keys_and_clear(self):
        self.storage.set_item("b", "2")
        self.storage.set_item("a", "1")
        assert self.storage.keys() == ["a", "b"]
        self.storage.clear()
        assert self.storage.keys() == []

    def test_values_must_be_strings(self):
        with pytest.raises(PersistenceException):
            self.storage.set_item("a", {"not": "a string"})

    def test_satisfies_protocol(self):
        assert isinstance(self.storage, PersistenceAdapter)


class TestFileStorage:
    """Test the directory-backed adapter."""

    def setup_method(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.directory = Path(self.temp_dir.name) / "store"
        self.storage = FileStorage(self.directory)

    def teardown_method(self):
        self.temp_dir.cleanup()

    def test_creates_directory(self):
        assert self.directory.is_dir()

    def test_one_file_per_key(self):
        self.storage.set_item("virtual-vogue-cart", json.dumps({"items": []}))

        path = self.directory / "virtual-vogue-cart.json"
        assert path.exists()
        assert json.loads(path.read_text()) == {"items": []}
        assert self.storage.get_item("virtual-vogue-cart") == '{"items": []}'

    def test_overwrite_leaves_no_temp_files(self):
        self.storage.set_item("k", "first")
        self.storage.set_item("k", "second")

        assert self.storage.get_item("k") == "second"
        assert sorted(p.name for p in self.directory.iterdir()) == ["k.json"]

    def test_survives_new_instance(self):
        self.storage.set_item("k", "value")
        assert FileStorage(self.directory).get_item("k") == "value"

    def test_keys_remove_and_clear(self):
        self.storage.set_item("b", "2")
        self.storage.set_item("a", "1")
        assert self.storage.keys() == ["a", "b"]

        self.storage.remove_item("a")
        self.storage.remove_item("a")
        assert self.storage.keys() == ["b"]

        self.storage.clear()
        assert self.storage.keys() == []

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", "spaces here"])
    def test_invalid_keys_are_rejected(self, key):
        with pytest.raises(PersistenceException) as exc_info:
            self.storage.set_item(key, "x")
        assert exc_info.value.category == ErrorCategory.STORAGE

    def test_unreadable_record_raises(self):
        (self.directory / "k.json").mkdir()
        with pytest.raises(PersistenceException) as exc_info:
            self.storage.get_item("k")
        assert exc_info.value.operation == "get"


class TestOfflineQueue:
    """Test enqueue and drain semantics."""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.queue = OfflineQueue(self.storage)

    def test_enqueue_persists_in_order(self):
        first = self.queue.enqueue("add_favorite", {"product_id": "p-1"})
        second = self.queue.enqueue("remove_favorite", {"product_id": "p-2"})

        pending = self.queue.pending()
        assert [action.id for action in pending] == [first.id, second.id]
        assert pending[0].payload == {"product_id": "p-1"}
        assert len(self.queue) == 2

        stored = json.loads(self.storage.get_item(DEFAULT_QUEUE_KEY))
        assert [entry["action"] for entry in stored] == ["add_favorite", "remove_favorite"]
        assert set(stored[0]) == {"id", "timestamp", "action", "payload"}

    @pytest.mark.asyncio
    async def test_drain_all_successful(self):
        self.queue.enqueue("a")
        self.queue.enqueue("b")
        seen = []

        async def processor(action):
            seen.append(action.action)
            return True

        result = await self.queue.drain(processor)

        assert result == DrainResult(processed=2, failed=0)
        assert seen == ["a", "b"]
        assert self.queue.pending() == []

    @pytest.mark.asyncio
    async def test_failures_stay_queued_in_order(self):
        for name in ["ok-1", "reject", "boom", "ok-2"]:
            self.queue.enqueue(name)

        async def processor(action):
            if action.action == "boom":
                raise ConnectionError("offline")
            return action.action.startswith("ok")

        result = await self.queue.drain(processor)

        assert result == DrainResult(processed=2, failed=2)
        assert [action.action for action in self.queue.pending()] == ["reject", "boom"]

    @pytest.mark.asyncio
    async def test_actions_queued_during_drain_survive(self):
        self.queue.enqueue("sync")

        async def processor(action):
            self.queue.enqueue("follow-up")
            return True

        result = await self.queue.drain(processor)

        assert result.processed == 1
        assert [action.action for action in self.queue.pending()] == ["follow-up"]

    @pytest.mark.asyncio
    async def test_drain_empty_queue(self):
        async def processor(action):
            raise AssertionError("not called")

        assert await self.queue.drain(processor) == DrainResult()

    def test_corrupt_queue_reads_as_empty(self):
        self.storage.set_item(DEFAULT_QUEUE_KEY, "{{{")
        assert self.queue.pending() == []

        self.queue.enqueue("fresh")
        assert [action.action for action in self.queue.pending()] == ["fresh"]

    def test_original_millisecond_timestamps_are_accepted(self):
        self.storage.set_item(DEFAULT_QUEUE_KEY, json.dumps([
            {"id": "abc123", "timestamp": 1704067200000, "action": "sync", "payload": None}
        ]))
        pending = self.queue.pending()
        assert pending[0].timestamp.year == 2024

    def test_clear(self):
        self.queue.enqueue("a")
        self.queue.clear()
        assert self.queue.pending() == []
        assert self.storage.get_item(DEFAULT_QUEUE_KEY) is None
