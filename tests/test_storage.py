"""Tests for the local value cache."""

import threading

from branchlogic.model import DocumentKind
from branchlogic.storage import (
    DebouncedValueCache,
    InMemoryValueStore,
    JsonFileValueStore,
    values_storage_key,
)

from conftest import FailingStore


class CountingStore(InMemoryValueStore):
    def __init__(self):
        super().__init__()
        self.writes = []
        self.written = threading.Event()

    def set(self, key, values):
        super().set(key, values)
        self.writes.append(dict(values))
        self.written.set()


def test_storage_key_format():
    assert values_storage_key(DocumentKind.FORM, "abc") == "form-abc-values"
    assert values_storage_key(DocumentKind.QUIZ, "abc") == "quiz-abc-values"


def test_in_memory_store_copies_values():
    store = InMemoryValueStore()
    values = {"q": ["a"]}
    store.set("k", values)
    values["q"].append("b")
    assert store.get("k") == {"q": ["a"]}
    store.clear("k")
    assert store.get("k") is None


def test_json_file_store_roundtrip(tmp_path):
    store = JsonFileValueStore(tmp_path / "cache")
    assert store.get("k") is None
    store.set("k", {"q1": "x", "q2": [1, 2]})
    assert (tmp_path / "cache" / "k.json").exists()
    assert store.get("k") == {"q1": "x", "q2": [1, 2]}
    store.clear("k")
    assert store.get("k") is None
    store.clear("k")


class TestDebouncedValueCache:
    def test_zero_wait_writes_immediately(self):
        store = CountingStore()
        cache = DebouncedValueCache(store, "k", wait=0)
        cache.schedule({"a": 1})
        cache.schedule({"a": 2})
        assert store.writes == [{"a": 1}, {"a": 2}]

    def test_rapid_writes_coalesce(self):
        store = CountingStore()
        cache = DebouncedValueCache(store, "k", wait=60)
        for i in range(5):
            cache.schedule({"a": i})
        assert store.writes == []
        cache.flush()
        assert store.writes == [{"a": 4}]

    def test_timer_eventually_writes(self):
        store = CountingStore()
        cache = DebouncedValueCache(store, "k", wait=0.01)
        cache.schedule({"a": 1})
        assert store.written.wait(timeout=5)
        assert store.get("k") == {"a": 1}

    def test_clear_drops_pending_write(self):
        store = CountingStore()
        store.set("k", {"old": True})
        cache = DebouncedValueCache(store, "k", wait=60)
        cache.schedule({"a": 1})
        cache.clear()
        cache.flush()
        assert store.get("k") is None
        assert store.writes == [{"old": True}]

    def test_load_ignores_non_mapping(self):
        store = InMemoryValueStore()
        store.set("k", ["not", "a", "dict"])
        assert DebouncedValueCache(store, "k").load() is None

    def test_failures_are_swallowed(self):
        cache = DebouncedValueCache(FailingStore(), "k", wait=0)
        assert cache.load() is None
        cache.schedule({"a": 1})
        cache.clear()

    def test_no_store_is_noop(self):
        cache = DebouncedValueCache(None, "k", wait=0)
        cache.schedule({"a": 1})
        cache.flush()
        cache.clear()
        assert cache.load() is None

    def test_clear_wins_over_write_in_flight(self):
        entered, release = threading.Event(), threading.Event()

        class SlowStore(InMemoryValueStore):
            def set(self, key, values):
                entered.set()
                release.wait(timeout=5)
                super().set(key, values)

        store = SlowStore()
        cache = DebouncedValueCache(store, "k", wait=0.01)
        cache.schedule({"a": 1})
        assert entered.wait(timeout=5)

        clearing = threading.Thread(target=cache.clear)
        clearing.start()
        release.set()
        clearing.join(timeout=5)

        assert not clearing.is_alive()
        assert "k" not in store

    def test_writes_scheduled_after_clear_still_land(self):
        store = CountingStore()
        cache = DebouncedValueCache(store, "k", wait=0)
        cache.schedule({"a": 1})
        cache.clear()
        cache.schedule({"a": 2})
        assert store.get("k") == {"a": 2}
