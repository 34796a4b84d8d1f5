"""Behavioural tests shared by every StorageAdapter implementation."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from apicache.exceptions import CacheError
from apicache.storage import DiskStorage, MemoryStorage, StorageAdapter


def _record(value: object) -> dict:
    return {"value": value, "expires_at": "2024-01-01T12:00:00+00:00"}


@pytest.fixture(params=["memory", "disk"])
def adapter(request: pytest.FixtureRequest, tmp_path: Path) -> Iterator[StorageAdapter]:
    if request.param == "memory":
        yield MemoryStorage()
    else:
        storage = DiskStorage(tmp_path / "disk")
        yield storage
        storage.close()


class TestItems:
    def test_set_get_exists(self, adapter: StorageAdapter) -> None:
        adapter.set_item("ns", "key", _record(1))
        assert adapter.item_exists("ns", "key") is True
        assert adapter.get_item("ns", "key") == _record(1)

    def test_missing_item(self, adapter: StorageAdapter) -> None:
        assert adapter.item_exists("ns", "missing") is False
        with pytest.raises(KeyError):
            adapter.get_item("ns", "missing")

    def test_set_replaces(self, adapter: StorageAdapter) -> None:
        adapter.set_item("ns", "key", _record(1))
        adapter.set_item("ns", "key", _record(2))
        assert adapter.get_item("ns", "key")["value"] == 2
        assert adapter.count_items("ns") == 1

    def test_remove(self, adapter: StorageAdapter) -> None:
        adapter.set_item("ns", "key", _record(1))
        assert adapter.remove_item("ns", "key") is True
        assert adapter.remove_item("ns", "key") is False
        assert adapter.item_exists("ns", "key") is False


class TestNamespaces:
    def test_same_key_in_two_namespaces(self, adapter: StorageAdapter) -> None:
        adapter.set_item("a", "key", _record("a"))
        adapter.set_item("b", "key", _record("b"))
        assert adapter.get_item("a", "key")["value"] == "a"
        assert adapter.get_item("b", "key")["value"] == "b"

    def test_get_items_and_count_scoped(self, adapter: StorageAdapter) -> None:
        adapter.set_item("a", "k1", _record(1))
        adapter.set_item("a", "k2", _record(2))
        adapter.set_item("b", "k1", _record(3))
        assert adapter.get_items("a") == {"k1": _record(1), "k2": _record(2)}
        assert adapter.count_items("a") == 2
        assert adapter.count_items("b") == 1
        assert adapter.count_items("empty") == 0
        assert adapter.get_items("empty") == {}

    def test_clear_namespace(self, adapter: StorageAdapter) -> None:
        adapter.set_item("a", "k1", _record(1))
        adapter.set_item("b", "k1", _record(2))
        adapter.clear_namespace("a")
        adapter.clear_namespace("a")
        assert adapter.count_items("a") == 0
        assert adapter.count_items("b") == 1


class TestMemoryStorage:
    def test_records_are_copied(self) -> None:
        storage = MemoryStorage()
        record = _record({"list": [1]})
        storage.set_item("ns", "key", record)
        record["value"]["list"].append(2)
        fetched = storage.get_item("ns", "key")
        fetched["value"]["list"].append(3)
        assert storage.get_item("ns", "key")["value"] == {"list": [1]}


class TestDiskStorage:
    def test_persists_across_instances(self, tmp_path: Path) -> None:
        with DiskStorage(tmp_path) as storage:
            storage.set_item("ns", "key", _record(1))
        with DiskStorage(tmp_path) as reopened:
            assert reopened.get_item("ns", "key") == _record(1)

    def test_directory_property(self, tmp_path: Path) -> None:
        with DiskStorage(tmp_path / "x") as storage:
            assert storage.directory == tmp_path / "x"

    def test_double_close(self, tmp_path: Path) -> None:
        storage = DiskStorage(tmp_path)
        storage.close()
        storage.close()

    def test_use_after_close(self, tmp_path: Path) -> None:
        storage = DiskStorage(tmp_path)
        storage.close()
        with pytest.raises(CacheError, match="is closed"):
            storage.item_exists("ns", "key")
