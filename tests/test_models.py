"""Tests for apicache.models -- descriptors, cache keys, entries, config."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from apicache.exceptions import ConfigurationError
from apicache.models import (
    CacheBackend,
    CacheConfig,
    CacheEntry,
    GlobalConfig,
    HTTPMethod,
    RequestDescriptor,
)


NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# CacheEntry
# ---------------------------------------------------------------------------


class TestCacheEntry:
    def test_create_adds_ttl(self) -> None:
        entry = CacheEntry.create("v", 60, NOW)
        assert entry.expires_at == NOW + timedelta(seconds=60)

    def test_expiry_boundary(self) -> None:
        entry = CacheEntry.create("v", 60, NOW)
        assert entry.is_expired(NOW + timedelta(seconds=59)) is False
        assert entry.is_expired(NOW + timedelta(seconds=60)) is True

    def test_record_round_trip(self) -> None:
        entry = CacheEntry.create({"data": [1], "status": 200}, 30, NOW)
        record = entry.to_record()
        assert record == {
            "value": {"data": [1], "status": 200},
            "expires_at": "2024-01-01T12:00:30+00:00",
        }
        assert CacheEntry.from_record(record) == entry

    def test_frozen(self) -> None:
        entry = CacheEntry.create("v", 60, NOW)
        with pytest.raises(ValidationError):
            entry.value = "other"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# RequestDescriptor construction
# ---------------------------------------------------------------------------


class TestDescriptorBuild:
    def test_lowercase_method_accepted(self) -> None:
        descriptor = RequestDescriptor.build("get", "list")
        assert descriptor.method is HTTPMethod.GET

    def test_defaults(self) -> None:
        descriptor = RequestDescriptor.build(HTTPMethod.POST, "create")
        assert descriptor.params == {}
        assert descriptor.ttl_seconds is None
        assert descriptor.uses_cache is False

    def test_uses_cache_with_ttl(self) -> None:
        assert RequestDescriptor.build("GET", "list", ttl_seconds=0).uses_cache is True

    @pytest.mark.parametrize(
        ("method", "action", "ttl"),
        [
            ("FETCH", "list", None),
            ("GET", "", None),
            ("GET", "list", -1),
        ],
    )
    def test_invalid_descriptor(self, method: str, action: str, ttl: int | None) -> None:
        with pytest.raises(ConfigurationError, match="Invalid request descriptor"):
            RequestDescriptor.build(method, action, ttl_seconds=ttl)

    def test_params_are_copied(self) -> None:
        params = {"a": 1}
        descriptor = RequestDescriptor.build("GET", "list", params)
        params["b"] = 2
        assert descriptor.params == {"a": 1}


# ---------------------------------------------------------------------------
# Parameter serialisation and cache keys
# ---------------------------------------------------------------------------


class TestBuildParams:
    def test_scalars(self) -> None:
        descriptor = RequestDescriptor.build("GET", "search", {"name": "smith", "page": 2})
        assert descriptor.build_params("&") == "name=smith&page=2"

    def test_lists_and_mappings(self) -> None:
        descriptor = RequestDescriptor.build(
            "GET", "search", {"ids": [1, 2], "filter": {"age": 30, "city": "Paris"}}
        )
        assert descriptor.build_params("&") == "ids[]=1&ids[]=2&filter[age]=30&filter[city]=Paris"

    def test_none_skipped_and_bools_lowercase(self) -> None:
        descriptor = RequestDescriptor.build("GET", "search", {"a": None, "b": True, "c": False})
        assert descriptor.build_params("&") == "b=true&c=false"

    def test_quoted_values(self) -> None:
        descriptor = RequestDescriptor.build("GET", "search", {"q": "a b&c"})
        assert descriptor.build_params("&", url_encode=True) == "q=a%20b%26c"
        assert descriptor.build_params("&") == "q=a b&c"

    def test_url_encode_names_and_subkeys(self) -> None:
        descriptor = RequestDescriptor.build(
            "GET", "search", {"a&b": 1, "tag list": ["x y"], "filter": {"k=v": "1/2"}}
        )
        assert descriptor.build_params("&", url_encode=True) == (
            "a%26b=1&tag%20list[]=x%20y&filter[k%3Dv]=1%2F2"
        )
        assert descriptor.build_cache_key() == "GET_search_a&b=1_tag list[]=x y_filter[k=v]=1/2"

    def test_empty(self) -> None:
        assert RequestDescriptor.build("GET", "list").build_params("&") == ""


class TestCacheKey:
    def test_format(self) -> None:
        descriptor = RequestDescriptor.build("get", "search", {"name": "smith", "ids": [1, 2]})
        assert descriptor.build_cache_key() == "GET_search_name=smith_ids[]=1_ids[]=2"

    def test_no_params(self) -> None:
        assert RequestDescriptor.build("GET", "list").build_cache_key() == "GET_list_"

    def test_identical_descriptors_share_key(self) -> None:
        first = RequestDescriptor.build("GET", "search", {"a": 1, "b": 2}, ttl_seconds=60)
        second = RequestDescriptor.build("GET", "search", {"a": 1, "b": 2}, ttl_seconds=5)
        assert first.build_cache_key() == second.build_cache_key()

    @pytest.mark.parametrize(
        "other",
        [
            RequestDescriptor.build("POST", "search", {"a": 1}),
            RequestDescriptor.build("GET", "find", {"a": 1}),
            RequestDescriptor.build("GET", "search", {"a": 2}),
        ],
    )
    def test_any_difference_changes_key(self, other: RequestDescriptor) -> None:
        base = RequestDescriptor.build("GET", "search", {"a": 1})
        assert base.build_cache_key() != other.build_cache_key()

    def test_param_order_matters(self) -> None:
        first = RequestDescriptor.build("GET", "search", {"a": 1, "b": 2})
        second = RequestDescriptor.build("GET", "search", {"b": 2, "a": 1})
        assert first.build_cache_key() != second.build_cache_key()


# ---------------------------------------------------------------------------
# Configuration models
# ---------------------------------------------------------------------------


class TestConfigModels:
    def test_global_defaults(self) -> None:
        config = GlobalConfig()
        assert config.cache.namespace == "Cache"
        assert config.cache.backend is CacheBackend.DISK
        assert config.cache.default_ttl_seconds == 300
        assert config.request.base_url is None
        assert config.request.timeout == 30

    def test_empty_namespace_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CacheConfig(namespace="")

    def test_backend_from_string(self) -> None:
        assert CacheConfig.model_validate({"backend": "memory"}).backend is CacheBackend.MEMORY
