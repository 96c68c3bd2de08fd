# backend/tests/test_query_cache.py
from unittest.mock import patch

from waflow.shared.utils.cache import QueryCache, flow_detail_key, flow_list_key


def test_pattern_invalidation_only_touches_flow_keys():
    cache = QueryCache()
    cache.set(flow_detail_key(1), {"id": 1})
    cache.set(flow_list_key(status="draft"), {"flows": []})
    cache.set("templates:list", ["welcome_v2"])

    assert cache.invalidate_pattern("flows:*") == 2
    assert flow_detail_key(1) not in cache
    assert cache.get("templates:list") == ["welcome_v2"]


def test_entries_expire():
    cache = QueryCache(default_ttl_seconds=10)
    with patch("waflow.shared.utils.cache.time.time", return_value=1000.0):
        cache.set("flows:detail:1", {"id": 1})
    with patch("waflow.shared.utils.cache.time.time", return_value=1011.0):
        assert cache.get("flows:detail:1") is None


def test_lru_eviction():
    cache = QueryCache(max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")
    cache.set("c", 3)

    assert "a" in cache
    assert "b" not in cache
    assert cache.get_stats()["size"] == 2


def test_list_key_ignores_unset_filters():
    assert flow_list_key(status=None, search=None) == flow_list_key()
    assert flow_list_key(search="x", status="draft") == flow_list_key(status="draft", search="x")
