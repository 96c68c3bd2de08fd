"""
Query Cache for the Flow Editor

Holds flow listings and flow documents fetched by the editor so repeated
page visits don't refetch. Mutations never update entries in place: a
successful save or publish invalidates every `flows:*` key and the next
read goes back to the service.

Features:
- TTL per entry
- Max size with LRU eviction
- Glob-pattern invalidation
- Fail-safe reads (a broken entry is a miss, never an exception)

IMPORTANT: one cache per editor process; nothing is shared between users.
"""
import json
import logging
import time
import fnmatch
from typing import Any, Optional, Dict
from collections import OrderedDict
from dataclasses import dataclass

from waflow.shared.core.constants import CACHE_PREFIX_FLOWS

logger = logging.getLogger("cache")


@dataclass
class CacheEntry:
    data: Any
    expires_at: float  # Unix timestamp


class QueryCache:
    """
    In-memory cache with TTL and LRU eviction.

    Usage:
        cache = QueryCache(max_size=100, default_ttl_seconds=300)
        cache.set(flow_detail_key(42), flow_json)
        cache.get(flow_detail_key(42))
        cache.invalidate_pattern("flows:*")
    """

    def __init__(self, max_size: int = 100, default_ttl_seconds: int = 300):
        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._max_size = max_size
        self._default_ttl = default_ttl_seconds
        self._stats = {
            "hits": 0,
            "misses": 0,
            "invalidations": 0
        }

    def get(self, key: str) -> Optional[Any]:
        """Cached data if present and not expired, None otherwise."""
        entry = self._cache.get(key)

        if entry is None:
            self._stats["misses"] += 1
            return None

        if time.time() > entry.expires_at:
            self._cache.pop(key, None)
            self._stats["misses"] += 1
            logger.debug(f"Cache EXPIRED: {key}")
            return None

        self._cache.move_to_end(key)
        self._stats["hits"] += 1
        logger.debug(f"Cache HIT: {key}")
        return entry.data

    def set(self, key: str, data: Any, ttl_seconds: Optional[int] = None) -> None:
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds

        if key not in self._cache:
            while len(self._cache) >= self._max_size:
                oldest_key, _ = self._cache.popitem(last=False)
                logger.debug(f"Cache LRU eviction: {oldest_key}")

        self._cache[key] = CacheEntry(data=data, expires_at=time.time() + ttl)
        self._cache.move_to_end(key)
        logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")

    def invalidate(self, key: str) -> bool:
        """Remove one key. Returns True if it existed."""
        if self._cache.pop(key, None) is None:
            return False
        self._stats["invalidations"] += 1
        logger.info(f"Cache INVALIDATED: {key}")
        return True

    def invalidate_pattern(self, pattern: str) -> int:
        """
        Remove all keys matching a glob pattern like "flows:*".

        Returns:
            Number of keys invalidated
        """
        keys_to_remove = [key for key in list(self._cache.keys()) if fnmatch.fnmatch(key, pattern)]

        for key in keys_to_remove:
            self._cache.pop(key, None)

        if keys_to_remove:
            self._stats["invalidations"] += len(keys_to_remove)
            logger.info(f"Cache INVALIDATED pattern '{pattern}': {len(keys_to_remove)} keys")

        return len(keys_to_remove)

    def clear_all(self) -> int:
        count = len(self._cache)
        self._cache.clear()
        logger.info(f"Cache CLEARED: {count} entries")
        return count

    def __contains__(self, key: str) -> bool:
        entry = self._cache.get(key)
        return entry is not None and time.time() <= entry.expires_at

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self._stats,
            "size": len(self._cache),
            "max_size": self._max_size,
            "hit_rate": self._stats["hits"] / max(1, self._stats["hits"] + self._stats["misses"])
        }


# ============================================
# CACHE KEYS
# ============================================

def flow_detail_key(flow_id: Any) -> str:
    return f"{CACHE_PREFIX_FLOWS}:detail:{flow_id}"


def flow_list_key(**params: Any) -> str:
    """Listing key; params are part of the key so each filter combination caches separately."""
    active = {k: v for k, v in params.items() if v is not None}
    return f"{CACHE_PREFIX_FLOWS}:list:{json.dumps(active, sort_keys=True, default=str)}"
