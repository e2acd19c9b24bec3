# interfaces/search_cache.py
"""
Search Result Cache
Caches search results in the key-value store with a TTL.

Keys carry a per-category version number; any write to a category bumps the
version, so cached pages for it are never read again and simply expire.
"""

import hashlib
import json
from typing import Any, Callable, Dict, List, Mapping, Tuple, Union

from loguru import logger

from ..errors import StoreError
from ..schemas import Category
from .kv_store import KeyValueStore


class SearchCache:
    """Category-versioned search cache"""

    def __init__(self, store: KeyValueStore, ttl_seconds: int = 300):
        self.store = store
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_settings(cls, store: KeyValueStore, settings) -> "SearchCache":
        return cls(store, ttl_seconds=settings.SEARCH_CACHE_TTL)

    def _version_key(self, category: Category) -> str:
        return f"search:version:{category.value}"

    def _get_key(self, category: Category, params: Mapping[str, Any]) -> str:
        version = self.store.get(self._version_key(category)) or 0
        digest = hashlib.sha256(
            json.dumps(params, sort_keys=True, default=str).encode("utf-8")
        ).hexdigest()[:16]
        return f"search:{category.value}:v{version}:{digest}"

    def get_or_compute(
        self,
        category: Union[Category, str],
        params: Mapping[str, Any],
        compute: Callable[[], List[Dict[str, Any]]]
    ) -> Tuple[List[Dict[str, Any]], bool]:
        """
        Cached results for params, computing and storing them on a miss.

        Returns:
            (results, True if served from cache)
        """
        category = Category(category)
        try:
            key = self._get_key(category, params)
            cached = self.store.get(key)
        except StoreError as e:
            logger.warning(f"Search cache unavailable, querying directly: {e}")
            return compute(), False

        if cached is not None:
            logger.debug(f"Search cache hit: {key}")
            return cached, True

        results = compute()
        try:
            self.store.set(key, results, ttl=self.ttl_seconds)
        except StoreError as e:
            logger.warning(f"Could not cache search results: {e}")
        return results, False

    def invalidate(self, category: Union[Category, str]) -> None:
        """Drop every cached search for a category"""
        category = Category(category)
        try:
            self.store.incr(self._version_key(category))
        except StoreError as e:
            logger.error(f"Could not invalidate {category.value} search cache: {e}")
