# interfaces/__init__.py
"""
Storage Interfaces
Key-value store, listing repository, edit previews, search cache and rate limiting.
"""

from .kv_store import KeyValueStore, MemoryStore, RedisStore, create_store
from .listing_store import (
    ListingQuery, ListingRepository, InMemoryListingRepository, MySQLListingRepository,
    build_search_sql, build_update_sql, build_insert_sql, build_delete_sql,
    create_listing_repository
)
from .edit_store import EditStore
from .search_cache import SearchCache
from .rate_limiter import RateLimiter, RateLimitResult

__all__ = [
    "KeyValueStore", "MemoryStore", "RedisStore", "create_store",
    "ListingQuery", "ListingRepository", "InMemoryListingRepository", "MySQLListingRepository",
    "build_search_sql", "build_update_sql", "build_insert_sql", "build_delete_sql",
    "create_listing_repository",
    "EditStore",
    "SearchCache",
    "RateLimiter", "RateLimitResult",
]
