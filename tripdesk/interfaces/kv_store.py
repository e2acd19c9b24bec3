# interfaces/kv_store.py
"""
Key-Value Store
Small JSON key-value interface with TTLs, backing edit previews and rate limits.
Redis in deployment; an in-process store for development and tests.
"""

import json
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Tuple

import redis
from loguru import logger

from ..errors import StoreError


class KeyValueStore(ABC):
    """JSON values keyed by string, with optional expiry in seconds"""

    backend: str = "abstract"

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Value for key, or None if missing or expired"""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store value, replacing any existing one"""

    @abstractmethod
    def add(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store value only if key is absent; True if stored"""

    @abstractmethod
    def incr(self, key: str, ttl: Optional[int] = None) -> Tuple[int, Optional[float]]:
        """
        Atomically add one to an integer counter, creating it at 1.
        ttl applies only when the counter is created.

        Returns:
            (new count, seconds until the counter expires or None)
        """

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove key; True if it existed"""

    @abstractmethod
    def ping(self) -> bool:
        """True if the backend is reachable"""

    def close(self) -> None:
        pass


class MemoryStore(KeyValueStore):
    """
    In-process store. Values are JSON round-tripped so callers never share
    mutable state with the store, matching what Redis would hand back.
    """

    backend = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()

    def _live(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        raw, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return raw

    def _expiry(self, ttl: Optional[int]) -> Optional[float]:
        return None if ttl is None else self._clock() + ttl

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            raw = self._live(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        raw = json.dumps(value)
        with self._lock:
            self._data[key] = (raw, self._expiry(ttl))

    def add(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        raw = json.dumps(value)
        with self._lock:
            if self._live(key) is not None:
                return False
            self._data[key] = (raw, self._expiry(ttl))
            return True

    def incr(self, key: str, ttl: Optional[int] = None) -> Tuple[int, Optional[float]]:
        with self._lock:
            raw = self._live(key)
            if raw is None:
                count, expires_at = 1, self._expiry(ttl)
            else:
                count, expires_at = int(json.loads(raw)) + 1, self._data[key][1]
            self._data[key] = (json.dumps(count), expires_at)
            return count, None if expires_at is None else expires_at - self._clock()

    def delete(self, key: str) -> bool:
        with self._lock:
            existed = self._live(key) is not None
            self._data.pop(key, None)
            return existed

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        with self._lock:
            self._data.clear()


class RedisStore(KeyValueStore):
    """Redis-backed store; connection failures surface as StoreError"""

    backend = "redis"

    def __init__(self, client: "redis.Redis"):
        self.client = client

    @classmethod
    def from_settings(cls, settings) -> "RedisStore":
        client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
        return cls(client)

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self.client.get(key)
        except redis.RedisError as e:
            logger.error(f"Redis get error for {key}: {e}")
            raise StoreError(f"Could not read {key}") from e
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        try:
            self.client.set(key, json.dumps(value), ex=ttl)
        except redis.RedisError as e:
            logger.error(f"Redis set error for {key}: {e}")
            raise StoreError(f"Could not write {key}") from e

    def add(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        try:
            return bool(self.client.set(key, json.dumps(value), ex=ttl, nx=True))
        except redis.RedisError as e:
            logger.error(f"Redis add error for {key}: {e}")
            raise StoreError(f"Could not write {key}") from e

    def incr(self, key: str, ttl: Optional[int] = None) -> Tuple[int, Optional[float]]:
        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.incr(key)
            if ttl is not None:
                # Only the request that creates the counter sets its expiry
                pipe.expire(key, ttl, nx=True)
            pipe.pttl(key)
            results = pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Redis incr error for {key}: {e}")
            raise StoreError(f"Could not increment {key}") from e
        count, pttl = int(results[0]), results[-1]
        return count, (pttl / 1000 if pttl is not None and pttl >= 0 else None)

    def delete(self, key: str) -> bool:
        try:
            return bool(self.client.delete(key))
        except redis.RedisError as e:
            logger.error(f"Redis delete error for {key}: {e}")
            raise StoreError(f"Could not delete {key}") from e

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    def close(self) -> None:
        self.client.close()


def create_store(settings) -> KeyValueStore:
    """
    Build the configured key-value store.
    Falls back to the in-memory store if Redis cannot be reached at startup.
    """
    if settings.STORE_BACKEND != "redis":
        logger.info("Using in-memory key-value store")
        return MemoryStore()

    store = RedisStore.from_settings(settings)
    if store.ping():
        logger.info(f"Key-value store connected to Redis at {settings.REDIS_HOST}:{settings.REDIS_PORT}")
        return store

    logger.warning("Redis connection failed, using in-memory store")
    store.close()
    return MemoryStore()
