"""Cache backend classes for key-value backends like Valkey or Redis.

Extends Django's BaseCache with the cache-handler operations of this
package (save, delete_matching, clean, increment/decrement, metadata and
aggregated INFO) and with access to the open connection for other
subsystems such as sessions.
"""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING, Any, override

from django.core.cache.backends.base import DEFAULT_TIMEOUT, BaseCache

from django_shardcache.client.default import (
    KeyValueCacheClient,
    RedisCacheClient,
    ValkeyCacheClient,
)
from django_shardcache.compat import glob_escape
from django_shardcache.omit_exception import omit_exception
from django_shardcache.types import NO_VALUE

if TYPE_CHECKING:
    import builtins

    from django_shardcache.connection import KeyValueConnection
    from django_shardcache.types import CacheHandler, CacheMetadata, KeyT

# Sentinel value for methods with dynamic return values (e.g., get() returns default arg)
CONNECTION_INTERRUPTED = object()

# =============================================================================
# KeyValueCache - base class extending Django's BaseCache
# =============================================================================


class KeyValueCache(BaseCache):
    """Django cache backend for Redis/Valkey.

    Subclasses set ``_class`` to the cache client that serves them; that is
    the only difference between the single-node and cluster backends.
    """

    _class: builtins.type[CacheHandler] = KeyValueCacheClient

    def __init__(self, server: str | list[str], params: dict[str, Any]) -> None:
        super().__init__(params)
        self._server = server
        self._options = params.get("OPTIONS", {})

        # Exception handling config (from OPTIONS)
        self._ignore_exceptions = self._options.get("ignore_exceptions", False)
        self._log_ignored_exceptions = self._options.get("log_ignored_exceptions", False)

    @cached_property
    def _cache(self) -> CacheHandler:
        """Get the cache client, connecting on first access."""
        options = {
            name: value
            for name, value in self._options.items()
            if name not in {"ignore_exceptions", "log_ignored_exceptions"}
        }
        return self._class(self._server, **options)

    def get_backend_timeout(self, timeout: float | None = DEFAULT_TIMEOUT) -> int | None:
        """Convert timeout to backend format (matches Django's RedisCache).

        Negative values are clamped to 0, causing immediate key deletion.
        """
        if timeout == DEFAULT_TIMEOUT:
            timeout = self.default_timeout
        # The key will be made persistent if None used as a timeout.
        # Non-positive values will cause the key to be deleted.
        return None if timeout is None else max(0, int(timeout))

    def make_pattern(self, pattern: str, version: int | None = None) -> str:
        """Build a pattern for key matching with proper escaping."""
        escaped_prefix = glob_escape(self.key_prefix)
        ver = version if version is not None else self.version
        return self.key_func(pattern, escaped_prefix, ver)

    # =========================================================================
    # Connection access
    # =========================================================================

    @property
    def connection(self) -> KeyValueConnection:
        """The open connection, shared with collaborators such as sessions."""
        return self._cache.connection

    def get_driver(self) -> Any:
        """Get the underlying redis-py / valkey-py client."""
        return self._cache.connection.client

    # =========================================================================
    # Core Cache Operations (Django's BaseCache interface)
    # =========================================================================

    @omit_exception(return_value=False)
    @override
    def add(
        self,
        key: KeyT,
        value: Any,
        timeout: float | None = DEFAULT_TIMEOUT,
        version: int | None = None,
    ) -> bool:
        """Set a value only if the key doesn't exist."""
        key = self.make_and_validate_key(key, version=version)
        return self._cache.add(key, value, self.get_backend_timeout(timeout))

    @omit_exception(return_value=CONNECTION_INTERRUPTED)
    def _get(self, key: KeyT, version: int | None = None) -> Any:
        """Internal get with exception handling."""
        key = self.make_and_validate_key(key, version=version)
        return self._cache.get(key)

    @override
    def get(self, key: KeyT, default: Any = None, version: int | None = None) -> Any:
        """Fetch a value from the cache."""
        value = self._get(key, version=version)
        if value is CONNECTION_INTERRUPTED or value is NO_VALUE:
            return default
        return value

    @omit_exception
    @override
    def set(
        self,
        key: KeyT,
        value: Any,
        timeout: float | None = DEFAULT_TIMEOUT,
        version: int | None = None,
    ) -> None:
        """Set a value in the cache."""
        key = self.make_and_validate_key(key, version=version)
        self._cache.set(key, value, self.get_backend_timeout(timeout))

    @omit_exception(return_value=False)
    @override
    def touch(self, key: KeyT, timeout: float | None = DEFAULT_TIMEOUT, version: int | None = None) -> bool:
        """Update the timeout on a key."""
        key = self.make_and_validate_key(key, version=version)
        return self._cache.touch(key, self.get_backend_timeout(timeout))

    @omit_exception(return_value=False)
    @override
    def delete(self, key: KeyT, version: int | None = None) -> bool:
        """Remove a key from the cache."""
        key = self.make_and_validate_key(key, version=version)
        return self._cache.delete(key)

    @omit_exception(return_value={})
    @override
    def get_many(self, keys: list[KeyT], version: int | None = None) -> dict[KeyT, Any]:  # type: ignore[override]
        """Retrieve many keys."""
        key_map = {self.make_and_validate_key(key, version=version): key for key in keys}
        ret = self._cache.get_many(key_map.keys())
        return {key_map[k]: v for k, v in ret.items()}

    @omit_exception(return_value=[])
    @override
    def set_many(
        self,
        data: dict[KeyT, Any],
        timeout: float | None = DEFAULT_TIMEOUT,
        version: int | None = None,
    ) -> list[KeyT]:
        """Set multiple values. Returns the keys that failed (always empty)."""
        safe_data = {self.make_and_validate_key(key, version=version): value for key, value in data.items()}
        return self._cache.set_many(safe_data, self.get_backend_timeout(timeout))

    @omit_exception(return_value=0)
    @override
    def delete_many(self, keys: list[KeyT], version: int | None = None) -> int:  # type: ignore[override]
        """Remove multiple keys."""
        return self._cache.delete_many([self.make_and_validate_key(key, version=version) for key in keys])

    @omit_exception(return_value=False)
    @override
    def has_key(self, key: KeyT, version: int | None = None) -> bool:
        """Check if a key exists."""
        key = self.make_and_validate_key(key, version=version)
        return self._cache.has_key(key)

    @omit_exception(return_value=0)
    @override
    def incr(self, key: KeyT, delta: int = 1, version: int | None = None) -> int:
        """Increment an existing value. Raises ValueError if the key is missing."""
        key = self.make_and_validate_key(key, version=version)
        return self._cache.incr(key, delta)

    @omit_exception(return_value=False)
    @override
    def clear(self) -> bool:
        """Flush the whole cache (every shard for cluster backends)."""
        return self._cache.clean()

    @override
    def close(self, **kwargs: Any) -> None:
        """Close the connection if ``close_connection`` is set.

        Does nothing for a backend that never connected.
        """
        if "_cache" in self.__dict__:
            self._cache.close(**kwargs)

    @omit_exception
    def ttl(self, key: KeyT, version: int | None = None) -> int | None:
        """Get TTL in seconds. Returns None if no expiry, -2 if key doesn't exist."""
        key = self.make_and_validate_key(key, version=version)
        return self._cache.ttl(key)

    # =========================================================================
    # Cache-handler operations
    # =========================================================================

    @omit_exception(return_value=False)
    def save(self, key: KeyT, value: Any, ttl: int = 60, version: int | None = None) -> bool:
        """Store a value for ``ttl`` seconds; ``ttl=0`` stores it permanently."""
        key = self.make_and_validate_key(key, version=version)
        return self._cache.save(key, value, ttl)

    @omit_exception(return_value=0)
    def delete_matching(self, pattern: str, version: int | None = None, itersize: int | None = None) -> int:
        """Delete all keys matching a glob pattern. Returns the number deleted."""
        return self._cache.delete_matching(self.make_pattern(pattern, version=version), itersize)

    @omit_exception(return_value=False)
    def clean(self) -> bool:
        """Remove every key on every node."""
        return self._cache.clean()

    @omit_exception
    def increment(self, key: KeyT, offset: int = 1, version: int | None = None) -> int:
        """Add ``offset`` to a plain counter, creating it at 0 if missing."""
        key = self.make_and_validate_key(key, version=version)
        return self._cache.increment(key, offset)

    @omit_exception
    def decrement(self, key: KeyT, offset: int = 1, version: int | None = None) -> int:
        """Subtract ``offset`` from a plain counter, creating it at 0 if missing."""
        key = self.make_and_validate_key(key, version=version)
        return self._cache.decrement(key, offset)

    @omit_exception
    def get_metadata(self, key: KeyT, version: int | None = None) -> CacheMetadata | None:
        """Return ``{"expire", "mtime", "data"}`` for a key, or None if absent."""
        key = self.make_and_validate_key(key, version=version)
        return self._cache.get_metadata(key)

    @omit_exception(return_value={})
    def get_cache_info(self) -> dict[str, Any]:
        """Return server INFO, merged across nodes for cluster backends."""
        return self._cache.info()

    def is_supported(self) -> bool:
        """Whether the client library this backend needs is installed."""
        return self._class._connection_class.is_supported()  # type: ignore[attr-defined]


class RedisCache(KeyValueCache):
    """Django cache backend for a single Redis server."""

    _class = RedisCacheClient


class ValkeyCache(KeyValueCache):
    """Django cache backend for a single Valkey server."""

    _class = ValkeyCacheClient


__all__ = [
    "KeyValueCache",
    "RedisCache",
    "ValkeyCache",
]
