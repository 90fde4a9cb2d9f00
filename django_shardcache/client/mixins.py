"""Operations shared by the cluster and single-node cache clients.

Both clients talk to their server through a ``KeyValueConnection`` that
prefixes keys and encodes values, so every single-key command reads the
same on either topology. Only the multi-key commands and ``clean()`` depend
on the topology and stay in the clients themselves.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from django_shardcache.client.info import aggregate_info, collect_info
from django_shardcache.client.scan import DEFAULT_SCAN_COUNT, delete_matching
from django_shardcache.config import ClusterConfig
from django_shardcache.types import NO_VALUE, CacheMetadata

if TYPE_CHECKING:
    from django_shardcache.connection import KeyValueConnection
    from django_shardcache.types import KeyT


class KeyValueOperationsMixin:
    """Mixin implementing the single-key cache operations over one connection.

    Used as a base by a concrete client::

        class KeyValueCacheClient(KeyValueOperationsMixin):
            _connection_class = NodeConnection
            _connection_options = frozenset({"serializer", "client_class"})

    Subclasses must set:
    - _connection_class: The connection class to open
    - _connection_options: Option names handed to the connection rather
      than consumed by the client
    """

    _connection_class: type[KeyValueConnection]
    _connection_options: frozenset[str] = frozenset({"serializer", "scan_retries"})

    def __init__(self, servers: str | list[str], **options: Any) -> None:
        self._options = options
        self._config = ClusterConfig.from_options(servers, options)
        self._scan_count = int(options.get("scan_count") or DEFAULT_SCAN_COUNT)
        self._connection = self._connection_class(
            self._config,
            **{name: value for name, value in options.items() if name in self._connection_options},
        )
        # Connect once, up front; failures are fatal for initialization
        self._connection.connect()

    @property
    def connection(self) -> KeyValueConnection:
        """The shared connection, for collaborators that reuse it."""
        return self._connection

    def get_client(self) -> Any:
        """Get the driver client."""
        return self._connection.client

    # =========================================================================
    # Cache-handler contract
    # =========================================================================

    def get(self, key: KeyT) -> Any:
        """Fetch a value, or ``NO_VALUE`` when the key is absent or expired."""
        value = self.get_client().get(self._connection.make_key(key))
        if value is None:
            return NO_VALUE
        return self._connection.decode(value)

    def save(self, key: KeyT, value: Any, ttl: int = 60) -> bool:
        """Store a value. A ``ttl`` of 0 (or less) stores it permanently."""
        client = self.get_client()
        key = self._connection.make_key(key)
        nvalue = self._connection.encode(value)
        if ttl > 0:
            return bool(client.set(key, nvalue, ex=ttl))
        return bool(client.set(key, nvalue))

    def delete(self, key: KeyT) -> bool:
        """Remove a key. True iff it existed."""
        return bool(self.get_client().delete(self._connection.make_key(key)))

    def increment(self, key: KeyT, offset: int = 1) -> int:
        """Atomically add ``offset`` to the plain counter stored under ``key``.

        A missing key counts as 0, so the first increment returns ``offset``.
        """
        return int(self.get_client().incrby(self._connection.make_key(key), offset))

    def decrement(self, key: KeyT, offset: int = 1) -> int:
        """Atomically subtract ``offset`` from the counter stored under ``key``."""
        return int(self.get_client().decrby(self._connection.make_key(key), offset))

    def get_metadata(self, key: KeyT) -> CacheMetadata | None:
        """Return expiry, approximate mtime and value, or None if the key is absent.

        ``mtime`` is the time of this call, the server does not track
        modification times.
        """
        value = self.get(key)
        if value is NO_VALUE:
            return None
        now = int(time.time())
        ttl = self.get_client().ttl(self._connection.make_key(key))
        return {
            "expire": now + ttl if ttl > 0 else None,
            "mtime": now,
            "data": value,
        }

    def delete_matching(self, pattern: str, itersize: int | None = None) -> int:
        """Delete every key matching a glob pattern on every master."""
        return delete_matching(self._connection, pattern, itersize or self._scan_count)

    def info(self) -> dict[str, Any]:
        """Per-node INFO merged into one view (see ``client.info``)."""
        return aggregate_info(collect_info(self._connection), self._config.database)

    def is_supported(self) -> bool:
        return self._connection.is_supported()

    # =========================================================================
    # Django BaseCache operations
    # =========================================================================

    def add(self, key: KeyT, value: Any, timeout: int | None) -> bool:
        """Set a value only if the key doesn't exist."""
        client = self.get_client()
        key = self._connection.make_key(key)
        nvalue = self._connection.encode(value)

        if timeout == 0:
            if ret := bool(client.set(key, nvalue, nx=True)):
                client.delete(key)
            return ret
        return bool(client.set(key, nvalue, nx=True, ex=timeout))

    def set(self, key: KeyT, value: Any, timeout: int | None) -> None:
        """Set a value (Django semantics: ``timeout=0`` deletes, None persists)."""
        client = self.get_client()
        key = self._connection.make_key(key)

        if timeout == 0:
            client.delete(key)
        else:
            client.set(key, self._connection.encode(value), ex=timeout)

    def touch(self, key: KeyT, timeout: int | None) -> bool:
        """Update the timeout on a key."""
        client = self.get_client()
        key = self._connection.make_key(key)

        if timeout is None:
            return bool(client.persist(key))
        return bool(client.expire(key, timeout))

    def has_key(self, key: KeyT) -> bool:
        """Check if a key exists."""
        return bool(self.get_client().exists(self._connection.make_key(key)))

    def incr(self, key: KeyT, delta: int = 1) -> int:
        """Increment an existing value (Django semantics: missing keys raise)."""
        client = self.get_client()
        nkey = self._connection.make_key(key)

        if not client.exists(nkey):
            raise ValueError(f"Key {key!r} not found.")
        return int(client.incrby(nkey, delta))

    def ttl(self, key: KeyT) -> int | None:
        """Get TTL in seconds. Returns None if no expiry, -2 if key doesn't exist."""
        result = self.get_client().ttl(self._connection.make_key(key))
        if result == -1:
            return None
        return result

    def close(self, **kwargs: Any) -> None:
        """Close the connection if ``close_connection`` is set.

        Django calls ``close()`` at the end of every request; by default the
        connection stays open for the client's lifetime instead.
        """
        if self._options.get("close_connection", False):
            self._connection.close()
