"""Single-node cache clients for Redis-compatible backends.

The standalone counterpart of ``client.cluster``: the same cache-handler
contract, served by one server. It shares the single-key operations with
the cluster client through ``KeyValueOperationsMixin`` but not its class
hierarchy; the backend selects one or the other from configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from django_shardcache.client.mixins import KeyValueOperationsMixin
from django_shardcache.connection import NodeConnection, RedisNodeConnection, ValkeyNodeConnection

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from django_shardcache.types import KeyT


class KeyValueCacheClient(KeyValueOperationsMixin):
    """Single-node cache client base class.

    Subclasses must set:
    - _connection_class: The library-specific NodeConnection
    """

    _connection_class: type[NodeConnection] = NodeConnection
    _connection_options = frozenset({"serializer", "scan_retries", "client_class"})

    def clean(self) -> bool:
        """Flush the configured database only."""
        return bool(self.get_client().flushdb())

    def get_many(self, keys: Iterable[KeyT]) -> dict[KeyT, Any]:
        keys = list(keys)
        if not keys:
            return {}

        results = cast("list[bytes | None]", self.get_client().mget([self._connection.make_key(key) for key in keys]))
        return {
            key: self._connection.decode(value) for key, value in zip(keys, results, strict=True) if value is not None
        }

    def set_many(self, data: Mapping[KeyT, Any], timeout: int | None) -> list[KeyT]:
        if not data:
            return []

        pipe = self.get_client().pipeline()
        for key, value in data.items():
            nkey = self._connection.make_key(key)
            if timeout == 0:
                pipe.delete(nkey)
            else:
                pipe.set(nkey, self._connection.encode(value), ex=timeout)
        pipe.execute()
        return []

    def delete_many(self, keys: Sequence[KeyT]) -> int:
        if not keys:
            return 0
        return cast("int", self.get_client().delete(*(self._connection.make_key(key) for key in keys)))


# =============================================================================
# Concrete Implementations
# =============================================================================

# The connection classes raise ImportError on use when their library is missing


class RedisCacheClient(KeyValueCacheClient):
    """Single-node cache client using redis-py."""

    _connection_class = RedisNodeConnection


class ValkeyCacheClient(KeyValueCacheClient):
    """Single-node cache client using valkey-py."""

    _connection_class = ValkeyNodeConnection


__all__ = [
    "KeyValueCacheClient",
    "RedisCacheClient",
    "ValkeyCacheClient",
]
