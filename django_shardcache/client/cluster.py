"""Cluster cache clients for Redis-compatible backends.

This module provides the cache client for sharded multi-master clusters.
Single-key commands are routed to the owning shard by the driver; commands
that need the whole keyspace (pattern deletion, flushing, INFO) are fanned
out to every master node explicitly.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Any, cast

from django_shardcache.client.mixins import KeyValueOperationsMixin
from django_shardcache.client.scan import flush_primaries
from django_shardcache.connection import ClusterConnection

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from django_shardcache.types import KeyT


class KeyValueClusterCacheClient(KeyValueOperationsMixin):
    """Cluster cache client base class.

    Implements the cache-handler contract (get/save/delete/delete_matching/
    clean/increment/decrement/get_metadata/info) plus the operations behind
    Django's ``BaseCache`` API, on top of one ``ClusterConnection``. The
    single-key operations come from ``KeyValueOperationsMixin``; multi-key
    commands here split their keys by hash slot.

    Subclasses must set:
    - _connection_class: The library-specific ClusterConnection
    - _key_slot_func: The library's key -> hash slot function
    """

    _connection_class: type[ClusterConnection] = ClusterConnection
    _connection_options = frozenset({"serializer", "scan_retries", "cluster_class", "replica_reads"})
    _key_slot_func: Any = None

    def _group_keys_by_slot(self, keys: Iterable[KeyT]) -> dict[int, list[KeyT]]:
        """Group keys by their cluster slot."""
        slots: dict[int, list[KeyT]] = defaultdict(list)
        for key in keys:
            key_bytes = key.encode() if isinstance(key, str) else key
            slots[self._key_slot_func(key_bytes)].append(key)
        return dict(slots)

    def clean(self) -> bool:
        """Flush all master nodes in the cluster."""
        return flush_primaries(self._connection)

    def get_many(self, keys: Iterable[KeyT]) -> dict[KeyT, Any]:
        """Retrieve many keys, handling cross-slot keys."""
        keys = list(keys)
        if not keys:
            return {}

        # mget_nonatomic handles slot splitting
        results = cast(
            "list[bytes | None]",
            self.get_client().mget_nonatomic([self._connection.make_key(key) for key in keys]),
        )

        recovered_data = {}
        for key, value in zip(keys, results, strict=True):
            if value is not None:
                recovered_data[key] = self._connection.decode(value)
        return recovered_data

    def set_many(self, data: Mapping[KeyT, Any], timeout: int | None) -> list[KeyT]:
        """Set multiple values, handling cross-slot keys."""
        if not data:
            return []

        client = self.get_client()
        prepared_data = {self._connection.make_key(k): self._connection.encode(v) for k, v in data.items()}

        if timeout == 0:
            for slot_keys in self._group_keys_by_slot(prepared_data.keys()).values():
                client.delete(*slot_keys)
            return []

        client.mset_nonatomic(prepared_data)
        if timeout is not None:
            pipe = client.pipeline()
            for key in prepared_data:
                pipe.expire(key, timeout)
            pipe.execute()
        return []

    def delete_many(self, keys: Sequence[KeyT]) -> int:
        """Remove multiple keys, grouping by slot."""
        if not keys:
            return 0

        client = self.get_client()
        slots = self._group_keys_by_slot(self._connection.make_key(key) for key in keys)

        total_deleted = 0
        for slot_keys in slots.values():
            total_deleted += cast("int", client.delete(*slot_keys))
        return total_deleted


# =============================================================================
# Concrete Implementations
# =============================================================================

try:
    from redis.cluster import key_slot as redis_key_slot

    from django_shardcache.connection import RedisClusterConnection

    class RedisClusterCacheClient(KeyValueClusterCacheClient):
        """Redis Cluster cache client using redis-py."""

        _connection_class = RedisClusterConnection
        _key_slot_func = staticmethod(redis_key_slot)

except ImportError:

    class RedisClusterCacheClient(KeyValueClusterCacheClient):  # type: ignore[no-redef]
        """Redis Cluster cache client (requires redis-py to be installed)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            raise ImportError(
                "RedisClusterCacheClient requires redis-py to be installed. Install it with: pip install redis",
            )


try:
    from valkey.cluster import key_slot as valkey_key_slot

    from django_shardcache.connection import ValkeyClusterConnection

    class ValkeyClusterCacheClient(KeyValueClusterCacheClient):
        """Valkey Cluster cache client using valkey-py."""

        _connection_class = ValkeyClusterConnection
        _key_slot_func = staticmethod(valkey_key_slot)

except ImportError:

    class ValkeyClusterCacheClient(KeyValueClusterCacheClient):  # type: ignore[no-redef]
        """Valkey Cluster cache client (requires valkey-py with cluster support)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            raise ImportError(
                "ValkeyClusterCacheClient requires valkey-py with cluster support. Install it with: pip install valkey",
            )


__all__ = [
    "KeyValueClusterCacheClient",
    "RedisClusterCacheClient",
    "ValkeyClusterCacheClient",
]
