"""Cluster cache backends for Redis-compatible backends."""

from __future__ import annotations

from django_shardcache.cache.default import KeyValueCache
from django_shardcache.client.cluster import (
    KeyValueClusterCacheClient,
    RedisClusterCacheClient,
    ValkeyClusterCacheClient,
)


class KeyValueClusterCache(KeyValueCache):
    """Cluster cache backend base class.

    Subclasses set the `_class` class attribute to their specific cluster
    cache client.
    """

    _class = KeyValueClusterCacheClient


class RedisClusterCache(KeyValueClusterCache):
    """Django cache backend for Redis Cluster mode.

    Keys are sharded across the cluster's master nodes by hash slot.
    ``LOCATION`` lists one or more seed hosts; the rest of the topology is
    discovered from them.
    """

    _class = RedisClusterCacheClient


class ValkeyClusterCache(KeyValueClusterCache):
    """Django cache backend for Valkey Cluster mode.

    Keys are sharded across the cluster's master nodes by hash slot.
    """

    _class = ValkeyClusterCacheClient


__all__ = [
    "KeyValueClusterCache",
    "RedisClusterCache",
    "ValkeyClusterCache",
]
