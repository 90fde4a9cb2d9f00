# Cache clients (do actual Redis/Valkey operations) - internal use
from django_shardcache.client.cluster import (
    KeyValueClusterCacheClient,
    RedisClusterCacheClient,
    ValkeyClusterCacheClient,
)
from django_shardcache.client.default import (
    KeyValueCacheClient,
    RedisCacheClient,
    ValkeyCacheClient,
)
from django_shardcache.client.mixins import KeyValueOperationsMixin

__all__ = [
    # Operations shared by both topologies
    "KeyValueOperationsMixin",
    # Single-node cache clients
    "KeyValueCacheClient",
    "RedisCacheClient",
    "ValkeyCacheClient",
    # Cluster cache clients
    "KeyValueClusterCacheClient",
    "RedisClusterCacheClient",
    "ValkeyClusterCacheClient",
]
