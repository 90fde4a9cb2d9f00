"""Test fixtures for django-shardcache."""

from tests.fixtures.cache import cache, client_class, serializers
from tests.fixtures.containers import ClusterContainerInfo, cluster_container

__all__ = [
    "ClusterContainerInfo",
    "cache",
    "client_class",
    "cluster_container",
    "serializers",
]
