"""Live connections to Redis-compatible servers.

A connection owns the driver client and everything that decides how bytes
reach the server:

- the value codec (serializer fallback chain, raw integers for counters)
- the key prefix, applied explicitly through ``make_key``
- the retry policy wrapped around each per-node SCAN round-trip

Architecture (mirrors the client layer):
- KeyValueConnection: library-agnostic base (codec, prefix, scan retry)
- ClusterConnection: sharded multi-master cluster via RedisCluster/ValkeyCluster
- NodeConnection: one standalone server via Redis/Valkey
- Redis*/Valkey* subclasses set the library class attributes

One connection is built per cache client and handed to every component
that needs the server; none of them keeps it beyond a call.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, override

from django_shardcache.compat import create_serializer, glob_escape, resolve_class
from django_shardcache.exceptions import SerializerError

if TYPE_CHECKING:
    from django_shardcache.config import ClusterConfig
    from django_shardcache.types import KeyT

logger = logging.getLogger(__name__)

DEFAULT_SCAN_RETRIES = 3


class KeyValueConnection:
    """Base connection class with configurable library.

    Subclasses must set:
    - _lib: The library module (e.g., redis or valkey)
    - _retry_class: The library's Retry class
    - _backoff_class: The library's backoff class used between retries
    """

    _lib: Any = None
    _retry_class: type | None = None
    _backoff_class: type | None = None

    def __init__(
        self,
        config: ClusterConfig,
        *,
        serializer: str | list | type | Any | None = None,
        scan_retries: int = DEFAULT_SCAN_RETRIES,
    ) -> None:
        self._config = config
        self._client: Any | None = None
        self._serializers = self._create_serializers(serializer)
        self._scan_retry = self._create_scan_retry(scan_retries)

    @classmethod
    def is_supported(cls) -> bool:
        """Whether the client library behind this connection is installed."""
        return cls._lib is not None

    @property
    def config(self) -> ClusterConfig:
        return self._config

    @property
    def prefix(self) -> str:
        return self._config.prefix

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> Any:
        """The driver client, connecting on first use."""
        return self.connect()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def connect(self) -> Any:
        """Open the driver client once and return it.

        Connection errors propagate to the caller unchanged; nothing is
        retried here.
        """
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self) -> Any:
        raise NotImplementedError

    def close(self) -> None:
        """Close the driver client. Safe to call when nothing was opened."""
        if self._client is None:
            return
        client, self._client = self._client, None
        client.close()
        logger.debug("Closed %s", type(self).__name__)

    def primaries(self) -> list[tuple[str, Any]]:
        """Return ``(node_name, node_client)`` for every master node."""
        raise NotImplementedError

    # =========================================================================
    # Keys
    # =========================================================================

    def make_key(self, key: KeyT) -> KeyT:
        """Apply the configured prefix to a single key."""
        prefix = self._config.prefix
        if not prefix:
            return key
        if isinstance(key, str):
            return prefix + key
        return prefix.encode() + bytes(key)

    def make_pattern(self, pattern: str) -> str:
        """Apply the configured prefix to a SCAN pattern.

        SCAN has no notion of the prefix, so patterns are prefixed here the
        same way single keys are. Glob characters in the prefix match
        themselves.
        """
        return glob_escape(self._config.prefix) + pattern

    # =========================================================================
    # Scanning
    # =========================================================================

    def _create_scan_retry(self, retries: int) -> Any:
        if self._retry_class is None or self._backoff_class is None:
            return None
        return self._retry_class(self._backoff_class(), retries)

    def scan_node(self, node_client: Any, cursor: int, match: str, count: int) -> tuple[int, list[bytes]]:
        """Run one SCAN round-trip against a single node.

        Connection and timeout errors are retried with backoff by the
        library's Retry helper; anything else propagates.
        """

        def _scan() -> tuple[int, list[bytes]]:
            return node_client.scan(cursor=cursor, match=match, count=count)

        if self._scan_retry is None:
            return _scan()
        return self._scan_retry.call_with_retry(_scan, self._on_scan_error)

    @staticmethod
    def _on_scan_error(error: Exception) -> None:
        logger.debug("SCAN interrupted, retrying: %s", error)

    # =========================================================================
    # Encoding/Decoding
    # =========================================================================

    def _create_serializers(self, config: str | list | type | Any | None) -> list:
        """Create serializer instance(s) from config."""
        if isinstance(config, list):
            return [create_serializer(item) for item in config]
        return [create_serializer(config)]

    def _deserialize(self, value: bytes) -> Any:
        """Deserialize with fallback support for multiple serializers."""
        last_error: SerializerError | None = None
        for serializer in self._serializers:
            try:
                return serializer.loads(value)
            except SerializerError as e:
                last_error = e

        if last_error is not None:
            raise last_error
        raise SerializerError("No serializers configured")

    def encode(self, value: Any) -> bytes | int:
        """Encode a value for storage.

        Plain ints are stored as-is so the server can INCRBY them. Everything
        else goes through the first serializer, including bools and other int
        subclasses such as IntEnum, whose wire form would not read back.
        """
        if type(value) is int:
            return value
        return self._serializers[0].dumps(value)

    def decode(self, value: bytes | int) -> Any:
        """Decode a value read from the server."""
        try:
            return int(value)
        except (ValueError, TypeError):
            return self._deserialize(value)  # type: ignore[arg-type]


# =============================================================================
# Cluster
# =============================================================================


class ClusterConnection(KeyValueConnection):
    """Connection to a sharded multi-master cluster.

    The driver discovers the full topology from any reachable seed host and
    routes single-key commands to the owning shard. Reads are spread over
    replicas unless ``replica_reads`` is disabled.
    """

    _cluster_class: type | None = None
    _node_class: type | None = None
    # LoadBalancingStrategy enum when the library has one
    _load_balancing: Any = None

    @override
    def __init__(
        self,
        config: ClusterConfig,
        *,
        cluster_class: str | type | None = None,
        replica_reads: bool = True,
        **options: Any,
    ) -> None:
        super().__init__(config, **options)
        self._cluster_class = resolve_class(cluster_class) or self.__class__._cluster_class
        self._replica_reads = replica_reads

    def _replica_kwargs(self) -> dict[str, Any]:
        if not self._replica_reads:
            return {}
        if self._load_balancing is not None:
            return {"load_balancing_strategy": self._load_balancing.ROUND_ROBIN}
        return {"read_from_replicas": True}

    @override
    def _create_client(self) -> Any:
        assert self._cluster_class is not None, "Subclasses must set _cluster_class"  # noqa: S101
        assert self._node_class is not None, "Subclasses must set _node_class"  # noqa: S101

        startup_nodes = [self._node_class(host, port) for host, port in self._config.startup_nodes()]
        kwargs = self._config.connection_kwargs()
        kwargs.update(self._replica_kwargs())

        logger.debug(
            "Connecting to cluster via %d seed host(s), tls=%s",
            len(startup_nodes),
            bool(kwargs.get("ssl")),
        )
        return self._cluster_class(startup_nodes=startup_nodes, **kwargs)

    @override
    def primaries(self) -> list[tuple[str, Any]]:
        client = self.client
        return [(node.name, client.get_redis_connection(node)) for node in client.get_primaries()]


# =============================================================================
# Single node
# =============================================================================


class NodeConnection(KeyValueConnection):
    """Connection to one standalone server (the first configured host)."""

    _client_class: type | None = None

    @override
    def __init__(self, config: ClusterConfig, *, client_class: str | type | None = None, **options: Any) -> None:
        super().__init__(config, **options)
        self._client_class = resolve_class(client_class) or self.__class__._client_class

    @property
    def node_name(self) -> str:
        host, port = self._config.startup_nodes()[0]
        return f"{host}:{port}"

    @override
    def _create_client(self) -> Any:
        assert self._client_class is not None, "Subclasses must set _client_class"  # noqa: S101

        host, port = self._config.startup_nodes()[0]
        kwargs = self._config.connection_kwargs()
        logger.debug("Connecting to %s:%s db=%s", host, port, self._config.database)
        return self._client_class(host=host, port=port, db=self._config.database, **kwargs)

    @override
    def primaries(self) -> list[tuple[str, Any]]:
        return [(self.node_name, self.client)]


# =============================================================================
# Concrete Implementations
# =============================================================================

try:
    import redis
    import redis.cluster
    from redis.backoff import ExponentialBackoff as RedisExponentialBackoff
    from redis.retry import Retry as RedisRetry

    class RedisClusterConnection(ClusterConnection):
        """Cluster connection using redis-py."""

        _lib = redis
        _retry_class = RedisRetry
        _backoff_class = RedisExponentialBackoff
        _cluster_class = redis.cluster.RedisCluster
        _node_class = redis.cluster.ClusterNode
        _load_balancing = getattr(redis.cluster, "LoadBalancingStrategy", None)

    class RedisNodeConnection(NodeConnection):
        """Single-node connection using redis-py."""

        _lib = redis
        _retry_class = RedisRetry
        _backoff_class = RedisExponentialBackoff
        _client_class = redis.Redis

except ImportError:

    class RedisClusterConnection(ClusterConnection):  # type: ignore[no-redef]
        """Redis cluster connection (requires redis-py to be installed)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            raise ImportError(
                "RedisClusterConnection requires redis-py to be installed. Install it with: pip install redis",
            )

    class RedisNodeConnection(NodeConnection):  # type: ignore[no-redef]
        """Redis connection (requires redis-py to be installed)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            raise ImportError(
                "RedisNodeConnection requires redis-py to be installed. Install it with: pip install redis",
            )


try:
    import valkey
    import valkey.cluster
    from valkey.backoff import ExponentialBackoff as ValkeyExponentialBackoff
    from valkey.retry import Retry as ValkeyRetry

    class ValkeyClusterConnection(ClusterConnection):
        """Cluster connection using valkey-py."""

        _lib = valkey
        _retry_class = ValkeyRetry
        _backoff_class = ValkeyExponentialBackoff
        _cluster_class = valkey.cluster.ValkeyCluster
        _node_class = valkey.cluster.ClusterNode
        _load_balancing = getattr(valkey.cluster, "LoadBalancingStrategy", None)

    class ValkeyNodeConnection(NodeConnection):
        """Single-node connection using valkey-py."""

        _lib = valkey
        _retry_class = ValkeyRetry
        _backoff_class = ValkeyExponentialBackoff
        _client_class = valkey.Valkey

except ImportError:

    class ValkeyClusterConnection(ClusterConnection):  # type: ignore[no-redef]
        """Valkey cluster connection (requires valkey-py with cluster support)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            raise ImportError(
                "ValkeyClusterConnection requires valkey-py with cluster support. Install it with: pip install valkey",
            )

    class ValkeyNodeConnection(NodeConnection):  # type: ignore[no-redef]
        """Valkey connection (requires valkey-py to be installed)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            raise ImportError(
                "ValkeyNodeConnection requires valkey-py to be installed. Install it with: pip install valkey",
            )


__all__ = [
    "ClusterConnection",
    "KeyValueConnection",
    "NodeConnection",
    "RedisClusterConnection",
    "RedisNodeConnection",
    "ValkeyClusterConnection",
    "ValkeyNodeConnection",
]
