"""Type aliases and protocols for django-shardcache.

Compatible with redis-py and valkey-py type systems, defined locally
to avoid a runtime dependency on either library for type annotations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final, Protocol, TypedDict, final, runtime_checkable

if TYPE_CHECKING:
    from django_shardcache.connection import KeyValueConnection

# Key types - matches redis.typing.KeyT and valkey.typing.KeyT
type KeyT = bytes | str | memoryview

# Per-node INFO mapping as parsed by the driver
type NodeInfo = dict[str, Any]


@final
class _NoValueType:
    """Type of the ``NO_VALUE`` sentinel."""

    _instance: _NoValueType | None = None

    def __new__(cls) -> _NoValueType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_VALUE"

    def __reduce__(self) -> str:
        return "NO_VALUE"


# Returned by the client layer for absent or expired keys. Compare by
# identity: it never equals a stored value, falsy ones included.
NO_VALUE: Final = _NoValueType()


class CacheMetadata(TypedDict):
    """Metadata returned by ``get_metadata()``."""

    expire: int | None
    mtime: int
    data: Any


@runtime_checkable
class CacheHandler(Protocol):
    """Capability interface shared by the single-node and cluster clients.

    The backend picks one implementation from configuration; neither
    implementation derives from the other.
    """

    @property
    def connection(self) -> KeyValueConnection: ...

    def get(self, key: KeyT) -> Any: ...

    def save(self, key: KeyT, value: Any, ttl: int = 60) -> bool: ...

    def delete(self, key: KeyT) -> bool: ...

    def delete_matching(self, pattern: str, itersize: int | None = None) -> int: ...

    def clean(self) -> bool: ...

    def get_metadata(self, key: KeyT) -> CacheMetadata | None: ...

    def increment(self, key: KeyT, offset: int = 1) -> int: ...

    def decrement(self, key: KeyT, offset: int = 1) -> int: ...

    def info(self) -> dict[str, Any]: ...

    def is_supported(self) -> bool: ...
