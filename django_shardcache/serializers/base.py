from typing import Any


class BaseSerializer:
    """Base class for cache value serializers.

    A serializer turns an application value into the bytes stored under a
    key, and back. Plain integers never reach a serializer: the connection
    stores them as raw decimal strings so ``INCRBY``/``DECRBY`` can operate
    on them and a later ``get`` still returns an ``int``.

    Subclasses accept ``**kwargs`` for configuration (e.g. ``protocol`` for
    pickle); ``create_serializer()`` in ``django_shardcache.compat`` passes
    them through.

    ``loads`` must raise ``SerializerError`` on data it cannot decode so
    that fallback to the next configured serializer works.
    """

    def __init__(self, **kwargs: Any) -> None:
        pass

    def dumps(self, obj: Any) -> bytes:
        raise NotImplementedError

    def loads(self, data: bytes) -> Any:
        raise NotImplementedError
