import pickle
from typing import Any

from django_shardcache.exceptions import SerializerError
from django_shardcache.serializers.base import BaseSerializer


class PickleSerializer(BaseSerializer):
    """Pickle-based serializer, the default.

    Round-trips any picklable Python object. Only use it with a cache that
    untrusted parties cannot write to.

    Attributes:
        protocol: Pickle protocol version. Defaults to the highest available.
    """

    protocol: int = pickle.HIGHEST_PROTOCOL

    def __init__(self, *, protocol: int | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if protocol is not None:
            self.protocol = protocol

    def dumps(self, obj: Any) -> bytes:
        return pickle.dumps(obj, self.protocol)

    def loads(self, data: bytes) -> Any:
        try:
            return pickle.loads(data)  # noqa: S301
        except (pickle.UnpicklingError, EOFError, ValueError, TypeError) as e:
            raise SerializerError from e
