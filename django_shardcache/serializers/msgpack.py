from typing import Any

import msgpack

from django_shardcache.exceptions import SerializerError
from django_shardcache.serializers.base import BaseSerializer


class MessagePackSerializer(BaseSerializer):
    """MessagePack-based serializer for compact binary values.

    Supports None, bool, int, float, str, bytes, list and dict. Anything
    else (datetimes, custom objects) needs pickle or a custom serializer.
    """

    def dumps(self, obj: Any) -> bytes:
        return msgpack.dumps(obj)

    def loads(self, data: bytes) -> Any:
        try:
            return msgpack.loads(data, raw=False)
        except Exception as e:
            raise SerializerError from e
