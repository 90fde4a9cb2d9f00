import json
from typing import Any

from django.core.serializers.json import DjangoJSONEncoder

from django_shardcache.exceptions import SerializerError
from django_shardcache.serializers.base import BaseSerializer


class JSONSerializer(BaseSerializer):
    """JSON-based serializer using Django's DjangoJSONEncoder.

    Human-readable and interoperable with non-Python readers of the cluster,
    but limited to JSON-compatible types. DjangoJSONEncoder adds encoding
    (not decoding) of datetimes, Decimal and UUID.

    Example:
        Configure in Django settings::

            CACHES = {
                "default": {
                    "BACKEND": "django_shardcache.cache.RedisClusterCache",
                    "LOCATION": "10.0.0.1,10.0.0.2,10.0.0.3",
                    "OPTIONS": {
                        "serializer": "django_shardcache.serializers.json.JSONSerializer",
                    }
                }
            }
    """

    encoder_class = DjangoJSONEncoder

    def dumps(self, obj: Any) -> bytes:
        return json.dumps(obj, cls=self.encoder_class).encode()

    def loads(self, data: bytes) -> Any:
        try:
            return json.loads(data.decode())
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SerializerError from e
