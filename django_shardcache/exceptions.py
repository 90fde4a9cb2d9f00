# Derived from django-redis (https://github.com/jazzband/django-redis)
# Copyright (c) 2011-2016 Andrey Antukh <niwi@niwi.nz>
# Copyright (c) 2011 Sean Bleier
# Licensed under BSD-3-Clause
#
# django-redis was used as inspiration for this project.

"""Exceptions for django-shardcache.

This module defines exceptions that may be raised while configuring the
cluster connection or running cache operations. Errors coming from the
driver itself (redis-py / valkey-py) are never wrapped; they propagate
to the caller as raised.
"""

import socket

from django.core.exceptions import ImproperlyConfigured

# Build exception tuples from available libraries (redis-py / valkey-py).
# These are used by omit_exception to decide what may be ignored.
_exception_list: list[type[Exception]] = [socket.timeout]

try:
    from redis.exceptions import ConnectionError as RedisConnectionError
    from redis.exceptions import RedisClusterException
    from redis.exceptions import TimeoutError as RedisTimeoutError

    _exception_list.extend([RedisConnectionError, RedisTimeoutError, RedisClusterException])
except ImportError:
    pass

try:
    from valkey.exceptions import ConnectionError as ValkeyConnectionError
    from valkey.exceptions import TimeoutError as ValkeyTimeoutError

    _exception_list.extend([ValkeyConnectionError, ValkeyTimeoutError])
except ImportError:
    pass

_main_exceptions = tuple(_exception_list)


class ConfigurationError(ImproperlyConfigured):
    """Raised when the cache configuration cannot produce a connection.

    This is fatal at setup time: the backend refuses to initialize rather
    than guess. Typical causes:
    - ``LOCATION`` is empty or only contains separators
    - ``OPTIONS["tls"]`` is neither a bool nor an option string
    """


class SerializerError(Exception):
    """Raised when serialization or deserialization fails.

    When several serializers are configured, this error triggers fallback
    to the next serializer in the list, which allows migrating a cache from
    one format to another without flushing it.
    """

