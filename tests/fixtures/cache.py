"""Cache fixtures and configuration builders."""

from collections.abc import Iterator

import pytest
from django.utils.module_loading import import_string

from django_shardcache.cache import KeyValueCache

# Available serializers (None means default pickle)
SERIALIZERS = {
    None: None,
    "json": "django_shardcache.serializers.json.JSONSerializer",
    "msgpack": "django_shardcache.serializers.msgpack.MessagePackSerializer",
}

# Backends keyed by (backend_type, client_library)
BACKENDS = {
    ("default", "redis"): "django_shardcache.cache.RedisCache",
    ("cluster", "redis"): "django_shardcache.cache.RedisClusterCache",
    ("default", "valkey"): "django_shardcache.cache.ValkeyCache",
    ("cluster", "valkey"): "django_shardcache.cache.ValkeyClusterCache",
}

# In-memory driver per backend type, and the option that injects it
FAKES = {
    "default": ("client_class", "tests.fakes.FakeServer"),
    "cluster": ("cluster_class", "tests.fakes.FakeCluster"),
}


@pytest.fixture(params=[None, "json", "msgpack"])  # None is default pickle
def serializers(request) -> str | None:
    """Parametrized serializer fixture. Request this to test all serializers."""
    return request.param


@pytest.fixture(params=["default", "cluster"])
def client_class(request) -> str:
    """Parametrized backend type fixture."""
    return request.param


def build_cache_config(
    *,
    backend: str = "cluster",
    serializer: str | None = None,
    client_library: str = "redis",
    location: str = "127.0.0.1:7000,127.0.0.1:7001",
    options: dict | None = None,
    fake: bool = True,
    **params,
) -> dict:
    """Build one CACHES entry.

    By default the entry is served by the in-memory fakes from
    ``tests.fakes``.

    Args:
        backend: "default" (single node) or "cluster"
        serializer: Serializer name (None, "json", "msgpack")
        client_library: "redis" or "valkey"
        location: LOCATION value
        options: Extra OPTIONS entries, applied last
        fake: Inject the in-memory driver; False for a live server
        **params: Extra top-level entries (KEY_PREFIX, TIMEOUT, ...)

    """
    config_options = {}
    if fake:
        option_name, driver = FAKES[backend]
        config_options[option_name] = driver
    if serializer:
        config_options["serializer"] = SERIALIZERS[serializer]
    config_options.update(options or {})
    return {
        "BACKEND": BACKENDS[(backend, client_library)],
        "LOCATION": location,
        "OPTIONS": config_options,
        **params,
    }


def create_cache(config: dict) -> KeyValueCache:
    """Instantiate a backend from a CACHES entry, outside Django's handler."""
    backend_cls = import_string(config["BACKEND"])
    params = {key: value for key, value in config.items() if key not in {"BACKEND", "LOCATION"}}
    return backend_cls(config["LOCATION"], params)


@pytest.fixture
def cache(request) -> Iterator[KeyValueCache]:
    """A backend over the fakes, parametrized by whichever fixtures the test opts into."""
    backend = request.getfixturevalue("client_class") if "client_class" in request.fixturenames else "cluster"
    serializer = request.getfixturevalue("serializers") if "serializers" in request.fixturenames else None

    cache = create_cache(build_cache_config(backend=backend, serializer=serializer))
    yield cache
    cache.clear()
