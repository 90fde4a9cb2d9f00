"""Base Django settings for tests."""

SECRET_KEY = "django_tests_secret_key"

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
]

# Database configuration for tests
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    },
}

USE_TZ = False

# Every cache runs against the in-memory fakes from tests.fakes; the
# integration tests build their own backends against a live cluster.
CACHES = {
    "default": {
        "BACKEND": "django_shardcache.cache.RedisClusterCache",
        "LOCATION": "127.0.0.1:7000,127.0.0.1:7001,127.0.0.1:7002",
        "OPTIONS": {"cluster_class": "tests.fakes.FakeCluster"},
    },
    "with_prefix": {
        "BACKEND": "django_shardcache.cache.RedisClusterCache",
        "LOCATION": "127.0.0.1:7000",
        "OPTIONS": {"cluster_class": "tests.fakes.FakeCluster", "prefix": "site1:"},
        "KEY_PREFIX": "test-prefix",
    },
    "single": {
        "BACKEND": "django_shardcache.cache.RedisCache",
        "LOCATION": "127.0.0.1:6379",
        "OPTIONS": {"client_class": "tests.fakes.FakeServer", "database": 1},
    },
    "sessions": {
        "BACKEND": "django_shardcache.cache.RedisClusterCache",
        "LOCATION": "127.0.0.1:7000",
        "OPTIONS": {"cluster_class": "tests.fakes.FakeCluster"},
    },
}

SESSION_ENGINE = "django_shardcache.session"
SESSION_CACHE_ALIAS = "sessions"
