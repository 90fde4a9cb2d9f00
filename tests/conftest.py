"""Pytest configuration for django-shardcache tests."""

import sys
from pathlib import Path

import pytest
from django.core.cache import caches

from tests.fixtures import cache, client_class, cluster_container, serializers

# Re-export fixtures so pytest can discover them
__all__ = [
    "cache",
    "client_class",
    "cluster_container",
    "reset_configured_caches",
    "serializers",
]


def pytest_configure(config):
    """Add tests directory to Python path."""
    sys.path.insert(0, str(Path(__file__).absolute().parent))


@pytest.fixture(autouse=True)
def reset_configured_caches():
    """Flush the caches from settings.CACHES after each test.

    Only backends a test actually touched are flushed, so nothing connects
    that wasn't connected already.
    """
    yield
    for backend in caches.all(initialized_only=True):
        if "_cache" in backend.__dict__:
            backend.clear()
