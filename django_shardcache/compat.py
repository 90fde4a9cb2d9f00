"""Utilities for serializer instantiation and pattern building."""

from __future__ import annotations

import re
from typing import Any

from django.utils.module_loading import import_string

DEFAULT_SERIALIZER = "django_shardcache.serializers.pickle.PickleSerializer"

# Regex for escaping glob special characters
_special_re = re.compile("([*?[])")


def glob_escape(s: str) -> str:
    """Escape glob special characters in a string."""
    return _special_re.sub(r"[\1]", s)


def is_serializer_instance(obj: Any) -> bool:
    """Check if an object is a serializer instance (has dumps/loads methods)."""
    if isinstance(obj, type):
        return False
    return hasattr(obj, "dumps") and hasattr(obj, "loads") and callable(obj.dumps) and callable(obj.loads)


def create_serializer(config: str | type | Any | None, **kwargs: Any) -> Any:
    """Create a serializer instance from config.

    Args:
        config: A dotted path string, a class, an instance, or None for default pickle
        **kwargs: Keyword arguments to pass to serializer constructor
    """
    if config is None:
        config = DEFAULT_SERIALIZER

    # Already an instance
    if is_serializer_instance(config):
        return config

    # A class (not a string path)
    if isinstance(config, type):
        return config(**kwargs)

    cls = import_string(config)
    return cls(**kwargs)


def resolve_class(config: str | type | None) -> type | None:
    """Resolve a class given either the class itself or its dotted path."""
    if isinstance(config, str):
        return import_string(config)
    return config
