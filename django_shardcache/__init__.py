VERSION = (1, 0, 0)
__version__ = ".".join(map(str, VERSION))


def get_connection(alias="default"):
    """Helper used for obtaining the open connection of a cache backend.

    Lets other subsystems (sessions, custom code) reuse the cache's
    connection instead of opening a second one.
    """
    from django.core.cache import caches

    cache = caches[alias]

    error_message = "This backend does not support this feature"
    if not hasattr(cache, "connection"):
        raise NotImplementedError(error_message)

    return cache.connection
