from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

from django_shardcache.exceptions import _main_exceptions

logger = logging.getLogger(__name__)


def omit_exception(
    method: Callable | None = None,
    return_value: Any | None = None,
) -> Callable:
    """Decorator that intercepts connection errors and ignores them if configured.

    When applied to a cache method, this decorator catches connection and
    timeout errors from the underlying library (redis-py or valkey-py) and
    either ignores them (returning return_value) or re-raises them unchanged,
    depending on the cache's _ignore_exceptions setting. Ignoring is opt-in;
    by default every driver error reaches the caller.

    Args:
        method: The method to wrap (when used without parentheses)
        return_value: Value to return when exception is ignored (default: None)

    Usage:
        @omit_exception
        def set(self, key, value): ...

        @omit_exception(return_value={})
        def get_many(self, keys): ...
    """
    if method is None:
        return functools.partial(omit_exception, return_value=return_value)

    @functools.wraps(method)
    def _decorator(self: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return method(self, *args, **kwargs)
        except _main_exceptions:
            if not self._ignore_exceptions:
                raise
            if self._log_ignored_exceptions:
                logger.exception("Exception ignored")
            return return_value

    return _decorator
