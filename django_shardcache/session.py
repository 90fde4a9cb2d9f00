"""Session engine that stores sessions over the cache's open connection.

Set ``SESSION_ENGINE = "django_shardcache.session"``. Sessions live in the
same cluster as the cache, through the connection of the cache named by
``SESSION_CACHE_ALIAS``; no second connection is opened. Expiry is left to
the server's TTLs, so ``clear_expired()`` has nothing to do.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, override

from django.conf import settings
from django.contrib.sessions.backends.base import CreateError, SessionBase, UpdateError

from django_shardcache import get_connection
from django_shardcache.exceptions import SerializerError

if TYPE_CHECKING:
    from django_shardcache.connection import KeyValueConnection

logger = logging.getLogger(__name__)

KEY_PREFIX = "django_shardcache.session"

# Attempts at picking an unused session key before giving up
MAX_CREATE_ATTEMPTS = 10000


class SessionStore(SessionBase):
    """Session backend borrowing a cache connection.

    Args:
        session_key: Key of an existing session, or None for a new one.
        connection: The connection to use. Defaults to the connection of the
            ``SESSION_CACHE_ALIAS`` cache.
    """

    cache_key_prefix = KEY_PREFIX

    def __init__(self, session_key: str | None = None, *, connection: KeyValueConnection | None = None) -> None:
        self._connection = connection if connection is not None else get_connection(settings.SESSION_CACHE_ALIAS)
        super().__init__(session_key)

    @property
    def cache_key(self) -> str:
        return self._make_key(self._get_or_create_session_key())

    def _make_key(self, session_key: str) -> str:
        return self._connection.make_key(self.cache_key_prefix + session_key)

    @override
    def load(self) -> dict[str, Any]:
        data = self._connection.client.get(self.cache_key)
        if data is not None:
            try:
                return self._connection.decode(data)
            except SerializerError:
                # Written by another serializer or corrupted; start over
                logger.warning("Discarding undecodable session data")
        self._session_key = None
        return {}

    @override
    def create(self) -> None:
        for _ in range(MAX_CREATE_ATTEMPTS):
            self._session_key = self._get_new_session_key()
            try:
                self.save(must_create=True)
            except CreateError:
                continue
            self.modified = True
            return
        msg = "Unable to create a new session key. It is likely that the cache is unavailable."
        raise RuntimeError(msg)

    @override
    def save(self, must_create: bool = False) -> None:
        if self.session_key is None:
            return self.create()

        client = self._connection.client
        key = self.cache_key
        if not must_create and not client.exists(key):
            raise UpdateError

        data = self._connection.encode(self._get_session(no_load=must_create))
        result = client.set(key, data, ex=self.get_expiry_age(), nx=must_create)
        if must_create and not result:
            raise CreateError
        return None

    @override
    def exists(self, session_key: str | None) -> bool:
        return bool(session_key) and bool(self._connection.client.exists(self._make_key(session_key)))

    @override
    def delete(self, session_key: str | None = None) -> None:
        if session_key is None:
            if self.session_key is None:
                return
            session_key = self.session_key
        self._connection.client.delete(self._make_key(session_key))

    @classmethod
    @override
    def clear_expired(cls) -> None:
        pass
