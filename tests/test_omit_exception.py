"""Tests for the omit_exception decorator."""

import socket

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError

from django_shardcache.omit_exception import omit_exception


class Backend:
    def __init__(self, error, *, ignore=False, log=False):
        self._error = error
        self._ignore_exceptions = ignore
        self._log_ignored_exceptions = log

    @omit_exception
    def plain(self):
        raise self._error

    @omit_exception(return_value={})
    def with_fallback(self):
        raise self._error

    @omit_exception(return_value=False)
    def working(self):
        return "ok"


class TestOmitException:
    @pytest.mark.parametrize("error", [RedisConnectionError("down"), RedisTimeoutError("slow"), socket.timeout()])
    def test_reraised_when_not_ignored(self, error):
        with pytest.raises(type(error)):
            Backend(error).plain()

    @pytest.mark.parametrize("error", [RedisConnectionError("down"), RedisTimeoutError("slow"), socket.timeout()])
    def test_ignored(self, error):
        backend = Backend(error, ignore=True)
        assert backend.plain() is None
        assert backend.with_fallback() == {}

    def test_command_errors_are_not_ignored(self):
        with pytest.raises(ResponseError):
            Backend(ResponseError("WRONGTYPE"), ignore=True).plain()

    def test_return_value_passes_through(self):
        assert Backend(None).working() == "ok"

    def test_logging(self, caplog):
        Backend(RedisConnectionError("down"), ignore=True, log=True).plain()
        assert "Exception ignored" in caplog.text
        assert caplog.records[0].exc_info is not None

    def test_no_logging_by_default(self, caplog):
        Backend(RedisConnectionError("down"), ignore=True).plain()
        assert caplog.text == ""

    def test_wraps_metadata(self):
        assert Backend.with_fallback.__name__ == "with_fallback"
