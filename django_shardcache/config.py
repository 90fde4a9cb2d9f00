"""Connection configuration for cluster and single-node backends.

Turns Django's ``LOCATION``/``OPTIONS`` into a ``ClusterConfig`` and then
into the keyword arguments understood by the redis-py / valkey-py clients.
Nothing here opens a socket.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl, urlparse

from django_shardcache.exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

DEFAULT_PORT = 6379

_port_suffix_re = re.compile(r":\d+$")

# URL schemes accepted in LOCATION; the trailing "s" variants imply TLS
_URL_SCHEMES = {"redis": False, "valkey": False, "rediss": True, "valkeys": True}


def _split_location(location: str | Sequence[str] | None) -> list[str]:
    if not location:
        return []
    if isinstance(location, str):
        location = re.split("[;,]", location)
    return [entry.strip() for entry in location if entry and entry.strip()]


def _parse_entry(entry: str) -> tuple[str, bool]:
    """Reduce one LOCATION entry to ``host[:port]`` and whether it asks for TLS."""
    if "://" not in entry:
        return entry, False
    parsed = urlparse(entry)
    if parsed.scheme not in _URL_SCHEMES or not parsed.hostname:
        msg = f"Unsupported cache location {entry!r}"
        raise ConfigurationError(msg)
    host = parsed.hostname
    if parsed.port:
        host = f"{host}:{parsed.port}"
    return host, _URL_SCHEMES[parsed.scheme]


def parse_hosts(location: str | Sequence[str] | None, port: int | None = DEFAULT_PORT) -> list[str]:
    """Parse the seed host list.

    Hosts that already carry a ``:port`` suffix are left untouched; the others
    get the configured port appended when it is positive.

    Raises:
        ConfigurationError: if no host is left after parsing.
    """
    hosts = [_parse_entry(entry)[0] for entry in _split_location(location)]
    if not hosts:
        msg = "Must specify one or more comma-separated hosts in the cache LOCATION."
        raise ConfigurationError(msg)

    if port is not None and int(port) > 0:
        hosts = [host if _port_suffix_re.search(host) else f"{host}:{port}" for host in hosts]
    return hosts


def parse_tls(value: bool | str | None) -> dict[str, Any]:
    """Build the TLS keyword arguments.

    ``True`` turns TLS on with peer verification disabled. A string is read
    as a flat query string (``cert_reqs=required&ca_certs=/etc/ca.pem``) and
    each option is passed verbatim as ``ssl_<name>``; the caller is
    responsible for its correctness.
    """
    if value is None or value is False:
        return {}
    if value is True:
        return {"ssl": True, "ssl_cert_reqs": "none"}
    if isinstance(value, str):
        options: dict[str, Any] = {"ssl": True}
        for name, option in parse_qsl(value, keep_blank_values=True):
            options[name if name.startswith("ssl_") else f"ssl_{name}"] = option
        return options
    msg = f"OPTIONS['tls'] must be a bool or an option string, got {type(value).__name__}"
    raise ConfigurationError(msg)


def build_auth(username: str | None, password: str | None) -> dict[str, str]:
    """Build the authentication keyword arguments.

    A username is only meaningful together with a password (ACL auth);
    a password alone uses the legacy single-secret AUTH.
    """
    if password is None:
        return {}
    if username is not None:
        return {"username": username, "password": password}
    return {"password": password}


@dataclass(frozen=True)
class ClusterConfig:
    """Normalized connection settings.

    ``hosts`` always holds at least one ``host:port`` entry (or bare host
    when the port was disabled with ``port=0``).
    """

    hosts: list[str]
    port: int = DEFAULT_PORT
    timeout: float = 0
    persistent: bool = False
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    tls: bool | str | None = None
    prefix: str = ""
    database: int = 0

    @classmethod
    def from_options(cls, location: str | Sequence[str] | None, options: Mapping[str, Any]) -> ClusterConfig:
        """Build a config from a cache's LOCATION and OPTIONS."""
        port = int(options.get("port", DEFAULT_PORT) or 0)
        entries = _split_location(location)
        tls = options.get("tls")
        if tls is None and any(_parse_entry(entry)[1] for entry in entries):
            tls = True
        return cls(
            hosts=parse_hosts(entries, port),
            port=port,
            timeout=float(options.get("timeout") or 0),
            persistent=bool(options.get("persistent", False)),
            username=options.get("username"),
            password=options.get("password"),
            tls=tls,
            prefix=options.get("prefix") or "",
            database=int(options.get("database", 0) or 0),
        )

    def startup_nodes(self) -> list[tuple[str, int]]:
        """Return the seed hosts as ``(host, port)`` pairs."""
        nodes = []
        for host in self.hosts:
            if _port_suffix_re.search(host):
                name, _, port = host.rpartition(":")
                nodes.append((name, int(port)))
            else:
                nodes.append((host, DEFAULT_PORT))
        return nodes

    def connection_kwargs(self) -> dict[str, Any]:
        """Return keyword arguments shared by every driver connection."""
        timeout = self.timeout or None
        kwargs: dict[str, Any] = {
            "socket_timeout": timeout,
            "socket_connect_timeout": timeout,
        }
        if self.persistent:
            kwargs["socket_keepalive"] = True
        kwargs.update(parse_tls(self.tls))
        kwargs.update(build_auth(self.username, self.password))
        return kwargs
