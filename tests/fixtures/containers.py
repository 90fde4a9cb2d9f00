"""Redis Cluster container fixture using testcontainers.

The grokzen/redis-cluster image runs six nodes (three masters, three
replicas) in one container. Tests that request ``cluster_container`` are
skipped when no Docker daemon is reachable.
"""

import time
from collections.abc import Generator
from contextlib import suppress
from os import environ
from typing import NamedTuple

import docker
import pytest
import redis
from docker.errors import DockerException
from testcontainers.core.container import DockerContainer
from testcontainers.core.waiting_utils import wait_for_logs

# See: https://github.com/Grokzen/docker-redis-cluster
REDIS_CLUSTER_IMAGE = "grokzen/redis-cluster:7.0.10"
CLUSTER_NODE_COUNT = 6  # 3 masters + 3 replicas
CLUSTER_BASE_PORT = 17000  # High port to stay clear of locally running servers
CLUSTER_PORT_SPACING = 10  # Gap between worker port ranges for xdist
CLUSTER_RETRY_OFFSET = 100  # Port offset between start attempts

CLUSTER_START_RETRIES = 3
CLUSTER_READY_TIMEOUT = 30.0  # Seconds to wait for the cluster to accept commands
CLUSTER_READY_INTERVAL = 0.5


class ClusterContainerInfo(NamedTuple):
    """Seed node address plus the container for teardown."""

    host: str
    port: int
    container: DockerContainer


def _docker_available() -> bool:
    try:
        docker.from_env().ping()
    except DockerException:
        return False
    return True


def _get_xdist_worker_id() -> int:
    """Get the xdist worker ID from environment, or 0 if not running under xdist."""
    worker = environ.get("PYTEST_XDIST_WORKER", "")
    if worker.startswith("gw"):
        return int(worker[2:])
    return 0


def _wait_for_cluster_ready(host: str, port: int, *, timeout: float = CLUSTER_READY_TIMEOUT) -> None:
    """Poll CLUSTER INFO until ``cluster_state:ok``.

    The "Cluster state changed: ok" log line can show up before every node
    serves commands.
    """
    deadline = time.monotonic() + timeout
    last_error: Exception | None = None

    while time.monotonic() < deadline:
        client = redis.Redis(host=host, port=port, socket_connect_timeout=2)
        try:
            info = client.execute_command("CLUSTER", "INFO")
            if isinstance(info, bytes) and b"cluster_state:ok" in info:
                return
        except redis.RedisError as e:
            last_error = e
        finally:
            client.close()
        time.sleep(CLUSTER_READY_INTERVAL)

    msg = f"Cluster not ready after {timeout}s"
    if last_error:
        msg += f": {last_error}"
    raise RuntimeError(msg)


def _start_cluster_container(base_port: int) -> ClusterContainerInfo:
    """Start the cluster container on fixed ports.

    Cluster nodes announce their own addresses to clients, so the ports are
    bound one to one. A taken port range moves the next attempt up by
    ``CLUSTER_RETRY_OFFSET``.
    """
    last_error: Exception | None = None
    for attempt in range(CLUSTER_START_RETRIES):
        current_base = base_port + (attempt * CLUSTER_RETRY_OFFSET)
        container = DockerContainer(REDIS_CLUSTER_IMAGE)
        container.with_env("IP", "0.0.0.0")  # noqa: S104
        container.with_env("INITIAL_PORT", str(current_base))
        for i in range(CLUSTER_NODE_COUNT):
            port = current_base + i
            container.with_bind_ports(port, port)
        try:
            container.start()
        except DockerException as e:
            last_error = e
            with suppress(DockerException):
                container.stop()
            continue
        wait_for_logs(container, "Cluster state changed: ok")
        host = container.get_container_host_ip()
        _wait_for_cluster_ready(host, current_base)
        return ClusterContainerInfo(host=host, port=current_base, container=container)

    msg = f"Failed to start cluster container after {CLUSTER_START_RETRIES} attempts"
    raise RuntimeError(msg) from last_error


@pytest.fixture(scope="session")
def cluster_container() -> Generator[ClusterContainerInfo]:
    """Session-scoped live Redis Cluster."""
    if not _docker_available():
        pytest.skip("Docker is not available")

    base_port = CLUSTER_BASE_PORT + (_get_xdist_worker_id() * CLUSTER_PORT_SPACING)
    info = _start_cluster_container(base_port)
    environ["CLUSTER_HOST"] = info.host
    environ["CLUSTER_PORT"] = str(info.port)

    yield info

    with suppress(DockerException):
        info.container.stop()
