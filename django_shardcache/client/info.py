"""Cluster-wide INFO aggregation.

Every stat is kept as a list with one value per master node, in node
order. The keyspace line of the configured database is the exception:
it is collapsed into a single ``keys=<k>,expires=<e>,avg_ttl=<t>`` string.

Note that ``avg_ttl`` is the plain mean of the per-node averages, not
weighted by each node's key count.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from django_shardcache.connection import KeyValueConnection
    from django_shardcache.types import NodeInfo

KEYSPACE_FIELDS = ("keys", "expires", "avg_ttl")


def collect_info(connection: KeyValueConnection) -> list[NodeInfo]:
    """Fetch ``INFO`` from every master node."""
    return [node_client.info() for _, node_client in connection.primaries()]


def parse_keyspace(value: str | dict[str, Any] | None) -> dict[str, int]:
    """Parse one node's keyspace line.

    The driver usually hands back an already parsed dict; a raw
    ``keys=1,expires=0,avg_ttl=0`` string is accepted as well.
    """
    stats = dict.fromkeys(KEYSPACE_FIELDS, 0)
    if not value:
        return stats
    if isinstance(value, str):
        value = dict(part.split("=", 1) for part in value.split(",") if "=" in part)
    for name in KEYSPACE_FIELDS:
        if name in value:
            stats[name] = int(value[name])
    return stats


def merge_keyspace(values: Sequence[str | dict[str, Any] | None], node_count: int) -> str:
    """Collapse per-node keyspace lines into one line."""
    sums = dict.fromkeys(KEYSPACE_FIELDS, 0)
    for value in values:
        for name, count in parse_keyspace(value).items():
            sums[name] += count
    if node_count:
        sums["avg_ttl"] = int(sums["avg_ttl"] / node_count)
    return ",".join(f"{name}={count}" for name, count in sums.items())


def aggregate_info(per_node: Sequence[NodeInfo], database: int = 0) -> dict[str, Any]:
    """Merge per-node INFO mappings into one view."""
    merged: dict[str, Any] = {}
    for node_info in per_node:
        for name, value in node_info.items():
            merged.setdefault(name, []).append(value)

    # A node without keys in the database reports no line for it at all
    db = f"db{database}"
    merged[db] = merge_keyspace(merged.get(db, []), len(per_node))
    return merged
