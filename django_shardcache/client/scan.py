"""Pattern deletion across every shard.

No single node holds the whole keyspace, so a pattern has to be matched
on each master separately. Each node keeps its own SCAN cursor; a node is
done only when its cursor comes back as 0, an empty batch on the way
there means nothing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

if TYPE_CHECKING:
    from django_shardcache.connection import KeyValueConnection

logger = logging.getLogger(__name__)

DEFAULT_SCAN_COUNT = 100

# Cursor value that both starts and ends a SCAN on one node
SCAN_COMPLETE = 0


def scan_node(connection: KeyValueConnection, node_client: Any, pattern: str, count: int) -> list[bytes]:
    """Collect every key on one node matching an already-prefixed pattern."""
    matched: list[bytes] = []
    cursor = SCAN_COMPLETE
    while True:
        cursor, keys = connection.scan_node(node_client, cursor, pattern, count)
        matched.extend(keys)
        if int(cursor) == SCAN_COMPLETE:
            return matched


def collect_matching(
    connection: KeyValueConnection,
    pattern: str,
    count: int | None = None,
) -> list[bytes]:
    """Return every key in the cluster matching ``pattern``.

    The connection prefix is applied to the pattern first. Each key lives
    in exactly one node's slot range, so per-node results are simply
    concatenated.
    """
    if count is None:
        count = DEFAULT_SCAN_COUNT
    pattern = connection.make_pattern(pattern)

    matched: list[bytes] = []
    for name, node_client in connection.primaries():
        keys = scan_node(connection, node_client, pattern, count)
        logger.debug("SCAN %r on %s matched %d key(s)", pattern, name, len(keys))
        matched.extend(keys)
    return matched


def delete_matching(
    connection: KeyValueConnection,
    pattern: str,
    count: int | None = None,
) -> int:
    """Delete every key in the cluster matching ``pattern``.

    The collected keys are already fully prefixed, so they are deleted by
    exact name through the driver client, which never applies a prefix of
    its own. Returns the number of keys the server reports deleted.
    """
    keys = collect_matching(connection, pattern, count)
    if not keys:
        return 0
    deleted = cast("int", connection.client.delete(*keys))
    logger.debug("Deleted %d of %d key(s) matching %r", deleted, len(keys), pattern)
    return deleted


def flush_primaries(connection: KeyValueConnection) -> bool:
    """Flush every master node."""
    for name, node_client in connection.primaries():
        node_client.flushall()
        logger.debug("Flushed %s", name)
    return True
