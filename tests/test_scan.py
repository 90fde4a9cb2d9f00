"""Tests for per-node scanning and pattern deletion."""

from unittest.mock import MagicMock

from django_shardcache.client.scan import collect_matching, delete_matching, flush_primaries, scan_node
from django_shardcache.config import ClusterConfig
from django_shardcache.connection import RedisClusterConnection
from tests.fakes import FakeCluster


def make_connection(**options):
    config = ClusterConfig.from_options("127.0.0.1:7000", options)
    return RedisClusterConnection(config, cluster_class=FakeCluster)


class TestScanNode:
    def test_empty_batches_do_not_end_the_scan(self):
        """Only cursor 0 completes a node; empty pages in between are normal."""
        connection = make_connection()
        node_client = MagicMock()
        node_client.scan.side_effect = [(17, []), (4, []), (9, [b"a"]), (0, [b"b"])]

        assert scan_node(connection, node_client, "*", 10) == [b"a", b"b"]
        assert node_client.scan.call_count == 4

    def test_cursor_is_passed_back(self):
        connection = make_connection()
        node_client = MagicMock()
        node_client.scan.side_effect = [(17, [b"a"]), (0, [])]

        scan_node(connection, node_client, "k*", 5)

        cursors = [call.kwargs["cursor"] for call in node_client.scan.call_args_list]
        assert cursors == [0, 17]

    def test_byte_cursor(self):
        connection = make_connection()
        node_client = MagicMock()
        node_client.scan.side_effect = [(b"3", [b"a"]), (b"0", [b"b"])]

        assert scan_node(connection, node_client, "*", 5) == [b"a", b"b"]


class TestCollectMatching:
    def test_every_primary_is_scanned(self):
        connection = make_connection()
        cluster = connection.client
        for i in range(40):
            cluster.set(f"item:{i}", b"x")

        keys = collect_matching(connection, "item:*", count=4)

        assert len(keys) == 40
        assert all(node.scan_calls for node in cluster.nodes)

    def test_pattern_gets_prefix(self):
        connection = make_connection(prefix="p:")
        cluster = connection.client
        cluster.set("p:a", b"1")
        cluster.set("a", b"1")

        assert collect_matching(connection, "a*") == [b"p:a"]
        assert {match for node in cluster.nodes for _, match, _ in node.scan_calls} == {"p:a*"}


class TestDeleteMatching:
    def test_deletes_exact_prefixed_names(self):
        connection = make_connection(prefix="p:")
        cluster = connection.client
        for i in range(5):
            cluster.set(f"p:a{i}", b"1")

        assert delete_matching(connection, "a*") == 5
        assert cluster.dbsize() == 0

    def test_prefix_is_per_connection(self):
        first = make_connection(prefix="one:")
        second = make_connection(prefix="two:")
        first.client.set("one:k", b"1")
        second.client.set("two:k", b"1")

        assert delete_matching(first, "k") == 1
        assert delete_matching(second, "k") == 1


def test_flush_primaries():
    connection = make_connection()
    cluster = connection.client
    for i in range(20):
        cluster.set(f"k{i}", b"x")

    assert flush_primaries(connection) is True
    assert cluster.dbsize() == 0
