import pytest

from gunyu.topology import (
    ClusterNodeInfo,
    RedisClusterShard,
    RedisNode,
    RedisRole,
    RedisSlotRange,
    RedisSlots,
    RedisUtilError,
    cluster_node_choose,
    cluster_node_info_to_node,
    cluster_nodes_to_shards,
    float64_to_str,
    parse_cluster_is_migrating,
    parse_cluster_node,
    parse_cluster_shards,
    parse_keyspace,
    parse_redis_info,
    parse_slots,
)

MIGRATING = """
2d4d17b6014e87f19cb4d0d4b61f10b8bbacb3a7 127.0.0.1:16311@26311 master - 0 1706668396000 9 connected 5462-10922
a33c82590472ef5524f8928a8d6434ade79ec344 127.0.0.1:16303@26303 master - 0 1706668401475 10 connected
e1d562716e4f5311e45a3e28dca0782130e95422 127.0.0.1:16302@26302 myself,master - 0 1706668399000 0 connected 10923-16383 [16383->-a33c82590472ef5524f8928a8d6434ade79ec344]
ca023ae3a5e713e162a271fd370ee7b005b47203 127.0.0.1:16300@26300 slave 721408793331217e7da77a0adf04948671445c1e 0 1706668400469 6 connected
b94e003c3b2b9ad2f03356a1296a20e9d03c2881 127.0.0.1:16301@26301 slave 2d4d17b6014e87f19cb4d0d4b61f10b8bbacb3a7 0 1706668399000 9 connected
c01af74852c4bde5b6d7b460d3ccc4d66e76d3ea 127.0.0.1:16312@26312 slave e1d562716e4f5311e45a3e28dca0782130e95422 0 1706668400000 0 connected
721408793331217e7da77a0adf04948671445c1e 127.0.0.1:16310@26310 master - 0 1706668398459 6 connected 0-5461
\t"""

TABBED = """
\t2d4d17b6014e87f19cb4d0d4b61f10b8bbacb3a7 127.0.0.1:16311@26311 master - 0 1706668396000 9 connected 5462-10922
\ta33c82590472ef5524f8928a8d6434ade79ec344 127.0.0.1:16303@26303 master - 0 1706668401475 10 connected
\te1d562716e4f5311e45a3e28dca0782130e95422 127.0.0.1:16302@26302 myself,master - 0 1706668399000 0 connected 10923-16383 [16383->-a33c82590472ef5524f8928a8d6434ade79ec344]
\tca023ae3a5e713e162a271fd370ee7b005b47203 127.0.0.1:16300@26300 slave 721408793331217e7da77a0adf04948671445c1e 0 1706668400469 6 connected
\tb94e003c3b2b9ad2f03356a1296a20e9d03c2881 127.0.0.1:16301@26301 slave 2d4d17b6014e87f19cb4d0d4b61f10b8bbacb3a7 0 1706668399000 9 connected
\tc01af74852c4bde5b6d7b460d3ccc4d66e76d3ea 127.0.0.1:16312@26312 slave e1d562716e4f5311e45a3e28dca0782130e95422 0 1706668400000 0 connected
\t721408793331217e7da77a0adf04948671445c1e 127.0.0.1:16310@26310 master - 0 1706668398459 6 connected 0-5461
\t\t"""


def test_migrating_detected():
    assert parse_cluster_is_migrating(MIGRATING) is True


def test_not_migrating_without_brackets():
    content = MIGRATING.replace(" [16383->-a33c82590472ef5524f8928a8d6434ade79ec344]", "")
    assert parse_cluster_is_migrating(content) is False


def test_get_all_cluster_shard4_tabbed_ids_non_empty():
    shards = cluster_nodes_to_shards(TABBED)
    assert len(shards) == 3
    for shard in shards:
        assert len(shard.master.id) > 0
        for slave in shard.slaves:
            assert len(slave.id) > 0


def test_cluster_nodes_to_shards_links_slaves():
    shards = cluster_nodes_to_shards(MIGRATING)
    by_master = {s.master.address: s for s in shards}
    assert set(by_master) == {"127.0.0.1:16311", "127.0.0.1:16302", "127.0.0.1:16310"}
    shard = by_master["127.0.0.1:16310"]
    assert shard.slots.ranges == [RedisSlotRange(0, 5461)]
    assert [s.address for s in shard.slaves] == ["127.0.0.1:16300"]
    assert shard.slaves[0].role == RedisRole.SLAVE
    assert shard.master.port == 16310
    assert shard.master.ip == "127.0.0.1"
    assert shard.master.health == "online"


def test_parse_cluster_node_filters_pending_master():
    nodes = parse_cluster_node(MIGRATING)
    ids = [n.id for n in nodes]
    assert "a33c82590472ef5524f8928a8d6434ade79ec344" not in ids
    assert len(nodes) == 6
    myself = next(n for n in nodes if n.id.startswith("e1d5"))
    assert myself.flags == ["myself", "master"]
    assert myself.migrating_slots == ["[16383->-a33c82590472ef5524f8928a8d6434ade79ec344]"]
    assert myself.slots == ["10923-16383"]


def test_cluster_node_choose():
    nodes = parse_cluster_node(MIGRATING)
    assert len(cluster_node_choose(nodes, RedisRole.MASTER)) == 3
    assert len(cluster_node_choose(nodes, RedisRole.SLAVE)) == 3
    assert len(cluster_node_choose(nodes, RedisRole.ALL)) == 6


def test_parse_slots_shapes():
    slots = parse_slots(["2000", "5462-10922", "1-2-3"])
    assert slots.ranges == [RedisSlotRange(2000, 2000), RedisSlotRange(5462, 10922)]


def test_parse_slots_invalid_number():
    with pytest.raises(ValueError):
        parse_slots(["x-10"])


def test_slots_sort():
    slots = RedisSlots([RedisSlotRange(10, 20), RedisSlotRange(0, 5)])
    slots.sort()
    assert slots.ranges == [RedisSlotRange(0, 5), RedisSlotRange(10, 20)]
    assert len(slots) == 2


def test_node_info_fail_flag():
    info = ClusterNodeInfo(
        id="abc", address="10.0.0.1:7000", node_coordinates="10.0.0.1:7000@17000",
        role="master", flags=["master", "fail"],
    )
    node = cluster_node_info_to_node(info)
    assert node.health == "fail"
    assert node.port == 7000
    assert node.ip == "10.0.0.1"
    assert node.role == RedisRole.MASTER


def _node_reply(node):
    return [
        "id", node.id,
        "port", node.port,
        "ip", node.ip,
        "endpoint", node.endpoint,
        "role", str(node.role),
        "replication-offset", node.repl_offset,
        "health", node.health,
    ]


def _shard_reply(shard):
    r = shard.slots.ranges[0]
    return ["slots", [r.left, r.right], "nodes",
            [_node_reply(shard.master)] + [_node_reply(s) for s in shard.slaves]]


def _expected_shards():
    return [
        RedisClusterShard(
            slots=RedisSlots([RedisSlotRange(0, 10000)]),
            master=RedisNode(
                id="s1id1", port=1001, ip="127.0.0.1", endpoint="localhost",
                address="127.0.0.1:1001", role=RedisRole.MASTER, repl_offset=11, health="online",
            ),
            slaves=[
                RedisNode(
                    id="s1id2", port=1002, ip="127.0.0.1", endpoint="localhost",
                    address="127.0.0.1:1002", role=RedisRole.SLAVE, repl_offset=11, health="offline",
                )
            ],
        )
    ]


def test_parse_cluster_shards_round_trip_with_service_mapping():
    shards = _expected_shards()
    reply = [_shard_reply(s) for s in shards]
    parsed = parse_cluster_shards(reply, "localhost", "127.0.0.1")
    assert len(parsed) == len(reply)
    assert parsed == shards


def test_parse_cluster_shards_uses_endpoint_for_address():
    reply = [_shard_reply(s) for s in _expected_shards()]
    parsed = parse_cluster_shards(reply)
    assert parsed[0].master.address == "localhost:1001"
    assert parsed[0].slaves[0].address == "localhost:1002"


def test_parse_cluster_shards_falls_back_to_ip_and_replica_role():
    reply = [[b"slots", [100, 200, 0, 50], b"nodes", [
        [b"id", b"m", b"port", 7000, b"ip", b"10.0.0.5", b"endpoint", b"?", b"role", b"master"],
        [b"id", b"r", b"port", 7001, b"ip", b"?", b"hostname", b"host-r", b"role", b"replica"],
    ]], ["slots", [], "nodes", []]]
    parsed = parse_cluster_shards(reply)
    assert len(parsed) == 1
    assert parsed[0].slots.ranges == [RedisSlotRange(0, 50), RedisSlotRange(100, 200)]
    assert parsed[0].master.address == "10.0.0.5:7000"
    assert parsed[0].slaves[0].address == "host-r:7001"
    assert parsed[0].slaves[0].role == RedisRole.SLAVE


def test_parse_cluster_shards_invalid():
    with pytest.raises(RedisUtilError):
        parse_cluster_shards("not a list")
    with pytest.raises(RedisUtilError):
        parse_cluster_shards([["nodes", ["bad"]]])


def test_parse_keyspace():
    content = b"# Keyspace\r\ndb0:keys=3,expires=0,avg_ttl=0\r\ndb2:keys=10,expires=1,avg_ttl=5\r\n"
    assert parse_keyspace(content) == {0: 3, 2: 10}


def test_parse_keyspace_errors():
    with pytest.raises(RedisUtilError):
        parse_keyspace(b"# Server\r\n")
    with pytest.raises(RedisUtilError):
        parse_keyspace(b"# Keyspace\r\ndb0:expires=1\r\n")
    with pytest.raises(ValueError):
        parse_keyspace(b"# Keyspace\r\ndbx:keys=1\r\n")


def test_parse_redis_info():
    info = parse_redis_info(b"# Server\r\nredis_version:7.0.1\r\nfoo:bar:baz\r\n")
    assert info == {"redis_version": "7.0.1", "foo": "bar:baz"}


@pytest.mark.parametrize(
    "value, expected",
    [(1.0, "1"), (1.5, "1.5"), (0.1, "0.1"), (1e21, "1000000000000000000000"), (1e-7, "0.0000001"), (-2.25, "-2.25")],
)
def test_float64_to_str(value, expected):
    assert float64_to_str(value) == expected


def test_role_parse():
    assert RedisRole.parse("master") == RedisRole.MASTER
    assert RedisRole.parse("slave") == RedisRole.SLAVE
    assert RedisRole.parse("replica") == RedisRole.SLAVE
    assert RedisRole.parse("weird") == RedisRole.UNKNOWN