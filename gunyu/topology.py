"""Parsing of Redis INFO, CLUSTER NODES and CLUSTER SHARDS replies into a topology model."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from .util import atoi

__all__ = [
    "RedisRole",
    "RedisType",
    "RedisSlotRange",
    "RedisSlots",
    "RedisNode",
    "RedisClusterShard",
    "ClusterNodeInfo",
    "RedisUtilError",
    "parse_keyspace",
    "parse_redis_info",
    "float64_to_str",
    "cluster_node_choose",
    "parse_cluster_node",
    "parse_cluster_is_migrating",
    "cluster_nodes_to_shards",
    "parse_slots",
    "cluster_node_info_to_node",
    "parse_cluster_shards",
]

log = logging.getLogger(__name__)


class RedisUtilError(Exception):
    """Raised when a Redis reply cannot be understood."""


class RedisRole(str, Enum):
    UNKNOWN = ""
    MASTER = "master"
    SLAVE = "slave"
    ALL = "all"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> "RedisRole":
        """Map a role name to a role; "replica" counts as a slave, anything unknown as UNKNOWN."""
        lowered = text.strip().lower()
        if lowered == "master":
            return cls.MASTER
        if lowered in ("slave", "replica"):
            return cls.SLAVE
        if lowered == "all":
            return cls.ALL
        return cls.UNKNOWN


class RedisType(str, Enum):
    STANDALONE = "standalone"
    CLUSTER = "cluster"
    SENTINEL = "sentinel"

    def __str__(self) -> str:
        return self.value


@dataclass
class RedisSlotRange:
    left: int
    right: int


@dataclass
class RedisSlots:
    ranges: list = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.ranges)

    def sort(self) -> None:
        """Order the ranges by their left bound."""
        self.ranges.sort(key=lambda r: (r.left, r.right))


@dataclass
class RedisNode:
    id: str = ""
    ip: str = ""
    port: int = 0
    tls_port: int = 0
    endpoint: str = ""
    host_name: str = ""
    address: str = ""
    role: RedisRole = RedisRole.UNKNOWN
    repl_offset: int = 0
    health: str = ""


@dataclass
class RedisClusterShard:
    slots: RedisSlots = field(default_factory=RedisSlots)
    master: RedisNode = field(default_factory=RedisNode)
    slaves: list = field(default_factory=list)


@dataclass
class ClusterNodeInfo:
    id: str = ""
    address: str = ""
    node_coordinates: str = ""
    role: str = ""
    flags: list = field(default_factory=list)
    slave_of: str = ""
    ping_sent: str = ""
    pong_recv: str = ""
    config_epoch: str = ""
    link_stat: str = ""
    slots: list = field(default_factory=list)
    migrating_slots: list = field(default_factory=list)


def _to_text(content: Any) -> str:
    if isinstance(content, (bytes, bytearray)):
        return bytes(content).decode()
    return content


def parse_keyspace(content: bytes | str) -> dict:
    """Parse an "info keyspace" reply into {db: number of keys}."""
    text = _to_text(content)
    if not text.startswith("# Keyspace"):
        raise RedisUtilError(f"invalid info Keyspace: {text}")
    reply = {}
    for line in text.split("\n"):
        line = line.strip()
        if not line.startswith("db"):
            continue
        items = line.split(":")
        db = atoi(items[0][2:])
        if len(items) < 2:
            raise RedisUtilError(f"invalid info Keyspace: {text}")
        nums = items[1].split(",")
        if not nums[0].startswith("keys="):
            raise RedisUtilError(f"invalid info Keyspace: {text}")
        reply[db] = atoi(nums[0][5:])
    return reply


def parse_redis_info(content: bytes | str) -> dict:
    """Parse a single INFO section into a mapping of field to value."""
    result = {}
    for line in _to_text(content).split("\r\n"):
        items = line.split(":", 1)
        if len(items) != 2:
            continue
        result[items[0]] = items[1]
    return result


def float64_to_str(value: float) -> str:
    """Shortest decimal text for a float, never in exponent form."""
    if value != value:
        return "NaN"
    if value in (float("inf"), float("-inf")):
        return "+Inf" if value > 0 else "-Inf"
    text = format(Decimal(repr(float(value))), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def cluster_node_choose(nodes: list, role: RedisRole) -> list:
    """Keep the nodes whose role matches; RedisRole.ALL keeps every node."""
    return [
        node
        for node in nodes
        if role == RedisRole.ALL
        or (node.role == RedisRole.MASTER.value and role == RedisRole.MASTER)
        or (node.role == RedisRole.SLAVE.value and role == RedisRole.SLAVE)
    ]


def parse_cluster_node(content: str) -> list:
    """Parse a CLUSTER NODES reply; keeps masters owning slots and all slaves."""
    nodes = []
    for line in _to_text(content).split("\n"):
        if not line:
            continue
        items = line.split(" ")
        if len(items) < 8:
            continue
        info = ClusterNodeInfo(
            id=items[0],
            address=items[1].split("@")[0],
            node_coordinates=items[1],
            slave_of=items[3],
            ping_sent=items[4],
            pong_recv=items[5],
            config_epoch=items[6],
            link_stat=items[7],
        )
        for flag in items[2].split(","):
            info.flags.append(flag)
            if flag in ("master", "slave"):
                info.role = flag
        for item in items[8:]:
            if item.startswith("["):
                info.migrating_slots.append(item)
            else:
                info.slots.append(item)
        if (info.role == "master" and info.slots) or info.role == "slave":
            nodes.append(info)
    return nodes


def parse_cluster_is_migrating(content: str) -> bool:
    """Whether a CLUSTER NODES reply shows slots being migrated."""
    for line in _to_text(content).split("\n"):
        if not line:
            continue
        items = line.split(" ")
        if len(items) <= 8:
            continue
        if any(item.startswith("[") for item in items[8:]):
            return True
    return False


def parse_slots(slot_strs: list) -> RedisSlots:
    """Parse slot entries such as "5" or "0-5460"; other shapes are ignored."""
    slots = RedisSlots()
    for text in slot_strs:
        parts = text.split("-")
        if len(parts) == 1:
            left = atoi(parts[0])
            slots.ranges.append(RedisSlotRange(left, left))
        elif len(parts) == 2:
            slots.ranges.append(RedisSlotRange(atoi(parts[0]), atoi(parts[1])))
    return slots


def cluster_node_info_to_node(info: ClusterNodeInfo) -> RedisNode:
    """Convert a parsed CLUSTER NODES line into a node."""
    node = RedisNode(id=info.id)
    coord = info.node_coordinates
    idx = coord.find(":")
    if idx != -1:
        node.ip = coord[:idx]
        coord = coord[idx + 1:]
    idx = coord.find("@")
    if idx != -1:
        node.port = atoi(coord[:idx])
    node.address = info.address
    if info.role == RedisRole.MASTER.value:
        node.role = RedisRole.MASTER
    elif info.role == RedisRole.SLAVE.value:
        node.role = RedisRole.SLAVE
    node.health = "fail" if "fail" in info.flags else "online"
    return node


def cluster_nodes_to_shards(content: str) -> list:
    """Group a CLUSTER NODES reply into shards of a master and its slaves."""
    nodes = parse_cluster_node(content)
    shards = []
    for node in nodes:
        if node.role != "master" or not node.slots:
            continue
        shard = RedisClusterShard(master=cluster_node_info_to_node(node))
        shard.slots = parse_slots(node.slots)
        shard.slots.sort()
        for other in nodes:
            if other.slave_of != node.id:
                continue
            try:
                shard.slaves.append(cluster_node_info_to_node(other))
            except ValueError as exc:
                log.error("cluster node : node(%s), error(%s)", other, exc)
        shards.append(shard)
    return shards


def _as_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode()
    raise RedisUtilError(f"unexpected reply type for string : {value!r}")


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise RedisUtilError(f"unexpected reply type for integer : {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, (str, bytes, bytearray)):
        try:
            return atoi(value)
        except ValueError as exc:
            raise RedisUtilError(f"invalid integer reply : {value!r}") from exc
    raise RedisUtilError(f"unexpected reply type for integer : {value!r}")


def _parse_shard_node(entry: Any, internal: Optional[str], external: Optional[str]) -> RedisNode:
    if not isinstance(entry, list):
        raise RedisUtilError(f"invalid result : {entry!r}")
    if len(entry) % 2:
        raise RedisUtilError(f"invalid result : {entry!r}")
    node = RedisNode()
    for key, value in zip(entry[0::2], entry[1::2]):
        key = _as_str(key)
        if key == "id":
            node.id = _as_str(value)
        elif key == "port":
            node.port = _as_int(value)
        elif key == "tls-port":
            node.tls_port = _as_int(value)
        elif key == "ip":
            node.ip = _as_str(value)
        elif key == "endpoint":
            node.endpoint = _as_str(value)
        elif key == "hostname":
            node.host_name = _as_str(value)
        elif key == "role":
            node.role = RedisRole.parse(_as_str(value))
        elif key == "replication-offset":
            node.repl_offset = _as_int(value)
        elif key == "health":
            node.health = _as_str(value)
    if node.endpoint not in ("", "?"):
        endpoint = node.endpoint
    elif node.ip not in ("", "?"):
        endpoint = node.ip
    else:
        endpoint = node.host_name
    address = f"{endpoint}:{node.port}"
    if internal is not None and external is not None:
        address = address.replace(internal, external, 1)
    node.address = address
    return node


def parse_cluster_shards(
    reply: Any, internal_service: Optional[str] = None, external_service: Optional[str] = None
) -> list:
    """Parse a CLUSTER SHARDS reply; shards without slots are dropped."""
    if not isinstance(reply, list):
        raise RedisUtilError(f"invalid result : {reply!r}")
    shards = []
    for raw in reply:
        if not isinstance(raw, list):
            raise RedisUtilError(f"invalid result : {raw!r}")
        shard = RedisClusterShard()
        key = ""
        for item in raw:
            if isinstance(item, (str, bytes, bytearray)):
                key = _as_str(item)
            elif isinstance(item, list):
                if key == "slots":
                    if len(item) % 2 == 0:
                        for left, right in zip(item[0::2], item[1::2]):
                            shard.slots.ranges.append(RedisSlotRange(_as_int(left), _as_int(right)))
                elif key == "nodes":
                    for entry in item:
                        node = _parse_shard_node(entry, internal_service, external_service)
                        if node.role == RedisRole.MASTER:
                            shard.master = node
                        else:
                            shard.slaves.append(node)
        if len(shard.slots) > 0:
            shards.append(shard)
    for shard in shards:
        shard.slots.sort()
    return shards