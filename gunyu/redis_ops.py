"""Commands and topology discovery run against a Redis connection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

from .topology import (
    RedisClusterShard,
    RedisNode,
    RedisRole,
    RedisSlotRange,
    RedisSlots,
    RedisType,
    RedisUtilError,
    cluster_nodes_to_shards,
    parse_cluster_is_migrating,
    parse_cluster_shards,
    parse_redis_info,
)
from .versioning import VersionSemantic, version_ge

__all__ = [
    "RedisConfig",
    "select_db",
    "get_redis_version",
    "get_cluster_is_migrating",
    "get_all_cluster_shard4",
    "get_all_cluster_shard7",
    "get_all_cluster_shard",
    "get_redis_role_online",
    "fix_version",
    "fix_topology",
    "get_run_ids",
    "hgetall",
    "hget",
    "hdel",
    "hset",
]

log = logging.getLogger(__name__)

_SLOT_MAX = 16383


class _RedisClient(Protocol):
    redis_type: RedisType

    def do(self, *args: Any) -> Any: ...

    def send_and_flush(self, *args: Any) -> None: ...

    def receive_string(self) -> str: ...

    def close(self) -> None: ...


@dataclass
class RedisConfig:
    """Where a Redis deployment lives and what has been learned about it."""

    addresses: list = field(default_factory=list)
    redis_type: RedisType = RedisType.STANDALONE
    version: str = ""
    internal_service: Optional[str] = None
    external_service: Optional[str] = None
    cluster_shards: list = field(default_factory=list)
    migrating: bool = False

    @property
    def address(self) -> str:
        return ",".join(self.addresses)


def _text(reply: Any) -> str:
    if isinstance(reply, str):
        return reply
    if isinstance(reply, (bytes, bytearray)):
        return bytes(reply).decode()
    if reply is None:
        raise RedisUtilError("nil reply")
    raise RedisUtilError(f"unexpected reply type for string : {reply!r}")


def _int(reply: Any) -> int:
    if isinstance(reply, int) and not isinstance(reply, bool):
        return reply
    if reply is None:
        raise RedisUtilError("nil reply")
    raise RedisUtilError(f"unexpected reply type for integer : {reply!r}")


def _close_quietly(cli: _RedisClient) -> None:
    try:
        cli.close()
    except Exception as exc:
        log.error("close redis conn : %s", exc)


def _int_command(cli: _RedisClient, command: str, key: Any, *args: Any) -> int:
    try:
        return _int(cli.do(command, key, *args))
    except Exception as exc:
        raise RedisUtilError(f"{command} command error : key({key}), error({exc})") from exc


def _lpush(cli: _RedisClient, key: Any, value: Any) -> None:
    _int_command(cli, "lpush", key, value)


def _rpush(cli: _RedisClient, key: Any, value: Any) -> None:
    _int_command(cli, "rpush", key, value)


def _zadd(cli: _RedisClient, key: Any, score: Any, member: Any) -> None:
    _int_command(cli, "zadd", key, score, member)


def _sadd(cli: _RedisClient, key: Any, member: Any) -> None:
    _int_command(cli, "sadd", key, member)


def _hset_one(cli: _RedisClient, key: Any, name: Any, value: Any) -> None:
    _int_command(cli, "hset", key, name, value)


def _set(cli: _RedisClient, key: Any, value: Any) -> None:
    try:
        reply = _text(cli.do("set", key, value))
    except Exception as exc:
        raise RedisUtilError(f"set command error : key({key}), error({exc})") from exc
    if reply != "OK":
        raise RedisUtilError(f"set command response is not ok : key({key}), resp({reply})")


def select_db(cli: _RedisClient, db: int) -> None:
    """Switch the connection to ``db``; a no-op on clusters."""
    if cli.redis_type == RedisType.CLUSTER:
        return
    cli.send_and_flush("select", db)
    reply = cli.receive_string()
    if reply != "OK":
        raise RedisUtilError(f"select db({db}) error : reply({reply})")


def get_redis_version(cli: _RedisClient) -> str:
    info = parse_redis_info(_text(cli.do("info", "server")))
    try:
        return info["redis_version"]
    except KeyError:
        raise RedisUtilError("miss redis version info") from None


def get_cluster_is_migrating(cli: _RedisClient) -> bool:
    return parse_cluster_is_migrating(_text(cli.do("cluster", "nodes")))


def get_all_cluster_shard4(cli: _RedisClient) -> list:
    """Shards from CLUSTER NODES, for servers before 7.0."""
    return cluster_nodes_to_shards(_text(cli.do("cluster", "nodes")))


def get_all_cluster_shard7(
    cli: _RedisClient, internal_service: Optional[str] = None, external_service: Optional[str] = None
) -> list:
    """Shards from CLUSTER SHARDS, for servers 7.0 and later."""
    return parse_cluster_shards(cli.do("cluster", "shards"), internal_service, external_service)


def get_all_cluster_shard(
    cli: _RedisClient,
    version: str,
    internal_service: Optional[str] = None,
    external_service: Optional[str] = None,
) -> list:
    if version_ge(version, "7", VersionSemantic.MAJOR):
        return get_all_cluster_shard7(cli, internal_service, external_service)
    return get_all_cluster_shard4(cli)


def get_redis_role_online(
    cfg: RedisConfig, address: str, connect: Callable[[RedisConfig], _RedisClient]
) -> RedisRole:
    """Whether ``address`` is currently a master of the cluster."""
    try:
        cli = connect(cfg)
    except Exception as exc:
        raise RedisUtilError(
            f"GetRedisRoleOnline : new redis error : addr({cfg.address}), error({exc})"
        ) from exc
    try:
        shards = get_all_cluster_shard(cli, cfg.version, cfg.internal_service, cfg.external_service)
    finally:
        _close_quietly(cli)
    if any(shard.master.address == address for shard in shards):
        return RedisRole.MASTER
    return RedisRole.SLAVE


def fix_version(cfg: RedisConfig, connect: Callable[[RedisConfig], _RedisClient]) -> None:
    """Fill in ``cfg.version`` from the server if it is not set."""
    if cfg.version:
        return
    try:
        cli = connect(cfg)
    except Exception as exc:
        log.error("new redis error : addr(%s), error(%s)", cfg.address, exc)
        raise
    try:
        version = get_redis_version(cli)
    except Exception as exc:
        log.error("redis get version error : addr(%s), error(%s)", cfg.address, exc)
        raise
    finally:
        _close_quietly(cli)
    if not version:
        raise RedisUtilError("cannot get redis version")
    cfg.version = version


def fix_topology(cfg: RedisConfig, connect: Callable[[RedisConfig], _RedisClient]) -> None:
    """Fill in the shards (and, on clusters, the migration state) of ``cfg``."""
    if cfg.redis_type == RedisType.CLUSTER:
        try:
            cli = connect(cfg)
        except Exception as exc:
            raise RedisUtilError(
                f"fix typology : new redis error : addr({cfg.address}), error({exc})"
            ) from exc
        try:
            shards = get_all_cluster_shard(cli, cfg.version, cfg.internal_service, cfg.external_service)
            # Keep slave order stable so every replica picks the same first slave.
            for shard in shards:
                shard.slaves.sort(key=lambda node: node.address)
            cfg.cluster_shards = shards
            cfg.migrating = get_cluster_is_migrating(cli)
        finally:
            _close_quietly(cli)
    elif cfg.redis_type == RedisType.STANDALONE:
        cfg.cluster_shards = [
            RedisClusterShard(
                slots=RedisSlots([RedisSlotRange(0, _SLOT_MAX)]),
                master=RedisNode(address=addr, role=RedisRole.MASTER, health="online"),
            )
            for addr in cfg.addresses
        ]
    else:
        raise RedisUtilError(f"unknown redis type : {cfg.redis_type}, {cfg.address}")


def get_run_ids(cli: _RedisClient) -> tuple:
    """Return (master_replid, master_replid2) from INFO replication."""
    first = second = ""
    for line in _text(cli.do("info", "replication")).split("\r\n"):
        if line.startswith("master_replid:"):
            first = line[len("master_replid:"):]
        if line.startswith("master_replid2:"):
            second = line[len("master_replid2:"):]
    return first, second


def hgetall(cli: _RedisClient, key: str) -> list:
    reply = cli.do("hgetall", key)
    if not isinstance(reply, list):
        raise RedisUtilError(f"unexpected reply type for strings : {reply!r}")
    return [_text(item) for item in reply]


def hget(cli: _RedisClient, key: str, field: str) -> str:
    return _text(cli.do("hget", key, field))


def hdel(cli: _RedisClient, key: str, *args: str) -> None:
    cli.do("hdel", key, *args)


def hset(cli: _RedisClient, key: str, *args: Any) -> None:
    cli.do("hset", key, *args)