# gunyu

Helpers for a tool that follows a Redis deployment: parsing the replies
that describe its topology, discovering that topology through a client you
supply, and keeping an index of the RDB snapshot and AOF segments a replica
stores on disk.

## Modules

- `gunyu.topology` parses `INFO`, `CLUSTER NODES` and `CLUSTER SHARDS`
  replies into plain dataclasses: `RedisClusterShard`, `RedisNode`,
  `RedisSlots`, `RedisSlotRange` and `ClusterNodeInfo`. Functions:
  `parse_redis_info`, `parse_keyspace`, `parse_cluster_node`,
  `cluster_nodes_to_shards`, `parse_cluster_shards` (with optional
  internal/external service name rewriting of node addresses),
  `parse_cluster_is_migrating`, `parse_slots`, `cluster_node_choose` and
  `float64_to_str`. Unreadable replies raise `RedisUtilError`.
- `gunyu.redis_ops` runs those queries through a client object and fills in
  a `RedisConfig`: `select_db`, `get_redis_version`, `fix_version`,
  `fix_topology`, `get_all_cluster_shard` (picks `CLUSTER SHARDS` for
  servers 7 and later, `CLUSTER NODES` before), `get_redis_role_online`,
  `get_cluster_is_migrating`, `get_run_ids`, and the hash helpers `hget`,
  `hgetall`, `hset`, `hdel`. The client must provide `do(*args)`,
  `send_and_flush(*args)`, `receive_string()`, `close()` and a
  `redis_type` attribute; functions that open connections take a
  `connect(cfg)` callable.
- `gunyu.dataset` holds `DataSet`, `DataSetRdb` and `DataSetAof`, which
  track which replication offsets are covered by a snapshot and by AOF
  segments, count open readers and writers, drop everything before a gap
  (`truncate_gap`) and delete the oldest unreferenced files once a size
  limit is passed (`gc_logs`).
- `gunyu.fileutil` has the file naming (`aof_file_path`, `rdb_file_path`),
  run-id directory handling (`get_all_run_ids`, `get_latest_run_id`,
  `ensure_run_id_store`, `exist_repl_id`, `change_repl_id`,
  `mkdir_if_not_exist`), the `Observer` callback holder, the `Crc64`
  checksum (CRC-64 Jones, as used by RDB files) and `CorruptedError`.
- `gunyu.versioning` compares dotted versions up to a `VersionSemantic`
  precision (`compare_version`, `version_ge`, `version_le`, `version_eq`).
- `gunyu.util` has retries (`retry`, `retry_linear_jitter`,
  `retry_exponential`), `fnv_hash` (32-bit FNV-1a), `SafeRand`,
  `OpenCircuitExec`, `cron`, `stop_with_timeout`, `stop_with_event`,
  strict number parsing (`atoi`, `parse_int`, `parse_uint`, `parse_float`)
  and `coarse_now`.
- `gunyu.slice_buffer` provides `SliceBuffer`, a cursor over bytes with
  little-endian readers, and `uint24`.
- `gunyu.trace` inspects the call stack (`get_caller_stack`,
  `get_caller_stack_frame`, `get_stack_string`).
- `gunyu.buildinfo` holds the build values and the version command.

## Installing

    pip install .

For the test suite:

    pip install ".[test]"
    pytest

## Examples

Reading the server version out of an `INFO server` reply:

    from gunyu.topology import parse_redis_info

    info = parse_redis_info(b"# Server\r\nredis_version:7.0.1\r\n")
    print(info["redis_version"])          # 7.0.1

Comparing Redis versions by major number only:

    from gunyu.versioning import VersionSemantic, version_ge

    version_ge("7.0.1", "7", VersionSemantic.MAJOR)   # True

Turning a `CLUSTER NODES` reply into shards:

    from gunyu.topology import cluster_nodes_to_shards

    for shard in cluster_nodes_to_shards(reply_text):
        print(shard.master.address, [s.address for s in shard.slaves])

Checksumming data the way RDB files do:

    from gunyu.fileutil import Crc64

    print(Crc64().update(b"123456789").value())

## Command line

    gunyu-version --version

prints the version, branch, commit, program name and build date held in
`gunyu.buildinfo` (empty strings unless they are set at build time). The
command also exports these values as `app.version`, `app.date`,
`app.commit` and `app.branch` environment variables of its own process.

## What this package does not do

- It contains no Redis client and no network code. Everything in
  `gunyu.redis_ops` works through the client object you pass in.
- It does not write or read RDB and AOF files. There are no file writers,
  rotating readers, header or CRC verification of stored files, and no
  storage manager that hands out readers at an offset. `gunyu.dataset`
  only indexes and garbage-collects files that something else has written,
  and `gunyu.fileutil` only supplies their names and the checksum.
- It has no worker lifetime or concurrency-group helpers beyond the small
  threading utilities in `gunyu.util`.
- It does not run a replication process; there is no command besides
  `gunyu-version`.