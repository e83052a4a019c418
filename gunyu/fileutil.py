"""Storage file naming, run-id directories, observers and the CRC-64 checksum."""

from __future__ import annotations

import logging
import os
import shutil
from typing import Any, Callable, Optional

from .util import parse_int

__all__ = [
    "Observer",
    "CorruptedError",
    "Crc64",
    "aof_file_path",
    "rdb_file_path",
    "get_all_run_ids",
    "get_latest_run_id",
    "ensure_run_id_store",
    "mkdir_if_not_exist",
    "exist_repl_id",
    "change_repl_id",
]

log = logging.getLogger(__name__)


class CorruptedError(Exception):
    """A stored file failed its size or checksum check."""


class Observer:
    """Forwards lifecycle events to optional callbacks."""

    def __init__(
        self,
        on_open: Optional[Callable[..., Any]] = None,
        on_close: Optional[Callable[..., Any]] = None,
        on_write: Optional[Callable[..., Any]] = None,
        on_read: Optional[Callable[..., Any]] = None,
    ) -> None:
        self._on_open = on_open
        self._on_close = on_close
        self._on_write = on_write
        self._on_read = on_read

    def open(self, *args: Any) -> None:
        if self._on_open is not None:
            self._on_open(*args)

    def close(self, *args: Any) -> None:
        if self._on_close is not None:
            self._on_close(*args)

    def write(self, *args: Any) -> None:
        if self._on_write is not None:
            self._on_write(*args)

    def read(self, *args: Any) -> None:
        if self._on_read is not None:
            self._on_read(*args)


def _make_crc64_table() -> list:
    poly = 0x95AC9329AC4BC9B5  # Jones polynomial, reflected
    table = []
    for i in range(256):
        crc = i
        for _ in range(8):
            crc = (crc >> 1) ^ poly if crc & 1 else crc >> 1
        table.append(crc)
    return table


_CRC64_TABLE = _make_crc64_table()


class Crc64:
    """Incremental CRC-64 (Jones), the checksum used by RDB files."""

    def __init__(self) -> None:
        self._crc = 0

    def update(self, data: bytes) -> "Crc64":
        crc = self._crc
        table = _CRC64_TABLE
        for byte in data:
            crc = table[(crc ^ byte) & 0xFF] ^ (crc >> 8)
        self._crc = crc
        return self

    def value(self) -> int:
        return self._crc


def aof_file_path(directory: str, offset: int) -> str:
    return f"{directory}{os.sep}{offset}.aof"


def rdb_file_path(directory: str, offset: int, size: int) -> str:
    return f"{directory}{os.sep}{offset}_{size}.rdb"


def _remove_all(path: str) -> None:
    """Remove a file or directory tree; a missing path is not an error."""
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    elif os.path.lexists(path):
        os.remove(path)


def get_all_run_ids(directory: str) -> list:
    """Names of all entries in ``directory``, sorted."""
    return sorted(os.listdir(directory))


def get_latest_run_id(directory: str) -> str:
    """The run id whose directory holds the largest numeric entry name."""
    max_offset = 0
    latest = ""
    for run_id in get_all_run_ids(directory):
        for name in sorted(os.listdir(os.path.join(directory, run_id))):
            try:
                offset = parse_int(name)
            except ValueError as exc:
                log.error("%s", exc)
                continue
            if offset > max_offset:
                max_offset = offset
                latest = run_id
    return latest


def mkdir_if_not_exist(directory: str) -> None:
    if os.path.exists(directory):
        return
    os.makedirs(directory)


def ensure_run_id_store(root: str, run_id: str) -> None:
    mkdir_if_not_exist(os.path.join(root, run_id))


def exist_repl_id(root: str, run_id: str) -> bool:
    return os.path.exists(os.path.join(root, run_id))


def change_repl_id(directory: str, old: str, new: str) -> None:
    """Rename the ``old`` run directory to ``new``; if ``new`` exists it is discarded instead."""
    old_dir = os.path.join(directory, old)
    new_dir = os.path.join(directory, new)
    os.stat(old_dir)
    if not os.path.lexists(new_dir):
        os.rename(old_dir, new_dir)
        return
    _remove_all(new_dir)
    os.makedirs(old_dir, exist_ok=True)