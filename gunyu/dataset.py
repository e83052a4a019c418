"""In-memory index of the RDB snapshot and AOF segments held in storage."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Optional

from .fileutil import _remove_all, aof_file_path, rdb_file_path

__all__ = ["DataSetRdb", "DataSetAof", "DataSet"]

log = logging.getLogger(__name__)

_MAX_INT64 = (1 << 63) - 1


@dataclass(eq=False)
class DataSetRdb:
    """An RDB snapshot starting at ``left`` together with its open readers and writer."""

    left: int = 0
    rdb_size: int = 0
    rw_ref: int = 0
    writer: Any = None
    readers: list = field(default_factory=list)
    lock: Any = field(default_factory=threading.RLock, repr=False)

    def add_reader(self, reader: Any) -> None:
        with self.lock:
            self.rw_ref += 1
            self.readers.append(reader)

    def add_writer(self, writer: Any) -> None:
        with self.lock:
            self.rw_ref += 1
            self.writer = writer

    def del_reader(self, reader: Any) -> None:
        with self.lock:
            self.rw_ref -= 1
            for i, existing in enumerate(self.readers):
                if existing is reader:
                    del self.readers[i]
                    return
        log.error("dataSetRdb.DelReader : self(%d), rd(%s)", self.left, getattr(reader, "offset", None))

    def del_writer(self, writer: Any) -> None:
        with self.lock:
            self.rw_ref -= 1
            if self.writer is not writer:
                log.error("dataSetRdb.DelWriter : self(%d), wr(%s)", self.left, getattr(writer, "left", None))
                return
            self.writer = None

    def ref(self) -> int:
        return self.rw_ref

    def close(self) -> None:
        if self.rw_ref == 0:
            return
        with self.lock:
            writer = self.writer
            readers = list(self.readers)
        if writer is not None:
            writer.close()
        for reader in readers:
            reader.close()


@dataclass(eq=False)
class DataSetAof:
    """An AOF segment starting at ``left``; ``size`` is -1 while it is being written."""

    left: int = 0
    size: int = 0
    rt_size: int = 0
    rw_ref: int = 0
    writer: Any = None
    readers: list = field(default_factory=list)
    lock: Any = field(default_factory=threading.RLock, repr=False)

    def add_reader(self, reader: Any) -> None:
        with self.lock:
            self.readers.append(reader)
            self.rw_ref += 1

    def del_reader(self, reader: Any) -> None:
        with self.lock:
            for i, existing in enumerate(self.readers):
                if existing is reader:
                    del self.readers[i]
                    self.rw_ref -= 1
                    return
        log.error("dataSetAof.DelReader : self(%d), rd(%s)", self.left, getattr(reader, "left", None))

    def set_size(self, size: int) -> None:
        with self.lock:
            self.size = size

    def set_writer(self, writer: Any) -> None:
        with self.lock:
            self.writer = writer
            self.rw_ref += 1

    def del_writer(self, writer: Any) -> None:
        with self.lock:
            if self.writer is not writer:
                log.error(
                    "dataSetAof.DelWriter : self(%s), wr(%s)",
                    getattr(self.writer, "left", None),
                    getattr(writer, "left", None),
                )
            self.writer = None
            self.rw_ref -= 1

    def ref(self) -> int:
        return self.rw_ref

    def close(self) -> None:
        if self.rw_ref == 0:
            return
        with self.lock:
            writer = self.writer
            readers = list(self.readers)
        if writer is not None:
            writer.close()
        for reader in readers:
            reader.close()

    def close_writer(self) -> None:
        if self.rw_ref == 0:
            return
        with self.lock:
            writer = self.writer
        if writer is not None:
            writer.close()

    def right(self) -> int:
        with self.lock:
            return self.left + self.rt_size

    def incr_size(self, delta: int) -> None:
        with self.lock:
            self.rt_size += delta


class DataSet:
    """An optional RDB snapshot followed by AOF segments ordered by offset."""

    def __init__(self, rdb: Optional[DataSetRdb] = None, aofs: Optional[list] = None) -> None:
        self._lock = threading.RLock()
        self.rdb = rdb
        self.aof_segs = sorted(aofs or [], key=lambda a: a.left)
        self.aof_map = {a.left: a for a in self.aof_segs}
        self._last_aof_seg = self.aof_segs[-1].left if self.aof_segs else 0

    def truncate_gap(self) -> tuple:
        """Drop everything before the newest break in AOF continuity; return (rdb, aofs) dropped."""
        with self._lock:
            rdb = None
            dropped: list = []
            segs = self.aof_segs
            for i in range(len(segs) - 1, 0, -1):
                if segs[i].left != segs[i - 1].right():
                    dropped = segs[:i]
                    rdb = self.rdb
                    self.aof_segs = segs[i:]
                    self.rdb = None
                    break
            self.aof_map = {a.left: a for a in self.aof_segs}
            return rdb, dropped

    def last_aof_seg(self) -> int:
        return self._last_aof_seg

    def rdb_size(self) -> int:
        with self._lock:
            return -1 if self.rdb is None else self.rdb.rdb_size

    def set_rdb(self, rdb: Optional[DataSetRdb]) -> None:
        with self._lock:
            self.rdb = rdb

    def get_rdb(self) -> Optional[DataSetRdb]:
        with self._lock:
            return self.rdb

    def append_aof(self, aof: DataSetAof) -> None:
        with self._lock:
            self.aof_segs.append(aof)
            self.aof_map[aof.left] = aof
            self._last_aof_seg = aof.left

    def in_range(self, offset: int) -> bool:
        with self._lock:
            left, right = self._get_range()
            if right < 0:
                return False
            if left <= offset <= right:
                return True
            return left >= offset and self.rdb is not None

    def close(self) -> None:
        with self._lock:
            rdb = self.rdb
            segs = list(self.aof_segs)
        if rdb is not None:
            rdb.close()
        for aof in segs:
            aof.close()

    def close_aof_writer(self) -> None:
        with self._lock:
            segs = list(self.aof_segs)
        for aof in segs:
            aof.close()

    def find_aof(self, left: int) -> Optional[DataSetAof]:
        with self._lock:
            return self.aof_map.get(left)

    def trim_last_empty_aof(self) -> None:
        with self._lock:
            if not self.aof_segs:
                return
            last = self.aof_segs[-1]
            if last.rt_size == 0:
                self.aof_map.pop(last.left, None)
                self.aof_segs = self.aof_segs[:-1]

    def index_aof(self, offset: int) -> Optional[DataSetAof]:
        """The newest segment whose range contains ``offset``."""
        with self._lock:
            for aof in reversed(self.aof_segs):
                if aof.left <= offset <= aof.right():
                    return aof
            return None

    def range(self) -> tuple:
        with self._lock:
            return self._get_range()

    def _get_range(self) -> tuple:
        if self.rdb is None and not self.aof_segs:
            return -1, -1
        left, right = _MAX_INT64, 0
        if self.rdb is not None:
            left = right = self.rdb.left
        if self.aof_segs and left > self.aof_segs[0].left:
            left = self.aof_segs[0].left
        if self.aof_segs and right < self.aof_segs[-1].right():
            right = self.aof_segs[-1].right()
        return left, right

    def left(self) -> int:
        with self._lock:
            value = -1
            if self.rdb is not None:
                value = self.rdb.left
            if self.aof_segs and value > self.aof_segs[0].left:
                value = self.aof_segs[0].left
            return value

    def right(self) -> int:
        with self._lock:
            if self.aof_segs:
                return self.aof_segs[-1].right()
            if self.rdb is not None:
                return self.rdb.left
            return -1

    def gc_logs(self, directory: str, max_size: int) -> None:
        """Delete the oldest unreferenced files once the kept data exceeds ``max_size``."""
        with self._lock:
            size = 0
            rdb = self.rdb

            # newest to oldest: find the segment at which the limit is exceeded
            aof_last = len(self.aof_segs) - 1
            while aof_last >= 0:
                seg = self.aof_segs[aof_last]
                if seg.rt_size == 0:
                    log.warning("aof rtsize is 0 : aof(%d), size(%d)", seg.left, seg.size)
                size += seg.rt_size
                if size > max_size:
                    break
                aof_last -= 1

            unreferenced = True
            if rdb is not None:
                size += rdb.rdb_size
                with rdb.lock:
                    if size > max_size:
                        if rdb.rw_ref == 0:
                            path = rdb_file_path(directory, rdb.left, rdb.rdb_size)
                            try:
                                _remove_all(path)
                            except OSError as exc:
                                log.error("GC Logs, remove rdb file error : file(%s), error(%s)", path, exc)
                            else:
                                log.info("GC Logs, remove rdb file : file(%s)", path)
                                size -= rdb.rdb_size
                            self.rdb = None
                        else:
                            unreferenced = False
                            log.warning(
                                "storage size exceeds limitation, but rdb reference is not zero : "
                                "size(%d), maxSize(%d), rdb(%d)",
                                size, max_size, rdb.left,
                            )

            if not unreferenced:
                return
            # oldest to newest
            while aof_last >= 0:
                aof = self.aof_segs[0]
                with aof.lock:
                    if aof.ref() > 0:
                        if size > max_size:
                            log.warning(
                                "GC Logs, size exceeded limitation, but reference is not zero : "
                                "size(%d), maxSize(%d), left(%d)",
                                size, max_size, aof.left,
                            )
                        break
                    path = aof_file_path(directory, aof.left)
                    try:
                        _remove_all(path)
                    except OSError as exc:
                        log.error("GC Logs, remove aof file error : file(%s), error(%s)", path, exc)
                    else:
                        log.info("GC Logs, remove aof file : file(%s)", path)
                    size -= aof.rt_size
                    self.aof_map.pop(aof.left, None)
                    self.aof_segs = self.aof_segs[1:]
                    aof_last -= 1