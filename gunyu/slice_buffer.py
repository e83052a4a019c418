"""A cursor over an in-memory byte string with little-endian readers."""

from __future__ import annotations

__all__ = ["SliceBuffer", "uint24"]


def uint24(b: bytes) -> int:
    """Decode the first three bytes as a little-endian unsigned integer."""
    return b[0] | (b[1] << 8) | (b[2] << 16)


class SliceBuffer:
    """Reads sequentially from a byte string, raising EOFError past the end."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    def slice(self, n: int) -> bytes:
        if self._pos + n > len(self._data):
            raise EOFError("not enough data")
        chunk = self._data[self._pos:self._pos + n]
        self._pos += n
        return chunk

    def read_byte(self) -> int:
        if self._pos >= len(self._data):
            raise EOFError("no more data")
        value = self._data[self._pos]
        self._pos += 1
        return value

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes; an empty request returns b''."""
        if size == 0:
            return b""
        if self._pos >= len(self._data):
            raise EOFError("no more data")
        chunk = self._data[self._pos:self._pos + size]
        self._pos += len(chunk)
        return chunk

    def seek(self, offset: int, whence: int = 0) -> int:
        if whence == 0:
            target = offset
        elif whence == 1:
            target = self._pos + offset
        elif whence == 2:
            target = len(self._data) + offset
        else:
            raise ValueError("invalid whence")
        if target < 0:
            raise ValueError("negative position")
        if target >= 1 << 31:
            raise ValueError("position out of range")
        self._pos = target
        return target

    def read_uint64(self) -> int:
        return int.from_bytes(self.slice(8), "little")

    def read_uint32(self) -> int:
        return int.from_bytes(self.slice(4), "little")

    def read_uint16(self) -> int:
        return int.from_bytes(self.slice(2), "little")

    def read_uint24(self) -> int:
        return uint24(self.slice(3))