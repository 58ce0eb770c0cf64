"""Little-endian binary reading and writing over in-memory buffers."""

from __future__ import annotations

import os
import struct
from pathlib import Path
from typing import Union

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_S8 = struct.Struct("<b")
_S16 = struct.Struct("<h")
_S32 = struct.Struct("<i")
_S64 = struct.Struct("<q")
_F32 = struct.Struct("<f")
_F64 = struct.Struct("<d")

BytesLike = Union[bytes, bytearray, memoryview]


class BinaryReadError(Exception):
    """Raised when data cannot be read: too short, or a string too long."""


def _resolve_position(offset: int, whence: int, current: int, end: int) -> int:
    if whence == os.SEEK_SET:
        base = 0
    elif whence == os.SEEK_CUR:
        base = current
    elif whence == os.SEEK_END:
        base = end
    else:
        raise ValueError(f"invalid whence value: {whence}")
    position = base + offset
    if position < 0:
        raise ValueError(f"negative seek position: {position}")
    return position


class BinaryReader:
    """Reads little-endian values from a block of bytes."""

    def __init__(self, data: BytesLike) -> None:
        self._data = bytes(data)
        self._pos = 0

    @classmethod
    def from_file(cls, path: Union[str, os.PathLike]) -> "BinaryReader":
        """Create a reader over the whole contents of a file."""
        return cls(Path(path).read_bytes())

    @property
    def size(self) -> int:
        """Total number of bytes available."""
        return len(self._data)

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """Move the read position and return it."""
        self._pos = _resolve_position(offset, whence, self._pos, len(self._data))
        return self._pos

    def tell(self) -> int:
        """Return the current read position."""
        return self._pos

    def read(self, size: int) -> bytes:
        """Read exactly ``size`` bytes."""
        if size < 0:
            raise ValueError(f"negative read size: {size}")
        end = self._pos + size
        if end > len(self._data):
            raise BinaryReadError(
                f"cannot read {size} bytes at offset {self._pos}: "
                f"only {max(len(self._data) - self._pos, 0)} left"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def read_str(self, max_length: int) -> str:
        """Read a NUL-terminated string of fewer than ``max_length`` bytes.

        The terminator is consumed. The end of the data also ends the string.
        """
        if max_length < 1:
            raise ValueError(f"max_length must be positive, got {max_length}")
        limit = max_length - 1
        window = self._data[self._pos:self._pos + limit]
        terminator = window.find(0)
        if terminator >= 0:
            self._pos += terminator + 1
            return window[:terminator].decode(_ENCODING, _ERRORS)
        self._pos += len(window)
        if len(window) < limit:
            return window.decode(_ENCODING, _ERRORS)
        raise BinaryReadError(f"string longer than {limit} bytes")

    def _unpack(self, layout: struct.Struct):
        return layout.unpack(self.read(layout.size))[0]

    def read_u8(self) -> int:
        return self._unpack(_U8)

    def read_u16(self) -> int:
        return self._unpack(_U16)

    def read_u32(self) -> int:
        return self._unpack(_U32)

    def read_u64(self) -> int:
        return self._unpack(_U64)

    def read_s8(self) -> int:
        return self._unpack(_S8)

    def read_s16(self) -> int:
        return self._unpack(_S16)

    def read_s32(self) -> int:
        return self._unpack(_S32)

    def read_s64(self) -> int:
        return self._unpack(_S64)

    def read_f32(self) -> float:
        return self._unpack(_F32)

    def read_f64(self) -> float:
        return self._unpack(_F64)

    def read_bool(self) -> bool:
        return self._unpack(_U8) != 0


class BinaryWriter:
    """Writes little-endian values into a buffer.

    With ``size`` the buffer has that fixed, zero-filled length and writing
    past it is an error; without it the buffer grows as needed.
    """

    def __init__(self, size: int | None = None) -> None:
        if size is None:
            self._fixed = False
            self._buffer = bytearray()
        else:
            if size < 0:
                raise ValueError(f"negative buffer size: {size}")
            self._fixed = True
            self._buffer = bytearray(size)
        self._pos = 0

    def tell(self) -> int:
        """Return the current write position."""
        return self._pos

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """Move the write position and return it."""
        self._pos = _resolve_position(offset, whence, self._pos, len(self._buffer))
        return self._pos

    def _put(self, offset: int, data: BytesLike) -> None:
        if offset < 0:
            raise ValueError(f"negative offset: {offset}")
        end = offset + len(data)
        if end > len(self._buffer):
            if self._fixed:
                raise ValueError(
                    f"write of {len(data)} bytes at offset {offset} exceeds "
                    f"buffer size {len(self._buffer)}"
                )
            self._buffer.extend(bytes(end - len(self._buffer)))
        self._buffer[offset:end] = data

    def write(self, data: BytesLike) -> None:
        """Write raw bytes at the current position."""
        self._put(self._pos, data)
        self._pos += len(data)

    def write_str(self, text: str) -> None:
        """Write a string followed by a NUL terminator."""
        self.write(text.encode(_ENCODING, _ERRORS) + b"\x00")

    def _pack(self, layout: struct.Struct, value) -> bytes:
        try:
            return layout.pack(value)
        except struct.error as exc:
            raise ValueError(f"cannot encode {value!r}: {exc}") from exc

    def write_u8(self, value: int) -> None:
        self.write(self._pack(_U8, value))

    def write_u16(self, value: int) -> None:
        self.write(self._pack(_U16, value))

    def write_u32(self, value: int) -> None:
        self.write(self._pack(_U32, value))

    def write_u64(self, value: int) -> None:
        self.write(self._pack(_U64, value))

    def write_s8(self, value: int) -> None:
        self.write(self._pack(_S8, value))

    def write_s16(self, value: int) -> None:
        self.write(self._pack(_S16, value))

    def write_s32(self, value: int) -> None:
        self.write(self._pack(_S32, value))

    def write_s64(self, value: int) -> None:
        self.write(self._pack(_S64, value))

    def write_f32(self, value: float) -> None:
        self.write(self._pack(_F32, value))

    def write_f64(self, value: float) -> None:
        self.write(self._pack(_F64, value))

    def write_bool(self, value: bool) -> None:
        self.write(self._pack(_U8, 1 if value else 0))

    def set_u32(self, offset: int, value: int) -> None:
        """Store a u32 at ``offset`` without moving the write position."""
        self._put(offset, self._pack(_U32, value))

    def set_u64(self, offset: int, value: int) -> None:
        """Store a u64 at ``offset`` without moving the write position."""
        self._put(offset, self._pack(_U64, value))

    def write_at(self, offset: int, data: BytesLike) -> None:
        """Store raw bytes at ``offset`` without moving the write position."""
        self._put(offset, data)

    def getvalue(self) -> bytes:
        """Return the whole buffer."""
        return bytes(self._buffer)